from __future__ import annotations

"""
pytest 全局配置：
- 将项目根目录加入 sys.path，确保 `from docsign...` 可被导入；
- 提供测试用的 PDF 与图片生成 fixture（ReportLab / Pillow，全部写入 tmp_path 或内存）。
"""

import base64
import sys
from io import BytesIO
from pathlib import Path
from typing import Callable, Sequence, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)


def build_pdf_bytes(page_sizes: Sequence[Tuple[float, float]] = ((612.0, 792.0),)) -> bytes:
    """用 ReportLab 生成指定页数与尺寸的空白 PDF。"""
    from reportlab.pdfgen import canvas  # 延迟导入以加快测试收敛

    buf = BytesIO()
    c = canvas.Canvas(buf, invariant=1)
    for index, (width, height) in enumerate(page_sizes, start=1):
        c.setPageSize((width, height))
        c.setFont("Helvetica", 12)
        c.drawString(72, height - 72, f"Page {index}")
        c.showPage()
    c.save()
    return buf.getvalue()


def build_image_bytes(fmt: str = "PNG", size: Tuple[int, int] = (40, 20), mode: str = "RGBA") -> bytes:
    """用 Pillow 生成一张纯色小图。"""
    from PIL import Image

    color = {"RGBA": (10, 20, 200, 180), "RGB": (10, 20, 200), "L": 128, "P": 3}.get(mode, 0)
    img = Image.new(mode, size, color)
    buf = BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def to_data_uri(data: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


@pytest.fixture()
def letter_pdf() -> bytes:
    """单页 US Letter（612×792）。"""
    return build_pdf_bytes()


@pytest.fixture()
def three_page_pdf() -> bytes:
    return build_pdf_bytes(((612.0, 792.0),) * 3)


@pytest.fixture()
def png_uri() -> str:
    return to_data_uri(build_image_bytes())


@pytest.fixture()
def make_png_uri() -> Callable[..., str]:
    def _make(**kwargs) -> str:
        return to_data_uri(build_image_bytes(**kwargs))

    return _make

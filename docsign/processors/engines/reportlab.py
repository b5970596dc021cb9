"""
文件路径：docsign/processors/engines/reportlab.py

说明：ReportLab 图层 + PyPDF2 合并引擎。

- 打开阶段只用 PyPDF2 读取页数与页面尺寸，绘制调用先按页记录；
- 序列化时为每个有绘制内容的页生成一页 ReportLab 图层（左下原点，与输出坐标一致），
  再用 PyPDF2 `merge_page` 叠加到原页面上；无内容的页原样写出。
- 每次序列化都从源字节重新读取，源数据与已记录的绘制计划都不会被修改。
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Dict, List, Tuple, Union

from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.errors import PyPdfError
from PyPDF2.generic import ContentStream, DictionaryObject, NameObject
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from ...components import ImageEmbedError, PageSize, SourceDocumentError, get_logger
from ...variables import CONST_ENGINE_REPORTLAB, CONST_OVERLAY_RESOURCE_PREFIX
from . import FontResource, ImageResource


logger = get_logger(__name__)


@dataclass(frozen=True)
class _DrawImage:
    image: ImageResource
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class _DrawText:
    text: str
    x: float
    y: float
    font_size: float
    font: FontResource
    color_rgb: Tuple[float, float, float]


_DrawOp = Union[_DrawImage, _DrawText]


def _read_pdf(data: bytes, tolerate_encryption_markers: bool) -> PdfReader:
    try:
        reader = PdfReader(BytesIO(data))
        if reader.is_encrypted:
            if not tolerate_encryption_markers:
                raise SourceDocumentError("源文档带有加密标记")
            # 仅有加密标记（空口令）的文档允许继续编辑
            if not reader.decrypt(""):
                raise SourceDocumentError("源文档已加密且需要口令")
        if len(reader.pages) < 1:
            raise SourceDocumentError("源文档没有页面")
    except SourceDocumentError:
        raise
    except (PyPdfError, ValueError, KeyError, TypeError, NotImplementedError) as exc:
        raise SourceDocumentError(f"无法打开源文档：{exc}") from exc
    return reader


def _build_overlay_page(page_box: Tuple[float, float, float, float], ops: List[_DrawOp]) -> bytes:
    """为单页生成仅含签章内容的图层 PDF。"""
    left, bottom, width, height = page_box
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=(width, height), invariant=1)
    # 页面 MediaBox 原点不在 (0,0) 时平移图层
    c.translate(left, bottom)
    for op in ops:
        if isinstance(op, _DrawImage):
            c.drawImage(
                ImageReader(BytesIO(op.image.data)),
                op.x,
                op.y,
                width=op.width,
                height=op.height,
                mask="auto",
            )
        else:
            c.setFillColorRGB(*op.color_rgb)
            c.setFont(op.font.engine_name, op.font_size)
            c.drawString(op.x, op.y, op.text)
    c.showPage()
    c.save()
    return buf.getvalue()


def _prefix_resource_names(page, reader: PdfReader) -> None:
    """为图层页的全部资源名加前缀，并同步改写内容流中的引用。

    合并后资源名固定，不与原页面的同名资源（如 /F1）冲突，PyPDF2 不会再用随机后缀改名。
    """
    resources = page.get("/Resources")
    if resources is None:
        return
    resources = resources.get_object()
    rename: Dict[str, NameObject] = {}
    for category in list(resources.keys()):
        if category == "/ProcSet":
            continue
        entries = resources[category].get_object()
        if not isinstance(entries, DictionaryObject):
            continue
        renamed = DictionaryObject()
        for key in list(entries.keys()):
            new_key = NameObject(f"/{CONST_OVERLAY_RESOURCE_PREFIX}{key[1:]}")
            rename[key] = new_key
            renamed[new_key] = entries.raw_get(key)
        resources[NameObject(category)] = renamed
    if not rename:
        return

    content = ContentStream(page.get_contents(), reader)
    content.operations = [
        (
            [rename.get(op, op) if isinstance(op, NameObject) else op for op in operands]
            if isinstance(operands, list)
            else operands,
            operator,
        )
        for operands, operator in content.operations
    ]
    page[NameObject("/Contents")] = content


class ReportLabDocumentHandle:
    """记录绘制计划的文档句柄，页码 1 基。"""

    def __init__(self, data: bytes, reader: PdfReader, tolerate_encryption_markers: bool) -> None:
        self._data = data
        self._reader = reader
        self._tolerate = tolerate_encryption_markers
        self._draw_plan: Dict[int, List[_DrawOp]] = {}

    def _box(self, page: int) -> Tuple[float, float, float, float]:
        box = self._reader.pages[int(page) - 1].mediabox
        return float(box.left), float(box.bottom), float(box.width), float(box.height)

    def page_count(self) -> int:
        return len(self._reader.pages)

    def page_size(self, page: int) -> PageSize:
        _, _, width, height = self._box(page)
        return PageSize(width, height)

    def embed_image(self, png_bytes: bytes) -> ImageResource:
        try:
            width, height = ImageReader(BytesIO(png_bytes)).getSize()
        except Exception as exc:  # noqa: BLE001
            raise ImageEmbedError(f"ReportLab 无法读取图片：{exc}") from exc
        return ImageResource(data=png_bytes, width=int(width), height=int(height))

    def embed_standard_font(self, font_name: str) -> FontResource:
        if font_name not in pdfmetrics.standardFonts:
            raise ValueError(f"非 PDF 标准字体：{font_name}")
        return FontResource(name=font_name, engine_name=font_name)

    def draw_image(self, page: int, image: ImageResource, x: float, y: float, width: float, height: float) -> None:
        self._draw_plan.setdefault(int(page), []).append(_DrawImage(image, x, y, width, height))

    def draw_text(
        self,
        page: int,
        text: str,
        x: float,
        y: float,
        font_size: float,
        font: FontResource,
        color_rgb: Tuple[float, float, float],
    ) -> None:
        self._draw_plan.setdefault(int(page), []).append(_DrawText(text, x, y, font_size, font, tuple(color_rgb)))

    def serialize(self) -> bytes:
        reader = _read_pdf(self._data, self._tolerate)
        writer = PdfWriter()
        for index, base_page in enumerate(reader.pages, start=1):
            ops = self._draw_plan.get(index)
            if ops:
                overlay_pdf = _build_overlay_page(self._box(index), ops)
                overlay_reader = PdfReader(BytesIO(overlay_pdf))
                overlay_page = overlay_reader.pages[0]
                _prefix_resource_names(overlay_page, overlay_reader)
                base_page.merge_page(overlay_page)  # PyPDF2 3.x API
            writer.add_page(base_page)
        out = BytesIO()
        writer.write(out)
        data = out.getvalue()
        logger.info("ReportLab 合成完成：%s 页叠加，%.1f KB", len(self._draw_plan), len(data) / 1024.0)
        return data

    def close(self) -> None:
        self._draw_plan.clear()


class ReportLabDocumentProvider:
    name = CONST_ENGINE_REPORTLAB

    def open_document(self, data: bytes, tolerate_encryption_markers: bool = True) -> ReportLabDocumentHandle:
        """读取源 PDF；非法或需要口令时抛 SourceDocumentError。"""
        raw = bytes(data)
        reader = _read_pdf(raw, tolerate_encryption_markers)
        logger.info("PyPDF2 已读取源文档：%s 页", len(reader.pages))
        return ReportLabDocumentHandle(raw, reader, tolerate_encryption_markers)


__all__ = ["ReportLabDocumentProvider", "ReportLabDocumentHandle"]

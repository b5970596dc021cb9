"""
文件路径：docsign/processors/engines/__init__.py

说明：文档提供方（渲染引擎）契约与引擎选择。

- 引擎负责：打开源文档、查询页数与页面尺寸、内嵌图片与标准字体、绘制图片与文字、序列化输出。
- 绘制接口统一使用输出坐标系（左下原点，pt），页码为 1 基；坐标系差异由各引擎内部处理。
- 已提供两种实现：`pymupdf.py`（PyMuPDF 直接写入）与 `reportlab.py`（ReportLab 图层 + PyPDF2 合并）。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Tuple

from ...components import PageSize
from ...variables import CONST_ENGINE_CHOICES, CONST_ENGINE_PYMUPDF, CONST_ENGINE_REPORTLAB


@dataclass(frozen=True)
class ImageResource:
    """已通过引擎校验、可重复绘制的图片资源。"""

    data: bytes
    width: int
    height: int


@dataclass(frozen=True)
class FontResource:
    """标准字体句柄：name 为 PDF 标准名，engine_name 为引擎内部名称。"""

    name: str
    engine_name: str


class DocumentHandle(Protocol):
    def page_count(self) -> int: ...

    def page_size(self, page: int) -> PageSize: ...

    def embed_image(self, png_bytes: bytes) -> ImageResource: ...

    def embed_standard_font(self, font_name: str) -> FontResource: ...

    def draw_image(self, page: int, image: ImageResource, x: float, y: float, width: float, height: float) -> None: ...

    def draw_text(
        self,
        page: int,
        text: str,
        x: float,
        y: float,
        font_size: float,
        font: FontResource,
        color_rgb: Tuple[float, float, float],
    ) -> None: ...

    def serialize(self) -> bytes: ...

    def close(self) -> None: ...


class DocumentProvider(Protocol):
    name: str

    def open_document(self, data: bytes, tolerate_encryption_markers: bool = True) -> DocumentHandle: ...


def get_document_provider(name: str) -> DocumentProvider:
    """按名称返回引擎实例；未知名称抛 ValueError。"""
    key = (name or "").strip().lower()
    # 延迟导入：只加载实际选用的引擎依赖
    if key == CONST_ENGINE_PYMUPDF:
        from .pymupdf import PyMuPDFDocumentProvider

        return PyMuPDFDocumentProvider()
    if key == CONST_ENGINE_REPORTLAB:
        from .reportlab import ReportLabDocumentProvider

        return ReportLabDocumentProvider()
    raise ValueError(f"未知渲染引擎：{name}（可选：{', '.join(CONST_ENGINE_CHOICES)}）")


__all__ = [
    "ImageResource",
    "FontResource",
    "DocumentHandle",
    "DocumentProvider",
    "get_document_provider",
]

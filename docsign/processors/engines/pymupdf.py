"""
文件路径：docsign/processors/engines/pymupdf.py

说明：PyMuPDF 引擎，直接在打开的文档上绘制图片与文字。

坐标：调用方传入输出坐标（左下原点）；PyMuPDF 页面坐标为左上原点，
因此图片矩形 top = H - (y + height)，文字基线 y' = H - y。
"""

from __future__ import annotations

from typing import Dict, Tuple

import fitz  # PyMuPDF

from ...components import ImageEmbedError, PageSize, SourceDocumentError, get_logger
from ...variables import CONST_ENGINE_PYMUPDF
from . import FontResource, ImageResource


logger = get_logger(__name__)

# PDF 标准 14 字体名 -> PyMuPDF Base14 简称
_BASE14_FONTNAMES: Dict[str, str] = {
    "Helvetica": "helv",
    "Helvetica-Bold": "hebo",
    "Helvetica-Oblique": "heit",
    "Helvetica-BoldOblique": "hebi",
    "Times-Roman": "tiro",
    "Times-Bold": "tibo",
    "Times-Italic": "tiit",
    "Times-BoldItalic": "tibi",
    "Courier": "cour",
    "Courier-Bold": "cobo",
    "Courier-Oblique": "coit",
    "Courier-BoldOblique": "cobi",
    "Symbol": "symb",
    "ZapfDingbats": "zadb",
}


class PyMuPDFDocumentHandle:
    """已打开文档的句柄，页码 1 基。"""

    def __init__(self, doc: "fitz.Document") -> None:
        self._doc = doc

    def _page(self, page: int) -> "fitz.Page":
        return self._doc[int(page) - 1]

    def page_count(self) -> int:
        return self._doc.page_count

    def page_size(self, page: int) -> PageSize:
        rect = self._page(page).rect
        return PageSize(float(rect.width), float(rect.height))

    def embed_image(self, png_bytes: bytes) -> ImageResource:
        try:
            pix = fitz.Pixmap(png_bytes)
        except Exception as exc:  # noqa: BLE001
            raise ImageEmbedError(f"PyMuPDF 无法内嵌图片：{exc}") from exc
        return ImageResource(data=png_bytes, width=pix.width, height=pix.height)

    def embed_standard_font(self, font_name: str) -> FontResource:
        try:
            return FontResource(name=font_name, engine_name=_BASE14_FONTNAMES[font_name])
        except KeyError:
            raise ValueError(f"非 PDF 标准字体：{font_name}") from None

    def draw_image(self, page: int, image: ImageResource, x: float, y: float, width: float, height: float) -> None:
        target = self._page(page)
        page_h = float(target.rect.height)
        rect = fitz.Rect(x, page_h - (y + height), x + width, page_h - y)
        target.insert_image(rect, stream=image.data, keep_proportion=False, overlay=True)

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
        target = self._page(page)
        baseline = (x, float(target.rect.height) - y)
        target.insert_text(baseline, text, fontsize=font_size, fontname=font.engine_name, color=color_rgb, overlay=True)

    def serialize(self) -> bytes:
        # 保留源文档 /ID：相同输入输出相同字节
        data = self._doc.tobytes(garbage=4, deflate=True, clean=True, no_new_id=True)
        logger.info("PyMuPDF 输出完成：%.1f KB", len(data) / 1024.0)
        return data

    def close(self) -> None:
        self._doc.close()


class PyMuPDFDocumentProvider:
    name = CONST_ENGINE_PYMUPDF

    def open_document(self, data: bytes, tolerate_encryption_markers: bool = True) -> PyMuPDFDocumentHandle:
        """从字节打开 PDF。

        参数：
            data: 源文档字节。
            tolerate_encryption_markers: 为 True 时，对仅有加密标记、空口令即可打开的文档放行。
        异常：
            SourceDocumentError: 非 PDF、结构损坏、无页面或需要口令。
        """
        try:
            doc = fitz.open(stream=bytes(data), filetype="pdf")
        except Exception as exc:  # noqa: BLE001
            raise SourceDocumentError(f"无法打开源文档：{exc}") from exc

        problem = None
        if not doc.is_pdf:
            problem = "源文档不是 PDF"
        elif doc.needs_pass and not (tolerate_encryption_markers and doc.authenticate("")):
            problem = "源文档已加密且需要口令"
        elif doc.is_encrypted and not tolerate_encryption_markers:
            problem = "源文档带有加密标记"
        elif doc.page_count < 1:
            problem = "源文档没有页面"
        if problem:
            doc.close()
            raise SourceDocumentError(problem)

        logger.info("PyMuPDF 已打开源文档：%s 页", doc.page_count)
        return PyMuPDFDocumentHandle(doc)


__all__ = ["PyMuPDFDocumentProvider", "PyMuPDFDocumentHandle"]

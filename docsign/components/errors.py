"""
文件路径：docsign/components/errors.py

说明：签章合成相关的异常体系与统一错误信息格式。

- 每个异常携带 `err_code`（来自 variables.py 的 ERR_ 常量），消息统一为 "[code] message"。
- 合成流程中任何失败最终都以 `CompositionError` 抛给调用方，原始异常保存在 `cause` / `__cause__`。
"""

from __future__ import annotations

from typing import Optional

from ..variables import (
    ERR_COMPOSITION_FAILED,
    ERR_IMAGE_DECODE_FAILED,
    ERR_IMAGE_EMBED_FAILED,
    ERR_INVALID_PDF,
    ERR_PAGE_INDEX_OUT_OF_RANGE,
)


class ErrorHandler:
    """错误处理相关工具。"""

    @staticmethod
    def format_error(err_code: int, message: str) -> str:
        """生成统一错误信息字符串。"""
        return f"[{err_code}] {message}"


class DocSignError(RuntimeError):
    """签章工具异常基类。"""

    err_code: int = ERR_COMPOSITION_FAILED

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(ErrorHandler.format_error(self.err_code, message))


class SourceDocumentError(DocSignError):
    """源文档无法打开或结构损坏。"""

    err_code = ERR_INVALID_PDF


class PageOutOfRangeError(DocSignError):
    """覆盖物引用的页码超出文档页数。"""

    err_code = ERR_PAGE_INDEX_OUT_OF_RANGE

    def __init__(self, page: int, page_count: int) -> None:
        self.page = page
        self.page_count = page_count
        super().__init__(f"页面索引越界：page={page}，文档共 {page_count} 页")


class ImageDecodeError(DocSignError):
    """图片数据无法解码（空数据、损坏、不支持的编码）。"""

    err_code = ERR_IMAGE_DECODE_FAILED


class ImageEmbedError(DocSignError):
    """归一化后的图片无法内嵌到文档。"""

    err_code = ERR_IMAGE_EMBED_FAILED


class CompositionError(DocSignError):
    """合成失败的统一出口，`cause` 保存原始异常便于诊断。"""

    err_code = ERR_COMPOSITION_FAILED

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.cause = cause
        super().__init__(message)


__all__ = [
    "ErrorHandler",
    "DocSignError",
    "SourceDocumentError",
    "PageOutOfRangeError",
    "ImageDecodeError",
    "ImageEmbedError",
    "CompositionError",
]

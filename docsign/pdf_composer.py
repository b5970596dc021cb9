"""
文件路径：docsign/pdf_composer.py

模块职责：
- 核心功能：读取覆盖物快照，将签名 / 印章图片与签署时间戳写入源 PDF，返回新的文档字节。
- 通过 `processors.engines` 选择渲染引擎，通过 `processors.images` 归一化图片，
  通过 `components` 完成坐标换算、时间戳文本与日志。

流程（严格串行，单次导出内不并发）：
1. 先按页分组取得快照（此后的编辑不影响本次导出）；
2. 打开源文档（容忍仅有加密标记的文档），校验所有页码落在 1..页数 之内；
3. 按页码升序处理，页内按插入顺序：归一化图片 -> 内嵌 -> 换算坐标 -> 绘制；
   可见的签名时间戳以粗体、固定深灰色绘制；
4. 序列化输出。

任何失败都会中止整个导出并抛出 CompositionError（cause 为原始异常），不产生部分结果，不重试。

变量引用说明（来自 docsign/variables.py）：
- STYLE_TIMESTAMP_FONT_NAME, STYLE_TIMESTAMP_COLOR_RGB
- CONST_ENGINE_DEFAULT, CONST_PAGE_INDEX_MIN
"""

from __future__ import annotations

import asyncio
from typing import Dict, Mapping, Optional, Sequence, Union

from .components import (
    CompositionError,
    PageOutOfRangeError,
    format_timestamp_text,
    get_logger,
    to_output_origin,
    to_output_origin_text,
)
from .overlay_store import Overlay, OverlayKind, OverlayStore
from .processors.engines import DocumentHandle, DocumentProvider, FontResource, get_document_provider
from .processors.images import normalize_image_async
from .variables import CONST_ENGINE_DEFAULT, CONST_PAGE_INDEX_MIN, STYLE_TIMESTAMP_COLOR_RGB, STYLE_TIMESTAMP_FONT_NAME


logger = get_logger(__name__)

OverlaySource = Union[OverlayStore, Mapping[int, Sequence[Overlay]]]


def _snapshot(overlays: OverlaySource) -> Dict[int, tuple]:
    """取得按页分组的不可变快照，页码升序。"""
    if isinstance(overlays, OverlayStore):
        return overlays.all_overlays_grouped_by_page()
    return {int(page): tuple(sorted(items, key=lambda o: o.seq)) for page, items in sorted(overlays.items())}


class PDFComposer:
    """签章合成器。

    用法示例：
        composer = PDFComposer(engine="pymupdf")
        signed_bytes = composer.compose(source_bytes, store)
    """

    def __init__(self, engine: Union[str, DocumentProvider] = CONST_ENGINE_DEFAULT) -> None:
        self.provider: DocumentProvider = get_document_provider(engine) if isinstance(engine, str) else engine
        # 运行时信息：用于 CLI/日志展示
        self.last_engine_used: Optional[str] = None
        # 最近一次合成统计：pages/images/timestamps
        self.last_compose_stats: Optional[dict] = None

    def compose(self, source_bytes: bytes, overlays: OverlaySource) -> bytes:
        """同步入口：在新的事件循环中执行 `compose_async`。"""
        return asyncio.run(self.compose_async(source_bytes, overlays))

    async def compose_async(self, source_bytes: bytes, overlays: OverlaySource) -> bytes:
        """将全部覆盖物写入源文档并返回新文档字节。

        参数：
            source_bytes: 源 PDF 字节（不会被修改）。
            overlays: OverlayStore 或已分组的 {页码: 覆盖物序列}。
        返回：
            合成后的 PDF 字节。
        异常：
            CompositionError: 源文档非法、页码越界、图片解码/内嵌失败或引擎 IO 失败。
        """
        # 在第一个挂起点之前固定快照
        grouped = _snapshot(overlays)
        self.last_compose_stats = None
        try:
            data = await self._run(bytes(source_bytes), grouped)
        except CompositionError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("签章合成失败：%s", exc)
            raise CompositionError(f"签章合成失败：{exc}", cause=exc) from exc
        self.last_engine_used = self.provider.name
        return data

    async def _run(self, source_bytes: bytes, grouped: Dict[int, tuple]) -> bytes:
        stats = {"pages": 0, "images": 0, "timestamps": 0}
        # 挂起点：打开源文档。引擎调用留在当前线程，仅图片解码放入线程池
        await asyncio.sleep(0)
        handle = self.provider.open_document(source_bytes, tolerate_encryption_markers=True)
        try:
            page_count = handle.page_count()
            for page in grouped:
                if page < CONST_PAGE_INDEX_MIN or page > page_count:
                    raise PageOutOfRangeError(page, page_count)

            font: Optional[FontResource] = None
            for page, items in grouped.items():
                page_size = handle.page_size(page)
                for overlay in items:
                    normalized = await normalize_image_async(overlay.image_payload)
                    image = handle.embed_image(normalized.data)
                    x, y = to_output_origin(overlay.position, overlay.size, page_size)
                    handle.draw_image(page, image, x, y, overlay.size.width, overlay.size.height)
                    stats["images"] += 1

                    if overlay.kind is OverlayKind.SIGNATURE and overlay.timestamp_visible:
                        if font is None:
                            font = handle.embed_standard_font(STYLE_TIMESTAMP_FONT_NAME)
                        self._draw_timestamp(handle, page, page_size, overlay, font)
                        stats["timestamps"] += 1
                stats["pages"] += 1
                logger.info("第 %s 页已写入 %s 个覆盖物", page, len(items))

            # 挂起点：序列化
            await asyncio.sleep(0)
            data = handle.serialize()
        finally:
            handle.close()

        self.last_compose_stats = stats
        return data

    @staticmethod
    def _draw_timestamp(handle: DocumentHandle, page: int, page_size, overlay, font: FontResource) -> None:
        tx, ty = to_output_origin_text(overlay.timestamp_position, page_size)
        handle.draw_text(
            page,
            format_timestamp_text(overlay.created_at),
            tx,
            ty,
            overlay.timestamp_font_size,
            font,
            STYLE_TIMESTAMP_COLOR_RGB,
        )


def compose(source_bytes: bytes, overlays: OverlaySource, engine: str = CONST_ENGINE_DEFAULT) -> bytes:
    """便捷入口：`PDFComposer(engine).compose(...)`。"""
    return PDFComposer(engine).compose(source_bytes, overlays)


async def compose_async(source_bytes: bytes, overlays: OverlaySource, engine: str = CONST_ENGINE_DEFAULT) -> bytes:
    return await PDFComposer(engine).compose_async(source_bytes, overlays)


__all__ = [
    "PDFComposer",
    "compose",
    "compose_async",
]

"""
文件路径：docsign/overlay_store.py

模块职责：
- 保存签名 / 印章覆盖物实例及其按页的百分比几何信息（纯数据 + 变更操作，无 IO）。
- 为界面提供按页查询，为合成流程提供按页分组的只读快照。

约定：
- 覆盖物为不可变 dataclass，所有变更通过 `dataclasses.replace` 替换存储中的实例，
  因此交给调用方的对象即为快照，不会被后续编辑影响。
- 覆盖物类型由 `kind` 显式标记（OverlayKind），下游按标记分派，不探测字段。
- 以未知 ID（或类型不符的 ID）调用变更操作一律静默忽略。
- 位置一律钳制到 [0,100]×[0,100]；尺寸与时间戳字号钳制到默认值的 0.5~2 倍。

变量引用说明（来自 docsign/variables.py）：
- STYLE_SIGNATURE_*, STYLE_STAMP_*, STYLE_TIMESTAMP_*, STYLE_RESIZE_SCALE_*
- CONST_SIGNATURE_ID_PREFIX, CONST_STAMP_ID_PREFIX, CONST_PAGE_INDEX_MIN
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from .components import (
    Position,
    Size,
    apply_percent_delta,
    clamp_position,
    clamp_size,
    get_logger,
)
from .variables import (
    CONST_PAGE_INDEX_MIN,
    CONST_SIGNATURE_ID_PREFIX,
    CONST_STAMP_ID_PREFIX,
    STYLE_RESIZE_SCALE_MAX,
    STYLE_RESIZE_SCALE_MIN,
    STYLE_SIGNATURE_POSITION_DEFAULT,
    STYLE_SIGNATURE_SIZE_DEFAULT,
    STYLE_STAMP_POSITION_DEFAULT,
    STYLE_STAMP_SIZE_DEFAULT,
    STYLE_TIMESTAMP_FONT_SIZE_DEFAULT,
    STYLE_TIMESTAMP_POSITION_DEFAULT,
)


logger = get_logger(__name__)

ImagePayload = Union[str, bytes]


class OverlayKind(str, Enum):
    SIGNATURE = "signature"
    STAMP = "stamp"


@dataclass(frozen=True)
class SignatureOverlay:
    """签名覆盖物：图片 + 可独立定位的签署时间戳。

    属性：
        id: 唯一标识，创建后不可变。
        image_payload: 图片数据（data URI 或原始字节），创建后不可变。
        page: 所在页（1 基）。
        position: 图片左上角的百分比位置。
        size: 图片尺寸（pt）。
        seq: 插入序号，用于稳定排序。
        created_at: 签署时间（由调用方注入，非导出时刻）。
        timestamp_position: 时间戳文字的百分比位置。
        timestamp_font_size: 时间戳字号（pt）。
        timestamp_visible: 是否绘制时间戳。
    """

    id: str
    image_payload: ImagePayload = field(repr=False)
    page: int
    position: Position
    size: Size
    seq: int
    created_at: datetime
    timestamp_position: Position
    timestamp_font_size: float
    timestamp_visible: bool = True
    kind: OverlayKind = field(default=OverlayKind.SIGNATURE, init=False)


@dataclass(frozen=True)
class StampOverlay:
    """印章覆盖物，仅包含通用字段。"""

    id: str
    image_payload: ImagePayload = field(repr=False)
    page: int
    position: Position
    size: Size
    seq: int
    kind: OverlayKind = field(default=OverlayKind.STAMP, init=False)


Overlay = Union[SignatureOverlay, StampOverlay]

_DEFAULT_SIZES: Dict[OverlayKind, Tuple[float, float]] = {
    OverlayKind.SIGNATURE: STYLE_SIGNATURE_SIZE_DEFAULT,
    OverlayKind.STAMP: STYLE_STAMP_SIZE_DEFAULT,
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _validate_page(page: int) -> int:
    page_i = int(page)
    if page_i < CONST_PAGE_INDEX_MIN:
        raise ValueError(f"页码必须 >= {CONST_PAGE_INDEX_MIN}：{page}")
    return page_i


def clamp_overlay_size(kind: OverlayKind, size: Tuple[float, float]) -> Size:
    """按覆盖物类型的默认尺寸钳制缩放范围。"""
    return clamp_size(size, _DEFAULT_SIZES[kind], STYLE_RESIZE_SCALE_MIN, STYLE_RESIZE_SCALE_MAX)


def clamp_timestamp_font_size(font_size: float) -> float:
    """时间戳字号钳制到默认字号的 0.5~2 倍。"""
    low = STYLE_TIMESTAMP_FONT_SIZE_DEFAULT * STYLE_RESIZE_SCALE_MIN
    high = STYLE_TIMESTAMP_FONT_SIZE_DEFAULT * STYLE_RESIZE_SCALE_MAX
    return max(low, min(high, float(font_size)))


class OverlayStore:
    """覆盖物集合的唯一持有者。

    用法示例：
        store = OverlayStore()
        sig_id = store.add_signature("data:image/png;base64,...", page=1)
        store.move_signature(sig_id, (20, 80))
        grouped = store.all_overlays_grouped_by_page()
    """

    def __init__(self, now: Optional[Callable[[], datetime]] = None) -> None:
        # dict 保持插入顺序：签名与印章共用一个有序容器
        self._overlays: Dict[str, Overlay] = {}
        self._seq = itertools.count(1)
        self._now = now or _utc_now

    # -----------------------------
    # 基本查询
    # -----------------------------
    @property
    def clock(self) -> Callable[[], datetime]:
        """新增签名未指定 created_at 时使用的时钟。"""
        return self._now

    def __len__(self) -> int:
        return len(self._overlays)

    def __iter__(self) -> Iterator[Overlay]:
        return iter(list(self._overlays.values()))

    def __contains__(self, overlay_id: object) -> bool:
        return overlay_id in self._overlays

    def get(self, overlay_id: str) -> Optional[Overlay]:
        return self._overlays.get(overlay_id)

    def signatures(self) -> Tuple[SignatureOverlay, ...]:
        return tuple(o for o in self._overlays.values() if o.kind is OverlayKind.SIGNATURE)

    def stamps(self) -> Tuple[StampOverlay, ...]:
        return tuple(o for o in self._overlays.values() if o.kind is OverlayKind.STAMP)

    def overlays_for_page(self, page: int) -> Tuple[Overlay, ...]:
        """返回锚定在指定页的全部签名与印章（插入顺序），供界面展示与编辑。"""
        return tuple(o for o in self._overlays.values() if o.page == page)

    def all_overlays_grouped_by_page(self) -> Dict[int, Tuple[Overlay, ...]]:
        """按页分组的只读快照，仅供合成使用。

        返回：
            {页码: (覆盖物, ...)}；键按页码升序，组内按插入顺序，不包含无覆盖物的页。
        """
        buckets: Dict[int, List[Overlay]] = {}
        for overlay in sorted(self._overlays.values(), key=lambda o: o.seq):
            buckets.setdefault(overlay.page, []).append(overlay)
        return {page: tuple(buckets[page]) for page in sorted(buckets)}

    # -----------------------------
    # 创建与删除
    # -----------------------------
    def _next_id(self, prefix: str) -> Tuple[str, int]:
        # 签名与印章共用序号，ID 在整个集合内唯一
        seq = next(self._seq)
        return f"{prefix}-{seq}", seq

    def add_signature(
        self,
        image_payload: ImagePayload,
        page: int,
        created_at: Optional[datetime] = None,
    ) -> str:
        """新增签名，使用默认位置/尺寸与可见时间戳，返回新 ID。

        参数：
            image_payload: 绘制控件输出的图片数据。
            page: 所在页（1 基，通常为当前浏览页）。
            created_at: 签署时间；None 时取注入时钟的当前时间。
        """
        overlay_id, seq = self._next_id(CONST_SIGNATURE_ID_PREFIX)
        overlay = SignatureOverlay(
            id=overlay_id,
            image_payload=image_payload,
            page=_validate_page(page),
            position=Position(*STYLE_SIGNATURE_POSITION_DEFAULT),
            size=Size(*STYLE_SIGNATURE_SIZE_DEFAULT),
            seq=seq,
            created_at=created_at if created_at is not None else self._now(),
            timestamp_position=Position(*STYLE_TIMESTAMP_POSITION_DEFAULT),
            timestamp_font_size=STYLE_TIMESTAMP_FONT_SIZE_DEFAULT,
            timestamp_visible=True,
        )
        self._overlays[overlay_id] = overlay
        logger.info("新增签名：%s (page=%s)", overlay_id, overlay.page)
        return overlay_id

    def add_stamp(self, image_payload: ImagePayload, page: int) -> str:
        """新增印章，使用默认位置 (50,50) 与尺寸 100×100，返回新 ID。"""
        overlay_id, seq = self._next_id(CONST_STAMP_ID_PREFIX)
        overlay = StampOverlay(
            id=overlay_id,
            image_payload=image_payload,
            page=_validate_page(page),
            position=Position(*STYLE_STAMP_POSITION_DEFAULT),
            size=Size(*STYLE_STAMP_SIZE_DEFAULT),
            seq=seq,
        )
        self._overlays[overlay_id] = overlay
        logger.info("新增印章：%s (page=%s)", overlay_id, overlay.page)
        return overlay_id

    def add_overlays(self, overlays: Iterable[Overlay]) -> List[str]:
        """按顺序复制一批覆盖物（如另一集合中暂存的清单导入结果），重新分配 ID 与插入序号。

        返回：
            新 ID 列表，与输入顺序一致。
        """
        new_ids: List[str] = []
        for overlay in overlays:
            prefix = CONST_SIGNATURE_ID_PREFIX if overlay.kind is OverlayKind.SIGNATURE else CONST_STAMP_ID_PREFIX
            overlay_id, seq = self._next_id(prefix)
            self._overlays[overlay_id] = replace(overlay, id=overlay_id, seq=seq)
            new_ids.append(overlay_id)
        if new_ids:
            logger.info("已导入 %s 个覆盖物", len(new_ids))
        return new_ids

    def remove(self, overlay_id: str) -> None:
        """删除覆盖物（不区分类型），重复删除无副作用。"""
        if self._overlays.pop(overlay_id, None) is not None:
            logger.info("已删除覆盖物：%s", overlay_id)

    def clear(self) -> None:
        self._overlays.clear()

    # -----------------------------
    # 变更操作（未知 ID 静默忽略）
    # -----------------------------
    def _lookup(self, overlay_id: str, kind: Optional[OverlayKind] = None) -> Optional[Overlay]:
        overlay = self._overlays.get(overlay_id)
        if overlay is None or (kind is not None and overlay.kind is not kind):
            logger.debug("忽略对未知覆盖物的操作：%s", overlay_id)
            return None
        return overlay

    def _replace(self, overlay: Overlay, **changes) -> None:
        self._overlays[overlay.id] = replace(overlay, **changes)

    def _move(self, overlay_id: str, kind: OverlayKind, position: Tuple[float, float]) -> None:
        overlay = self._lookup(overlay_id, kind)
        if overlay is not None:
            self._replace(overlay, position=clamp_position(position))

    def _resize(self, overlay_id: str, kind: OverlayKind, size: Tuple[float, float]) -> None:
        overlay = self._lookup(overlay_id, kind)
        if overlay is not None:
            self._replace(overlay, size=clamp_overlay_size(kind, size))

    def move_signature(self, overlay_id: str, position: Tuple[float, float]) -> None:
        self._move(overlay_id, OverlayKind.SIGNATURE, position)

    def resize_signature(self, overlay_id: str, size: Tuple[float, float]) -> None:
        self._resize(overlay_id, OverlayKind.SIGNATURE, size)

    def move_stamp(self, overlay_id: str, position: Tuple[float, float]) -> None:
        self._move(overlay_id, OverlayKind.STAMP, position)

    def resize_stamp(self, overlay_id: str, size: Tuple[float, float]) -> None:
        self._resize(overlay_id, OverlayKind.STAMP, size)

    def move_by(self, overlay_id: str, dx: float, dy: float) -> None:
        """按百分比增量移动覆盖物（拖拽结束时调用），不区分类型。"""
        overlay = self._lookup(overlay_id)
        if overlay is not None:
            self._replace(overlay, position=apply_percent_delta(overlay.position, dx, dy))

    def reassign_page(self, overlay_id: str, page: int) -> None:
        """将覆盖物改挂到另一页；页码非法时抛 ValueError。"""
        page_i = _validate_page(page)
        overlay = self._lookup(overlay_id)
        if overlay is not None:
            self._replace(overlay, page=page_i)

    # -----------------------------
    # 时间戳相关（仅对签名生效）
    # -----------------------------
    def move_timestamp(self, signature_id: str, position: Tuple[float, float]) -> None:
        overlay = self._lookup(signature_id, OverlayKind.SIGNATURE)
        if overlay is not None:
            self._replace(overlay, timestamp_position=clamp_position(position))

    def move_timestamp_by(self, signature_id: str, dx: float, dy: float) -> None:
        overlay = self._lookup(signature_id, OverlayKind.SIGNATURE)
        if overlay is not None:
            self._replace(overlay, timestamp_position=apply_percent_delta(overlay.timestamp_position, dx, dy))

    def resize_timestamp(self, signature_id: str, font_size: float) -> None:
        overlay = self._lookup(signature_id, OverlayKind.SIGNATURE)
        if overlay is not None:
            self._replace(overlay, timestamp_font_size=clamp_timestamp_font_size(font_size))

    def update_timestamp(self, signature_id: str, created_at: datetime, visible: bool) -> None:
        """同时更新签署时间与可见性（时间戳编辑器的统一回调）。"""
        overlay = self._lookup(signature_id, OverlayKind.SIGNATURE)
        if overlay is not None:
            self._replace(overlay, created_at=created_at, timestamp_visible=bool(visible))

    def set_timestamp_date(self, signature_id: str, year: int, month: int, day: int) -> None:
        """仅替换签署时间的日期部分，时分秒保持不变。"""
        overlay = self._lookup(signature_id, OverlayKind.SIGNATURE)
        if overlay is not None:
            created_at = overlay.created_at.replace(year=int(year), month=int(month), day=int(day))
            self.update_timestamp(signature_id, created_at, overlay.timestamp_visible)

    def set_timestamp_time(self, signature_id: str, hour: int, minute: int) -> None:
        """仅替换签署时间的时、分，日期与秒保持不变。"""
        overlay = self._lookup(signature_id, OverlayKind.SIGNATURE)
        if overlay is not None:
            created_at = overlay.created_at.replace(hour=int(hour), minute=int(minute))
            self.update_timestamp(signature_id, created_at, overlay.timestamp_visible)

    def toggle_timestamp(self, signature_id: str) -> None:
        overlay = self._lookup(signature_id, OverlayKind.SIGNATURE)
        if overlay is not None:
            self.update_timestamp(signature_id, overlay.created_at, not overlay.timestamp_visible)


__all__ = [
    "OverlayKind",
    "SignatureOverlay",
    "StampOverlay",
    "Overlay",
    "OverlayStore",
    "clamp_overlay_size",
    "clamp_timestamp_font_size",
]

"""
文件路径：docsign/data_handler.py

模块职责：
- 读取签章清单 JSON（有序 overlays 列表或签名 / 印章列表），构建 OverlayStore，供 CLI 导出使用。
- 读取本地图片文件并转换为 data URI（与上传控件一致：仅限常见位图扩展名，且不超过 10MB）。

说明：
- 仅依赖标准库、`docsign/overlay_store.py` 与 `docsign/variables.py`，不直接依赖渲染模块。

变量引用说明（来自 docsign/variables.py）：
- PATH_DEFAULT_OVERLAYS_JSON, CONST_ENCODING
- CONST_IMAGE_MAX_BYTES, CONST_IMAGE_ALLOWED_SUFFIXES, CONST_IMAGE_MIME_BY_SUFFIX
- ERR_CONFIG_LOAD_FAILED, ERR_DATA_INVALID, ERR_FILE_NOT_FOUND

组件调用说明（供业务模块）：
- load_image_payload：图片文件 -> data URI
- load_overlays_json：清单 JSON -> OverlayStore
"""

from __future__ import annotations

import base64
import json
from datetime import datetime
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple

from .components import ErrorHandler, get_logger
from .overlay_store import OverlayKind, OverlayStore
from .variables import (
    PATH_DEFAULT_OVERLAYS_JSON,
    CONST_ENCODING,
    CONST_IMAGE_MAX_BYTES,
    CONST_IMAGE_ALLOWED_SUFFIXES,
    CONST_IMAGE_MIME_BY_SUFFIX,
    ERR_CONFIG_LOAD_FAILED,
    ERR_DATA_INVALID,
    ERR_FILE_NOT_FOUND,
)


logger = get_logger(__name__)

_MIME_BY_SUFFIX = dict(CONST_IMAGE_MIME_BY_SUFFIX)


def _json_loads_strip_bom(content: str):
    """解析 JSON 字符串，自动去除 UTF-8 BOM。"""
    if content.startswith("\ufeff"):
        content = content.lstrip("\ufeff")
    return json.loads(content)


def _invalid(message: str) -> RuntimeError:
    return RuntimeError(ErrorHandler.format_error(ERR_DATA_INVALID, message))


def load_image_payload(path: Path) -> str:
    """读取图片文件并返回 data URI。

    参数：
        path: 图片路径，扩展名须为 png/jpg/jpeg/gif/bmp。

    返回：
        形如 "data:image/png;base64,...." 的字符串。

    异常：
        RuntimeError: 文件不存在、扩展名不支持或超过大小上限。
    """
    p = Path(path)
    if not p.exists() or not p.is_file():
        raise RuntimeError(ErrorHandler.format_error(ERR_FILE_NOT_FOUND, f"图片文件不存在: {p}"))
    suffix = p.suffix.lower()
    if suffix not in CONST_IMAGE_ALLOWED_SUFFIXES:
        raise _invalid(f"不支持的图片格式: {p.name}（可选：{', '.join(CONST_IMAGE_ALLOWED_SUFFIXES)}）")
    size = p.stat().st_size
    if size > CONST_IMAGE_MAX_BYTES:
        raise _invalid(f"图片超过大小上限 {CONST_IMAGE_MAX_BYTES // (1024 * 1024)}MB: {p.name} ({size} bytes)")

    encoded = base64.b64encode(p.read_bytes()).decode("ascii")
    return f"data:{_MIME_BY_SUFFIX[suffix]};base64,{encoded}"


def _resolve_image(value: Any, base_dir: Path) -> str:
    """清单中的 image 字段：data URI 原样保留，否则视为相对清单目录的文件路径。"""
    if not isinstance(value, str) or not value.strip():
        raise _invalid("清单项缺少 image 字段")
    text = value.strip()
    if text.startswith("data:"):
        return text
    candidate = Path(text)
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    return load_image_payload(candidate)


def _parse_pair(item: Mapping[str, Any], field: str, keys: Tuple[str, str]) -> Optional[Tuple[float, float]]:
    raw = item.get(field)
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise _invalid(f"{field} 需为对象，例如 {{\"{keys[0]}\": 0, \"{keys[1]}\": 0}}")
    try:
        return float(raw[keys[0]]), float(raw[keys[1]])
    except (KeyError, TypeError, ValueError) as exc:
        raise _invalid(f"{field} 字段非法: {raw}") from exc


def _parse_page(item: Mapping[str, Any]) -> int:
    raw = item.get("page", 1)
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise _invalid(f"page 需为正整数: {raw!r}")
    return raw


def _parse_created_at(raw: Any) -> Optional[datetime]:
    if raw is None:
        return None
    text = str(raw).strip()
    # fromisoformat 在旧版本解释器上不接受 "Z" 后缀
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise _invalid(f"created_at 不是 ISO 8601 时间: {raw!r}") from exc


def _apply_signature(store: OverlayStore, item: Mapping[str, Any], base_dir: Path) -> str:
    sig_id = store.add_signature(
        _resolve_image(item.get("image"), base_dir),
        page=_parse_page(item),
        created_at=_parse_created_at(item.get("created_at")),
    )
    position = _parse_pair(item, "position", ("x", "y"))
    if position is not None:
        store.move_signature(sig_id, position)
    size = _parse_pair(item, "size", ("width", "height"))
    if size is not None:
        store.resize_signature(sig_id, size)

    stamp_cfg = item.get("timestamp") or {}
    if not isinstance(stamp_cfg, Mapping):
        raise _invalid("timestamp 需为对象")
    ts_position = _parse_pair(stamp_cfg, "position", ("x", "y"))
    if ts_position is not None:
        store.move_timestamp(sig_id, ts_position)
    if stamp_cfg.get("font_size") is not None:
        try:
            store.resize_timestamp(sig_id, float(stamp_cfg["font_size"]))
        except (TypeError, ValueError) as exc:
            raise _invalid(f"timestamp.font_size 非法: {stamp_cfg['font_size']!r}") from exc
    if stamp_cfg.get("visible") is False:
        store.toggle_timestamp(sig_id)
    return sig_id


def _apply_stamp(store: OverlayStore, item: Mapping[str, Any], base_dir: Path) -> str:
    stamp_id = store.add_stamp(_resolve_image(item.get("image"), base_dir), page=_parse_page(item))
    position = _parse_pair(item, "position", ("x", "y"))
    if position is not None:
        store.move_stamp(stamp_id, position)
    size = _parse_pair(item, "size", ("width", "height"))
    if size is not None:
        store.resize_stamp(stamp_id, size)
    return stamp_id


_APPLY_BY_KIND = {
    OverlayKind.SIGNATURE.value: _apply_signature,
    OverlayKind.STAMP.value: _apply_stamp,
}


def _manifest_items(data: Mapping[str, Any]) -> List[Tuple[str, int, Mapping[str, Any]]]:
    """按插入顺序展开清单项：先 overlays（逐项 kind），再 signatures，最后 stamps。

    返回：
        [(kind, 序号, 项), ...]，序号为该项在所属数组中的 1 基位置。
    """
    expanded: List[Tuple[str, int, Mapping[str, Any]]] = []
    for field, kind in (("overlays", None), ("signatures", OverlayKind.SIGNATURE.value), ("stamps", OverlayKind.STAMP.value)):
        items = data.get(field)
        if items is None:
            continue
        if not isinstance(items, list):
            raise _invalid(f"{field} 需为数组")
        for index, item in enumerate(items, start=1):
            if not isinstance(item, dict):
                raise _invalid(f"{field} 第 {index} 项需为对象")
            item_kind = kind if kind is not None else item.get("kind")
            if not isinstance(item_kind, str) or item_kind not in _APPLY_BY_KIND:
                raise _invalid(f"{field} 第 {index} 项的 kind 需为 signature 或 stamp: {item_kind!r}")
            expanded.append((item_kind, index, item))
    return expanded


def load_overlays_json(config_path: Optional[Path] = None, store: Optional[OverlayStore] = None) -> OverlayStore:
    """加载签章清单 JSON 并写入 OverlayStore。

    结构：
        {"overlays": [{"kind": "stamp", ...}, {"kind": "signature", ...}],
         "signatures": [{...}, ...], "stamps": [{...}, ...]}
    三个数组均可省略。`overlays` 中签名与印章可交错，按文件顺序决定同页的绘制先后；
    之后依次加入 signatures、stamps。位置、尺寸、字号沿用 OverlayStore 的钳制规则。

    参数：
        config_path: 清单路径；默认读取 `examples/overlays.json`。
        store: 追加到已有集合；None 时新建。全部项校验通过后才写入，任一项非法则集合保持不变。

    返回：
        写入后的 OverlayStore。

    异常：
        RuntimeError: 文件无法读取或解析（ERR_CONFIG_LOAD_FAILED），内容非法（ERR_DATA_INVALID）。
    """
    path = Path(config_path or PATH_DEFAULT_OVERLAYS_JSON)
    try:
        data = _json_loads_strip_bom(path.read_text(encoding=CONST_ENCODING))
    except (OSError, ValueError) as exc:
        raise RuntimeError(f"[{ERR_CONFIG_LOAD_FAILED}] 配置加载失败: {exc}") from exc

    if not isinstance(data, dict):
        raise _invalid("清单 JSON 需为包含 overlays / signatures / stamps 数组的对象")

    # 先写入暂存集合，全部成功后再并入目标集合
    staged = OverlayStore(now=store.clock if store is not None else None)
    base_dir = path.parent
    for kind, index, item in _manifest_items(data):
        try:
            _APPLY_BY_KIND[kind](staged, item, base_dir)
        except ValueError as exc:
            # 页码非法等由 OverlayStore 抛出
            raise _invalid(f"{kind} 第 {index} 项非法: {exc}") from exc

    if store is None:
        target = staged
    else:
        target = store
        target.add_overlays(staged)

    logger.info(
        "已加载签章清单：%s（签名 %s 个，印章 %s 个）",
        path,
        len(staged.signatures()),
        len(staged.stamps()),
    )
    return target


__all__ = [
    "load_image_payload",
    "load_overlays_json",
]

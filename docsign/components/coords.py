"""
文件路径：docsign/components/coords.py

说明：坐标换算相关纯函数。

- 界面坐标：页面百分比（0~100），原点左上，向下为正；描述覆盖物左上角。
- 输出坐标：PDF 页面点（pt），原点左下，向上为正（ReportLab / PDF 原生坐标系）。
- 仅翻转位置的 y 分量，尺寸不翻转；图片锚点需再减去自身高度，使其视觉上沿落在指定百分比处。
"""

from __future__ import annotations

from typing import NamedTuple, Tuple

from ..variables import CONST_PERCENT_MAX, CONST_PERCENT_MIN


class Position(NamedTuple):
    """百分比位置（左上原点）。"""

    x: float
    y: float


class Size(NamedTuple):
    """尺寸（pt）。"""

    width: float
    height: float


class PageSize(NamedTuple):
    """页面物理尺寸（pt）。"""

    width: float
    height: float


def clamp_percent(value: float) -> float:
    """将单个百分比值限制在 [0, 100]。"""
    return max(CONST_PERCENT_MIN, min(CONST_PERCENT_MAX, float(value)))


def clamp_position(position: Tuple[float, float]) -> Position:
    """将位置钳制到 [0,100]×[0,100]，越界不报错。"""
    x, y = position
    return Position(clamp_percent(x), clamp_percent(y))


def clamp_size(
    size: Tuple[float, float],
    default_size: Tuple[float, float],
    min_scale: float,
    max_scale: float,
) -> Size:
    """将尺寸限制在默认尺寸的 [min_scale, max_scale] 倍之间。

    参数：
        size: 期望尺寸 (width, height)。
        default_size: 该类覆盖物的默认尺寸。
        min_scale, max_scale: 缩放倍率范围。
    返回：
        钳制后的 Size；零或负数尺寸会被抬升到下限。
    """
    width, height = size
    dw, dh = default_size
    return Size(
        max(dw * min_scale, min(dw * max_scale, float(width))),
        max(dh * min_scale, min(dh * max_scale, float(height))),
    )


def apply_percent_delta(position: Tuple[float, float], dx: float, dy: float) -> Position:
    """对百分比位置应用拖拽增量并钳制。"""
    x, y = position
    return clamp_position((float(x) + float(dx), float(y) + float(dy)))


def pixel_delta_to_percent(
    dx_px: float,
    dy_px: float,
    container_width: float,
    container_height: float,
) -> Tuple[float, float]:
    """将屏幕像素拖拽增量换算为百分比增量。

    容器宽或高为 0（尚未布局）时对应方向的增量视为 0。
    """
    dx = (float(dx_px) / container_width) * 100.0 if container_width else 0.0
    dy = (float(dy_px) / container_height) * 100.0 if container_height else 0.0
    return dx, dy


def to_output_origin(
    position: Tuple[float, float],
    size: Tuple[float, float],
    page_size: Tuple[float, float],
) -> Tuple[float, float]:
    """计算图片覆盖物在输出坐标系中的左下角锚点。

    参数：
        position: 百分比位置（覆盖物左上角）。
        size: 覆盖物尺寸（pt）。
        page_size: 页面尺寸（pt）。
    返回：
        (x, y)，其中 y = H - (py/100)*H - height。

    示例：
        >>> to_output_origin((50, 50), (100, 100), (612, 792))
        (306.0, 296.0)
    """
    px, py = position
    _, height = size
    page_width, page_height = page_size
    x = (float(px) / 100.0) * float(page_width)
    y = float(page_height) - (float(py) / 100.0) * float(page_height) - float(height)
    return x, y


def to_output_origin_text(
    position: Tuple[float, float],
    page_size: Tuple[float, float],
) -> Tuple[float, float]:
    """计算文字锚点（基线起点）在输出坐标系中的位置，不减去高度。"""
    px, py = position
    page_width, page_height = page_size
    x = (float(px) / 100.0) * float(page_width)
    y = float(page_height) - (float(py) / 100.0) * float(page_height)
    return x, y


__all__ = [
    "Position",
    "Size",
    "PageSize",
    "clamp_percent",
    "clamp_position",
    "clamp_size",
    "apply_percent_delta",
    "pixel_delta_to_percent",
    "to_output_origin",
    "to_output_origin_text",
]

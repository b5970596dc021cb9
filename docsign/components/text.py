"""
文件路径：docsign/components/text.py

说明：时间戳文字格式化。

输出形如 "Signed on: May 1, 2024, 10:30:00 AM, UTC"。
月份名与上下午标记固定为英文，不依赖系统 locale，保证同一输入得到同一文本。
"""

from __future__ import annotations

from datetime import datetime

from ..variables import CONST_MONTH_NAMES_EN, STYLE_TIMESTAMP_PREFIX


def _timezone_label(moment: datetime) -> str:
    name = moment.tzname()
    if name:
        return name
    offset = moment.utcoffset()
    if offset is None:
        return "UTC"
    minutes = int(offset.total_seconds() // 60)
    sign = "+" if minutes >= 0 else "-"
    minutes = abs(minutes)
    return f"UTC{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def format_long_date(moment: datetime) -> str:
    """格式化长日期，如 "May 1, 2024"。"""
    return f"{CONST_MONTH_NAMES_EN[moment.month - 1]} {moment.day}, {moment.year}"


def format_clock_time(moment: datetime) -> str:
    """格式化 12 小时制时间，如 "03:04:05 PM"。"""
    hour12 = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return f"{hour12:02d}:{moment.minute:02d}:{moment.second:02d} {meridiem}"


def format_timestamp_text(created_at: datetime) -> str:
    """生成签名时间戳文本。

    参数：
        created_at: 签名时间；无时区信息时按本地时区解释。
    返回：
        "Signed on: <长日期>, <时间>, <时区>"
    """
    moment = created_at if created_at.tzinfo is not None else created_at.astimezone()
    return (
        f"{STYLE_TIMESTAMP_PREFIX}{format_long_date(moment)}, "
        f"{format_clock_time(moment)}, {_timezone_label(moment)}"
    )


__all__ = [
    "format_long_date",
    "format_clock_time",
    "format_timestamp_text",
]

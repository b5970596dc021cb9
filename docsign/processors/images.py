"""
文件路径：docsign/processors/images.py

说明：图片归一化。

- 输入：上传/手写控件产出的任意位图数据（data URI 字符串或原始字节，JPEG/GIF/BMP/PNG 等）。
- 输出：统一的 PNG 字节，保持像素尺寸与透明通道，供各渲染引擎内嵌。
- 解码失败（空数据、损坏、编码不支持、像素数超过 Pillow 解压炸弹上限）抛 ImageDecodeError，由合成流程向上传播。
"""

from __future__ import annotations

import asyncio
import base64
import binascii
from dataclasses import dataclass
from io import BytesIO
from typing import Union
from urllib.parse import unquote_to_bytes

from PIL import Image, UnidentifiedImageError

from ..components import ImageDecodeError, get_logger
from ..variables import CONST_NORMALIZED_IMAGE_FORMAT, CONST_PNG_NATIVE_MODES


logger = get_logger(__name__)


@dataclass(frozen=True)
class NormalizedImage:
    """归一化后的 PNG 图片。"""

    data: bytes
    width: int
    height: int
    mode: str


def decode_payload(payload: Union[str, bytes, bytearray]) -> bytes:
    """将 data URI 或原始字节解析为图片字节。

    支持：
        - "data:image/jpeg;base64,...."（base64）
        - "data:image/svg+xml,...."（百分号编码；后续解码阶段会判定是否为位图）
        - bytes / bytearray 原样返回
    """
    if isinstance(payload, (bytes, bytearray)):
        raw = bytes(payload)
    elif isinstance(payload, str):
        text = payload.strip()
        if not text.startswith("data:"):
            raise ImageDecodeError("图片数据既不是 data URI 也不是字节串")
        header, sep, body = text.partition(",")
        if not sep:
            raise ImageDecodeError("data URI 缺少数据段")
        if header.endswith(";base64"):
            try:
                raw = base64.b64decode(body, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise ImageDecodeError(f"base64 数据非法：{exc}") from exc
        else:
            raw = unquote_to_bytes(body)
    else:
        raise ImageDecodeError(f"不支持的图片数据类型：{type(payload).__name__}")

    if not raw:
        raise ImageDecodeError("图片数据为空")
    return raw


def _to_png_mode(img: Image.Image) -> Image.Image:
    """选择 PNG 可无损保存的像素模式，保留透明度。"""
    if img.mode == "P":
        return img.convert("RGBA" if "transparency" in img.info else "RGB")
    if img.mode == "PA":
        return img.convert("RGBA")
    if img.mode in ("CMYK", "YCbCr", "LAB", "HSV"):
        return img.convert("RGB")
    if img.mode in CONST_PNG_NATIVE_MODES:
        return img
    return img.convert("RGBA")


def normalize_image(payload: Union[str, bytes, bytearray]) -> NormalizedImage:
    """解码任意位图并重新编码为 PNG。

    参数：
        payload: data URI 或原始图片字节。
    返回：
        NormalizedImage（PNG 字节与像素尺寸）。
    异常：
        ImageDecodeError: 数据为空、损坏或格式不支持。
    """
    raw = decode_payload(payload)
    try:
        with Image.open(BytesIO(raw)) as img:
            # 动图仅取首帧
            img.seek(0)
            img.load()
            converted = _to_png_mode(img)
            buf = BytesIO()
            converted.save(buf, format=CONST_NORMALIZED_IMAGE_FORMAT)
            width, height = converted.size
            mode = converted.mode
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as exc:
        raise ImageDecodeError(f"无法解码图片：{exc}") from exc

    logger.debug("图片已归一化为 PNG：%sx%s mode=%s (%s bytes)", width, height, mode, buf.tell())
    return NormalizedImage(data=buf.getvalue(), width=width, height=height, mode=mode)


async def normalize_image_async(payload: Union[str, bytes, bytearray]) -> NormalizedImage:
    """归一化的挂起点版本：在线程中解码，返回结果或抛出 ImageDecodeError。"""
    return await asyncio.to_thread(normalize_image, payload)


__all__ = [
    "NormalizedImage",
    "decode_payload",
    "normalize_image",
    "normalize_image_async",
]

"""
文件路径：docsign/variables.py

模块职责：
- 统一管理全局跨模块变量，确保模块化、无冲突、可追溯，可复用。
- 变量命名规范：{分类前缀}_{描述性名称}（全大写+下划线）。
  - PATH_：路径相关
  - STYLE_：样式相关
  - CONST_：通用常量
  - ERR_：错误码

使用说明：
- 业务模块严禁定义新的全局变量，必须从本模块导入所需常量。
- 目录路径均使用 pathlib.Path 对象表示，使用时如需字符串请显式 str() 转换。
"""

from pathlib import Path
from typing import Tuple


# =============================
# 路径（PATH_）
# =============================
# 项目根目录：定位到当前文件（variables.py）的上两级目录
PATH_ROOT: Path = Path(__file__).resolve().parents[1]

# 各功能目录
PATH_EXAMPLES_DIR: Path = PATH_ROOT / "examples"
PATH_OUTPUT_DIR: Path = PATH_ROOT / "output"
PATH_LOGS_DIR: Path = PATH_ROOT / "logs"

# 关键文件路径
PATH_DEFAULT_INPUT_PDF: Path = PATH_EXAMPLES_DIR / "blank_document.pdf"  # 示例空白PDF
PATH_DEFAULT_OVERLAYS_JSON: Path = PATH_EXAMPLES_DIR / "overlays.json"  # 示例签章清单
PATH_EXAMPLE_SIGNATURE_PNG: Path = PATH_EXAMPLES_DIR / "signature.png"  # 示例签名图片
PATH_EXAMPLE_STAMP_PNG: Path = PATH_EXAMPLES_DIR / "stamp.png"  # 示例印章图片
PATH_LOG_FILE: Path = PATH_LOGS_DIR / "app.log"  # 应用运行日志


# =============================
# 样式（STYLE_）
# =============================
# 时间戳文字：粗体标准字体 + 固定深灰色（0~1 浮点 RGB），不开放给用户配置
STYLE_TIMESTAMP_FONT_NAME: str = "Helvetica-Bold"
STYLE_TIMESTAMP_COLOR_RGB: Tuple[float, float, float] = (0.1, 0.1, 0.1)
STYLE_TIMESTAMP_PREFIX: str = "Signed on: "

# 签名默认几何（百分比位置 + 点为单位的尺寸）
STYLE_SIGNATURE_POSITION_DEFAULT: Tuple[float, float] = (50.0, 50.0)
STYLE_SIGNATURE_SIZE_DEFAULT: Tuple[float, float] = (200.0, 100.0)
STYLE_TIMESTAMP_POSITION_DEFAULT: Tuple[float, float] = (50.0, 60.0)
STYLE_TIMESTAMP_FONT_SIZE_DEFAULT: float = 10.0

# 印章默认几何
STYLE_STAMP_POSITION_DEFAULT: Tuple[float, float] = (50.0, 50.0)
STYLE_STAMP_SIZE_DEFAULT: Tuple[float, float] = (100.0, 100.0)

# 缩放范围：相对默认尺寸的倍率（签名、印章、时间戳字号共用）
STYLE_RESIZE_SCALE_MIN: float = 0.5
STYLE_RESIZE_SCALE_MAX: float = 2.0


# =============================
# 常量（CONST_）
# =============================
CONST_ENCODING: str = "utf-8"  # 文件读写默认编码
CONST_PERCENT_MIN: float = 0.0  # 百分比坐标下限
CONST_PERCENT_MAX: float = 100.0  # 百分比坐标上限
CONST_PAGE_INDEX_MIN: int = 1  # 页码从 1 开始

# 覆盖物 ID 前缀（签名 / 印章共用同一序号计数器，保证全局唯一）
CONST_SIGNATURE_ID_PREFIX: str = "sig"
CONST_STAMP_ID_PREFIX: str = "stamp"

# 渲染引擎
CONST_ENGINE_PYMUPDF: str = "pymupdf"
CONST_ENGINE_REPORTLAB: str = "reportlab"
CONST_ENGINE_DEFAULT: str = CONST_ENGINE_PYMUPDF
CONST_ENGINE_CHOICES: Tuple[str, ...] = (CONST_ENGINE_PYMUPDF, CONST_ENGINE_REPORTLAB)
# ReportLab 图层合并前的资源名前缀，避免与原页面资源重名
CONST_OVERLAY_RESOURCE_PREFIX: str = "DocSign"

# 图片归一化：统一输出格式
CONST_NORMALIZED_IMAGE_FORMAT: str = "PNG"
# PNG 可直接保存且不丢失信息的像素模式；其余模式需转换
CONST_PNG_NATIVE_MODES: Tuple[str, ...] = ("1", "L", "LA", "I", "I;16", "RGB", "RGBA")

# 图片上传限制（沿用原上传控件规则）
CONST_IMAGE_MAX_BYTES: int = 10 * 1024 * 1024
CONST_IMAGE_ALLOWED_SUFFIXES: Tuple[str, ...] = (".png", ".jpg", ".jpeg", ".gif", ".bmp")
CONST_IMAGE_MIME_BY_SUFFIX: Tuple[Tuple[str, str], ...] = (
    (".png", "image/png"),
    (".jpg", "image/jpeg"),
    (".jpeg", "image/jpeg"),
    (".gif", "image/gif"),
    (".bmp", "image/bmp"),
)

# 输出命名：沿用原应用的 "<原文件名>_signed.pdf"
CONST_DEFAULT_OUTPUT_SUFFIX: str = "_signed.pdf"
CONST_OUTPUT_PREFIX_DEFAULT: str = ""  # 留空表示使用输入文件名 stem
CONST_MAX_RETRY: int = 2  # 通用重试次数，仅用于输出文件写入等可重试 IO

# 时间戳文本：固定英文月份名，避免受系统 locale 影响
CONST_MONTH_NAMES_EN: Tuple[str, ...] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

# 示例文档页面尺寸（US Letter，pt）
CONST_EXAMPLE_PAGE_SIZE: Tuple[float, float] = (612.0, 792.0)
CONST_EXAMPLE_PAGE_COUNT: int = 2

# 启动时是否输出运行环境能力（PyMuPDF 版本）
CONST_LOG_PYMUPDF_CAPABILITIES_ON_STARTUP: bool = True

# 日志格式（供 logging.basicConfig 使用）
CONST_LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
CONST_LOG_DATEFMT: str = "%Y-%m-%d %H:%M:%S"


# =============================
# 错误码（ERR_）
# =============================
# 1xxx：文件/路径相关
ERR_FILE_NOT_FOUND: int = 1001  # 输入文件不存在
ERR_INVALID_PDF: int = 1002  # 非法或损坏的 PDF 文件
ERR_PATH_NOT_WRITABLE: int = 1003  # 目标路径不可写

# 2xxx：签章定位/图片相关
ERR_PAGE_INDEX_OUT_OF_RANGE: int = 2002  # 页面索引越界
ERR_IMAGE_DECODE_FAILED: int = 2004  # 图片解码失败
ERR_IMAGE_EMBED_FAILED: int = 2005  # 图片内嵌失败

# 3xxx：合成/写入相关
ERR_PDF_WRITE_FAILED: int = 3002  # PDF 写入失败
ERR_COMPOSITION_FAILED: int = 3003  # 签章合成失败

# 4xxx：配置/数据相关
ERR_CONFIG_LOAD_FAILED: int = 4001  # 配置加载失败
ERR_DATA_INVALID: int = 4002  # 输入数据非法


# =============================
# 导出声明
# =============================
__all__ = [
    # PATH_
    "PATH_ROOT",
    "PATH_EXAMPLES_DIR",
    "PATH_OUTPUT_DIR",
    "PATH_LOGS_DIR",
    "PATH_DEFAULT_INPUT_PDF",
    "PATH_DEFAULT_OVERLAYS_JSON",
    "PATH_EXAMPLE_SIGNATURE_PNG",
    "PATH_EXAMPLE_STAMP_PNG",
    "PATH_LOG_FILE",
    # STYLE_
    "STYLE_TIMESTAMP_FONT_NAME",
    "STYLE_TIMESTAMP_COLOR_RGB",
    "STYLE_TIMESTAMP_PREFIX",
    "STYLE_SIGNATURE_POSITION_DEFAULT",
    "STYLE_SIGNATURE_SIZE_DEFAULT",
    "STYLE_TIMESTAMP_POSITION_DEFAULT",
    "STYLE_TIMESTAMP_FONT_SIZE_DEFAULT",
    "STYLE_STAMP_POSITION_DEFAULT",
    "STYLE_STAMP_SIZE_DEFAULT",
    "STYLE_RESIZE_SCALE_MIN",
    "STYLE_RESIZE_SCALE_MAX",
    # CONST_
    "CONST_ENCODING",
    "CONST_PERCENT_MIN",
    "CONST_PERCENT_MAX",
    "CONST_PAGE_INDEX_MIN",
    "CONST_SIGNATURE_ID_PREFIX",
    "CONST_STAMP_ID_PREFIX",
    "CONST_ENGINE_PYMUPDF",
    "CONST_ENGINE_REPORTLAB",
    "CONST_ENGINE_DEFAULT",
    "CONST_ENGINE_CHOICES",
    "CONST_OVERLAY_RESOURCE_PREFIX",
    "CONST_NORMALIZED_IMAGE_FORMAT",
    "CONST_PNG_NATIVE_MODES",
    "CONST_IMAGE_MAX_BYTES",
    "CONST_IMAGE_ALLOWED_SUFFIXES",
    "CONST_IMAGE_MIME_BY_SUFFIX",
    "CONST_DEFAULT_OUTPUT_SUFFIX",
    "CONST_OUTPUT_PREFIX_DEFAULT",
    "CONST_MAX_RETRY",
    "CONST_MONTH_NAMES_EN",
    "CONST_EXAMPLE_PAGE_SIZE",
    "CONST_EXAMPLE_PAGE_COUNT",
    "CONST_LOG_PYMUPDF_CAPABILITIES_ON_STARTUP",
    "CONST_LOG_FORMAT",
    "CONST_LOG_DATEFMT",
    # ERR_
    "ERR_FILE_NOT_FOUND",
    "ERR_INVALID_PDF",
    "ERR_PATH_NOT_WRITABLE",
    "ERR_PAGE_INDEX_OUT_OF_RANGE",
    "ERR_IMAGE_DECODE_FAILED",
    "ERR_IMAGE_EMBED_FAILED",
    "ERR_PDF_WRITE_FAILED",
    "ERR_COMPOSITION_FAILED",
    "ERR_CONFIG_LOAD_FAILED",
    "ERR_DATA_INVALID",
]

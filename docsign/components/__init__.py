"""
文件路径：docsign/components/__init__.py

说明：
- 通用组件包入口：日志、文件操作、重试、错误体系、坐标换算、时间戳文本；
- 业务模块与测试统一使用 `from docsign.components import ...` 导入。
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Iterable, Optional, Type

from ..variables import (
    PATH_LOGS_DIR,
    PATH_OUTPUT_DIR,
    PATH_LOG_FILE,
    CONST_DEFAULT_OUTPUT_SUFFIX,
    CONST_OUTPUT_PREFIX_DEFAULT,
    CONST_LOG_FORMAT,
    CONST_LOG_DATEFMT,
    CONST_MAX_RETRY,
    ERR_PATH_NOT_WRITABLE,
    ERR_FILE_NOT_FOUND,
    ERR_PDF_WRITE_FAILED,
)

# 聚合导出：拆分后的子模块
from .coords import (
    PageSize,
    Position,
    Size,
    apply_percent_delta,
    clamp_percent,
    clamp_position,
    clamp_size,
    pixel_delta_to_percent,
    to_output_origin,
    to_output_origin_text,
)
from .errors import (
    CompositionError,
    DocSignError,
    ErrorHandler,
    ImageDecodeError,
    ImageEmbedError,
    PageOutOfRangeError,
    SourceDocumentError,
)
from .text import format_clock_time, format_long_date, format_timestamp_text


# =============================
# 日志工具
# =============================
_LOGGER_CONFIGURED: bool = False


def get_logger(name: str) -> logging.Logger:
    """获取 logger，首次调用时配置文件与控制台双输出。

    参数：
        name: 日志记录器名称（一般使用 __name__）。

    返回：
        logging.Logger 对象。
    """
    global _LOGGER_CONFIGURED
    if not _LOGGER_CONFIGURED:
        # 确保日志目录存在
        PATH_LOGS_DIR.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(PATH_LOG_FILE, encoding="utf-8")
        console_handler = logging.StreamHandler()
        logging.basicConfig(
            level=logging.INFO,
            format=CONST_LOG_FORMAT,
            datefmt=CONST_LOG_DATEFMT,
            handlers=[file_handler, console_handler],
        )
        _LOGGER_CONFIGURED = True
    return logging.getLogger(name)


# =============================
# 重试机制
# =============================
def retry_on_exception(
    retries: int = CONST_MAX_RETRY,
    exceptions: Iterable[Type[BaseException]] = (Exception,),
    delay_s: float = 0.2,
    backoff: float = 2.0,
) -> Callable[[Callable[..., object]], Callable[..., object]]:
    """装饰器：异常自动重试，含指数退避。

    注意：仅用于输出文件写入等外围 IO；合成流程内部不做任何重试。

    参数：
        retries: 重试次数（不含首次）。
        exceptions: 触发重试的异常类型集合。
        delay_s: 初始等待秒数。
        backoff: 每次重试的等待倍数。

    返回：
        包装后的可调用对象。
    """
    exc_types = tuple(exceptions)

    def decorator(func: Callable[..., object]) -> Callable[..., object]:
        def wrapper(*args, **kwargs):
            wait = delay_s
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except exc_types as exc:
                    if attempt >= retries:
                        raise
                    logger = get_logger(func.__module__)
                    logger.warning("操作失败，准备重试（第 %s 次）：%s", attempt + 1, exc)
                    time.sleep(wait)
                    wait *= backoff
                    attempt += 1

        return wrapper

    return decorator


# =============================
# 文件操作
# =============================
class FileHandler:
    """文件与路径相关的通用处理器。"""

    @staticmethod
    def ensure_project_dirs() -> None:
        """确保项目运行所需目录存在：logs/output。"""
        for d in (PATH_LOGS_DIR, PATH_OUTPUT_DIR):
            d.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def validate_readable_file(path: Path) -> None:
        """校验文件可读。

        参数：
            path: 文件路径。
        异常：
            FileNotFoundError: 文件不存在或不可读。
        """
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(ErrorHandler.format_error(ERR_FILE_NOT_FOUND, f"文件不存在或不可读: {path}"))

    @staticmethod
    def ensure_parent_writable(target: Path) -> None:
        """确保目标文件的父目录可写，不存在则创建。

        参数：
            target: 目标文件路径。
        异常：
            PermissionError: 目录不可写。
        """
        parent = target.parent
        parent.mkdir(parents=True, exist_ok=True)
        # Windows 上 os.access 可能不可靠，尝试创建临时文件验证
        marker = parent / f".__writable_check_{int(time.time()*1000)}"
        try:
            with open(marker, "w", encoding="utf-8") as f:  # noqa: P103
                f.write("ok")
        except OSError as exc:
            raise PermissionError(ErrorHandler.format_error(ERR_PATH_NOT_WRITABLE, f"目录不可写: {parent}")) from exc
        else:
            marker.unlink(missing_ok=True)

    @staticmethod
    def signed_output_path(
        input_pdf: Optional[Path],
        suffix: str = CONST_DEFAULT_OUTPUT_SUFFIX,
        prefix: Optional[str] = None,
        output_dir: Optional[Path] = None,
    ) -> Path:
        """生成签章后文档的输出路径，默认位于 output 目录。

        参数：
            input_pdf: 源 PDF 路径；若为 None，则使用 "document"。
            suffix: 输出文件名后缀（默认 "_signed.pdf"）。
            prefix: 自定义文件名前缀；若提供则覆盖 input_pdf 的 stem。
            output_dir: 自定义输出目录；None 则使用默认 PATH_OUTPUT_DIR。

        返回：
            输出路径，例如 output/contract_signed.pdf

        示例：
            >>> FileHandler.signed_output_path(Path("contract.pdf"), prefix="final")
            Path("output/final_signed.pdf")
        """
        target_dir = output_dir if output_dir is not None else PATH_OUTPUT_DIR
        target_dir.mkdir(parents=True, exist_ok=True)
        use_prefix = (prefix if prefix is not None else CONST_OUTPUT_PREFIX_DEFAULT).strip()
        if use_prefix:
            stem = use_prefix
        else:
            stem = input_pdf.stem if input_pdf is not None else "document"
        return target_dir / f"{stem}{suffix}"

    @staticmethod
    @retry_on_exception(exceptions=(OSError,))
    def write_bytes(target: Path, data: bytes) -> Path:
        """将字节写入目标文件（父目录自动创建），失败按全局次数重试。"""
        FileHandler.ensure_parent_writable(target)
        try:
            target.write_bytes(data)
        except OSError as exc:
            raise OSError(ErrorHandler.format_error(ERR_PDF_WRITE_FAILED, f"写入失败: {target}: {exc}")) from exc
        return target


# =============================
# 导出声明
# =============================
__all__ = [
    # 日志工具
    "get_logger",
    # 文件操作
    "FileHandler",
    # 重试
    "retry_on_exception",
    # 错误体系
    "ErrorHandler",
    "DocSignError",
    "SourceDocumentError",
    "PageOutOfRangeError",
    "ImageDecodeError",
    "ImageEmbedError",
    "CompositionError",
    # 坐标处理
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
    # 时间戳文本
    "format_long_date",
    "format_clock_time",
    "format_timestamp_text",
]

"""
文件路径：main.py

命令行入口：
- 功能：读取输入 PDF 与签章清单（或单个签名/印章图片），将签名、印章与签署时间戳写入文档，输出到 output 目录。
- 依赖：`docsign/pdf_composer.py`、`docsign/data_handler.py`、`docsign/overlay_store.py`、`docsign/components`、`docsign/variables.py`。

快速使用示例：
    # 1) 生成示例 PDF、签名图片、印章图片与签章清单
    python main.py --make-example

    # 2) 按清单签章（示例）
    python main.py --input examples/blank_document.pdf --overlays examples/overlays.json

    # 3) 直接放置一个签名（百分比坐标，左上角为原点）
    python main.py --input examples/blank_document.pdf --signature examples/signature.png --page 1 --x 10 --y 70

运行说明：
- 替换输入文件：使用 --input 指定你的 PDF 路径
- 调整签章位置：修改清单中的 position/size，或使用 --page/--x/--y
- 切换渲染引擎：--engine pymupdf|reportlab

变量引用说明（来自 docsign/variables.py）：
- PATH_DEFAULT_INPUT_PDF, PATH_DEFAULT_OVERLAYS_JSON, PATH_EXAMPLES_DIR
- PATH_EXAMPLE_SIGNATURE_PNG, PATH_EXAMPLE_STAMP_PNG
- CONST_ENGINE_CHOICES, CONST_ENGINE_DEFAULT, CONST_ENCODING
- CONST_EXAMPLE_PAGE_SIZE, CONST_EXAMPLE_PAGE_COUNT, CONST_LOG_PYMUPDF_CAPABILITIES_ON_STARTUP

组件调用说明：
- get_logger, FileHandler.ensure_project_dirs/validate_readable_file/signed_output_path/write_bytes
- load_overlays_json, load_image_payload
- PDFComposer.compose
"""

from __future__ import annotations

import argparse
import importlib.metadata
import json
from pathlib import Path
from typing import Optional

from docsign.components import CompositionError, FileHandler, get_logger
from docsign.data_handler import load_image_payload, load_overlays_json
from docsign.overlay_store import OverlayStore
from docsign.pdf_composer import PDFComposer
from docsign.variables import (
    PATH_DEFAULT_INPUT_PDF,
    PATH_DEFAULT_OVERLAYS_JSON,
    PATH_EXAMPLES_DIR,
    PATH_EXAMPLE_SIGNATURE_PNG,
    PATH_EXAMPLE_STAMP_PNG,
    CONST_ENCODING,
    CONST_ENGINE_CHOICES,
    CONST_ENGINE_DEFAULT,
    CONST_EXAMPLE_PAGE_COUNT,
    CONST_EXAMPLE_PAGE_SIZE,
    CONST_LOG_PYMUPDF_CAPABILITIES_ON_STARTUP,
)


logger = get_logger(__name__)


def _log_runtime_capabilities() -> None:
    """启动时输出运行环境信息：PyMuPDF 与 MuPDF 版本。

    - 变量引用：CONST_LOG_PYMUPDF_CAPABILITIES_ON_STARTUP
    - 组件调用：get_logger
    """
    if not CONST_LOG_PYMUPDF_CAPABILITIES_ON_STARTUP:
        return
    try:
        version: Optional[str] = importlib.metadata.version("PyMuPDF")
    except importlib.metadata.PackageNotFoundError:
        version = None
    try:
        import fitz  # type: ignore
    except ImportError as exc:
        logger.warning("无法检测 PyMuPDF 运行环境：%s", exc)
        return
    mupdf_version = getattr(fitz, "VersionFitz", None)
    logger.info("运行环境：PyMuPDF version=%s, MuPDF=%s", (version or "unknown"), (mupdf_version or "unknown"))


def _draw_example_signature(path: Path) -> None:
    """生成透明底的手写风格签名图片。"""
    from PIL import Image, ImageDraw

    img = Image.new("RGBA", (400, 200), (255, 255, 255, 0))
    draw = ImageDraw.Draw(img)
    stroke = [(30, 140), (70, 60), (100, 150), (140, 70), (170, 140), (210, 80), (250, 130), (300, 90), (370, 120)]
    draw.line(stroke, fill=(20, 30, 120, 255), width=6, joint="curve")
    draw.line([(40, 170), (360, 165)], fill=(20, 30, 120, 255), width=3)
    img.save(path, format="PNG")


def _draw_example_stamp(path: Path) -> None:
    """生成红色圆形印章图片。"""
    from PIL import Image, ImageDraw

    img = Image.new("RGBA", (300, 300), (255, 255, 255, 0))
    draw = ImageDraw.Draw(img)
    red = (200, 20, 20, 230)
    draw.ellipse((10, 10, 290, 290), outline=red, width=12)
    draw.ellipse((45, 45, 255, 255), outline=red, width=4)
    # 五角星
    draw.polygon([(150, 80), (168, 132), (222, 132), (178, 164), (195, 216), (150, 184), (105, 216), (122, 164), (78, 132), (132, 132)], fill=red)
    img.save(path, format="PNG")


def _ensure_example_files() -> Path:
    """若示例文件不存在，则在 `examples/` 下生成：空白 PDF、签名、印章与签章清单。

    返回：
        示例 PDF 路径。
    """
    from reportlab.pdfgen import canvas  # 延迟导入以加快 CLI 启动

    examples_dir = PATH_EXAMPLES_DIR
    examples_dir.mkdir(parents=True, exist_ok=True)

    pdf_path = PATH_DEFAULT_INPUT_PDF
    if not pdf_path.exists():
        width, height = CONST_EXAMPLE_PAGE_SIZE
        c = canvas.Canvas(str(pdf_path), pagesize=(width, height))
        for page in range(1, CONST_EXAMPLE_PAGE_COUNT + 1):
            c.setFont("Helvetica-Bold", 16)
            c.drawString(72, height - 72, "Service Agreement")
            c.setFont("Helvetica", 11)
            c.drawString(72, height - 100, f"Page {page} of {CONST_EXAMPLE_PAGE_COUNT}")
            # ReportLab 原点在左下：签名栏画在页面下部
            c.line(72, 180, 300, 180)
            c.drawString(72, 165, "Signature")
            c.showPage()
        c.save()
        logger.info("已生成示例 PDF：%s", pdf_path)

    if not PATH_EXAMPLE_SIGNATURE_PNG.exists():
        _draw_example_signature(PATH_EXAMPLE_SIGNATURE_PNG)
        logger.info("已生成示例签名：%s", PATH_EXAMPLE_SIGNATURE_PNG)
    if not PATH_EXAMPLE_STAMP_PNG.exists():
        _draw_example_stamp(PATH_EXAMPLE_STAMP_PNG)
        logger.info("已生成示例印章：%s", PATH_EXAMPLE_STAMP_PNG)

    if not PATH_DEFAULT_OVERLAYS_JSON.exists():
        manifest = {
            "signatures": [
                {
                    "image": PATH_EXAMPLE_SIGNATURE_PNG.name,
                    "page": 1,
                    "position": {"x": 12, "y": 66},
                    "size": {"width": 200, "height": 100},
                    "timestamp": {"position": {"x": 12, "y": 82}, "font_size": 10, "visible": True},
                }
            ],
            "stamps": [
                {
                    "image": PATH_EXAMPLE_STAMP_PNG.name,
                    "page": CONST_EXAMPLE_PAGE_COUNT,
                    "position": {"x": 60, "y": 70},
                    "size": {"width": 100, "height": 100},
                }
            ],
        }
        PATH_DEFAULT_OVERLAYS_JSON.write_text(json.dumps(manifest, ensure_ascii=False, indent=2), encoding=CONST_ENCODING)
        logger.info("已生成示例签章清单：%s", PATH_DEFAULT_OVERLAYS_JSON)
    return pdf_path


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="PDF 签章工具（签名 / 印章 / 签署时间戳）")
    parser.add_argument("--input", type=Path, default=PATH_DEFAULT_INPUT_PDF, help="输入 PDF 路径")
    parser.add_argument("--output", type=Path, default=None, help="输出 PDF 路径（默认 output/<文件名>_signed.pdf）")
    parser.add_argument("--output-prefix", dest="output_prefix", type=str, default=None, help="输出文件名前缀（覆盖输入文件名 stem）")
    parser.add_argument("--overlays", type=Path, default=None, help="签章清单 JSON（overlays / signatures / stamps 数组）")
    parser.add_argument("--signature", type=Path, default=None, help="单个签名图片（png/jpg/jpeg/gif/bmp）")
    parser.add_argument("--stamp", type=Path, default=None, help="单个印章图片（png/jpg/jpeg/gif/bmp）")
    parser.add_argument("--page", type=int, default=1, help="--signature/--stamp 所在页（1 基）")
    parser.add_argument("--x", type=float, default=None, help="--signature/--stamp 左上角横向百分比（0~100）")
    parser.add_argument("--y", type=float, default=None, help="--signature/--stamp 左上角纵向百分比（0~100）")
    parser.add_argument("--engine", type=str, choices=list(CONST_ENGINE_CHOICES), default=CONST_ENGINE_DEFAULT, help="渲染引擎：pymupdf/reportlab")
    parser.add_argument("--hide-timestamp", dest="hide_timestamp", action="store_true", help="不绘制签名下方的签署时间戳")
    parser.add_argument("--make-example", action="store_true", help="若示例文件不存在则生成示例 PDF、签名、印章与清单")
    return parser.parse_args(argv)


def build_store_from_args(args: argparse.Namespace) -> OverlayStore:
    """根据命令行参数构建覆盖物集合：先读清单，再追加 --signature / --stamp。"""
    store = OverlayStore()
    if args.overlays is not None:
        try:
            load_overlays_json(args.overlays, store=store)
        except RuntimeError as exc:
            logger.error("签章清单加载失败：%s", exc)
            raise SystemExit(f"签章清单加载失败：{exc}") from exc

    position = None
    if args.x is not None or args.y is not None:
        position = (args.x if args.x is not None else 50.0, args.y if args.y is not None else 50.0)

    try:
        if args.signature is not None:
            sig_id = store.add_signature(load_image_payload(args.signature), page=args.page)
            if position is not None:
                store.move_signature(sig_id, position)
        if args.stamp is not None:
            stamp_id = store.add_stamp(load_image_payload(args.stamp), page=args.page)
            if position is not None:
                store.move_stamp(stamp_id, position)
    except ValueError as exc:
        raise SystemExit(f"--page 非法：{exc}") from exc
    except RuntimeError as exc:
        logger.error("图片读取失败：%s", exc)
        raise SystemExit(f"图片读取失败：{exc}") from exc

    if args.hide_timestamp:
        for sig in store.signatures():
            if sig.timestamp_visible:
                store.toggle_timestamp(sig.id)
    return store


def main(argv=None) -> None:
    _log_runtime_capabilities()
    args = parse_args(argv)
    FileHandler.ensure_project_dirs()
    if args.make_example:
        pdf_path = _ensure_example_files()
        print(f"示例文件已就绪：{pdf_path}")
        return

    input_pdf: Path = args.input
    if not input_pdf.exists() and input_pdf == PATH_DEFAULT_INPUT_PDF:
        logger.warning("输入 PDF 不存在：%s，将生成示例文件以便测试。", input_pdf)
        _ensure_example_files()
        if args.overlays is None and args.signature is None and args.stamp is None:
            args.overlays = PATH_DEFAULT_OVERLAYS_JSON
    FileHandler.validate_readable_file(input_pdf)

    store = build_store_from_args(args)
    if len(store) == 0:
        # 没有任何签名或印章时不导出
        raise SystemExit("没有可写入的签名或印章：请提供 --overlays、--signature 或 --stamp")

    composer = PDFComposer(engine=args.engine)
    try:
        signed = composer.compose(input_pdf.read_bytes(), store)
    except CompositionError as exc:
        logger.error("签章失败：%s", exc)
        raise SystemExit(f"签章失败：{exc}") from exc

    out_path = args.output or FileHandler.signed_output_path(input_pdf, prefix=args.output_prefix)
    FileHandler.write_bytes(out_path, signed)
    stats = composer.last_compose_stats or {}
    print(f"签章完成（引擎：{composer.last_engine_used}），保存至：{out_path}")
    print(
        "写入页数：{}，图片：{}，时间戳：{}".format(
            stats.get("pages", 0), stats.get("images", 0), stats.get("timestamps", 0)
        )
    )


if __name__ == "__main__":
    main()

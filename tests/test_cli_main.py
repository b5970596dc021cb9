"""
文件路径：tests/test_cli_main.py

用例目的：验证命令行入口的参数到覆盖物集合的映射，以及单次签章的端到端输出。
"""

from __future__ import annotations

from pathlib import Path

import pdfplumber
import pytest

import main as cli
from conftest import build_image_bytes, build_pdf_bytes


@pytest.fixture()
def signature_png(tmp_path: Path) -> Path:
    path = tmp_path / "signature.png"
    path.write_bytes(build_image_bytes())
    return path


def test_build_store_quick_signature(signature_png: Path):
    args = cli.parse_args(["--signature", str(signature_png), "--page", "2", "--x", "10", "--y", "70", "--hide-timestamp"])
    store = cli.build_store_from_args(args)
    (sig,) = store.signatures()
    assert sig.page == 2
    assert sig.position == (10, 70)
    assert sig.timestamp_visible is False


def test_build_store_invalid_page(signature_png: Path):
    args = cli.parse_args(["--stamp", str(signature_png), "--page", "0"])
    with pytest.raises(SystemExit):
        cli.build_store_from_args(args)


def test_main_refuses_export_without_overlays(tmp_path: Path):
    source = tmp_path / "doc.pdf"
    source.write_bytes(build_pdf_bytes())
    with pytest.raises(SystemExit):
        cli.main(["--input", str(source)])


@pytest.mark.parametrize("engine", ["pymupdf", "reportlab"])
def test_main_writes_signed_pdf(tmp_path: Path, signature_png: Path, engine: str):
    source = tmp_path / "doc.pdf"
    source.write_bytes(build_pdf_bytes())
    out = tmp_path / "out" / "doc_signed.pdf"

    cli.main(["--input", str(source), "--stamp", str(signature_png), "--output", str(out), "--engine", engine])

    with pdfplumber.open(str(out)) as pdf:
        assert len(pdf.pages[0].images) == 1


def test_main_page_out_of_range_exits(tmp_path: Path, signature_png: Path):
    source = tmp_path / "doc.pdf"
    source.write_bytes(build_pdf_bytes())
    with pytest.raises(SystemExit):
        cli.main(["--input", str(source), "--stamp", str(signature_png), "--page", "4", "--output", str(tmp_path / "o.pdf")])


def test_broken_manifest_exits_cleanly(tmp_path: Path):
    manifest = tmp_path / "overlays.json"
    manifest.write_text("{broken", encoding="utf-8")
    args = cli.parse_args(["--overlays", str(manifest)])
    with pytest.raises(SystemExit) as info:
        cli.build_store_from_args(args)
    assert "[4001]" in str(info.value.code)


def test_unsupported_image_exits_cleanly(tmp_path: Path):
    image = tmp_path / "sig.svg"
    image.write_text("<svg/>", encoding="utf-8")
    args = cli.parse_args(["--signature", str(image)])
    with pytest.raises(SystemExit) as info:
        cli.build_store_from_args(args)
    assert "[4002]" in str(info.value.code)

"""
文件路径：tests/test_composer_engines.py

用例目的：用两种真实引擎（PyMuPDF / ReportLab+PyPDF2）端到端合成，并用 pdfplumber 检查输出：
- 图片落点（左下原点坐标）与页数保持；
- 时间戳文字可提取，隐藏时不出现；
- 非法源文档、页码越界被包装为 CompositionError。

依赖：
- 测试内用 ReportLab 生成源 PDF、用 Pillow 生成图片，不依赖外部示例文件
"""

from __future__ import annotations

from datetime import datetime, timezone
from io import BytesIO

import pdfplumber
import pytest
from PyPDF2 import PdfReader

from conftest import build_image_bytes, build_pdf_bytes, to_data_uri
from docsign.components import CompositionError, PageOutOfRangeError, SourceDocumentError
from docsign.overlay_store import OverlayStore
from docsign.pdf_composer import PDFComposer, compose
from docsign.variables import CONST_ENGINE_CHOICES, CONST_OVERLAY_RESOURCE_PREFIX

FIXED_NOW = datetime(2024, 5, 1, 10, 30, 0, tzinfo=timezone.utc)

ENGINES = pytest.mark.parametrize("engine", CONST_ENGINE_CHOICES)


def _open(data: bytes) -> pdfplumber.PDF:
    return pdfplumber.open(BytesIO(data))


@ENGINES
def test_stamp_position_in_output(engine: str, letter_pdf: bytes, png_uri: str):
    store = OverlayStore(now=lambda: FIXED_NOW)
    stamp_id = store.add_stamp(png_uri, page=1)
    store.move_stamp(stamp_id, (50, 50))

    out = compose(letter_pdf, store, engine=engine)

    with _open(out) as pdf:
        assert len(pdf.pages) == 1
        images = pdf.pages[0].images
        assert len(images) == 1
        assert images[0]["x0"] == pytest.approx(306, abs=0.5)
        assert images[0]["y0"] == pytest.approx(296, abs=0.5)
        assert images[0]["x1"] - images[0]["x0"] == pytest.approx(100, abs=0.5)


@ENGINES
def test_signature_with_timestamp_text(engine: str, letter_pdf: bytes, png_uri: str):
    store = OverlayStore(now=lambda: FIXED_NOW)
    sig_id = store.add_signature(png_uri, page=1)
    store.move_timestamp(sig_id, (10, 90))

    out = PDFComposer(engine).compose(letter_pdf, store)

    with _open(out) as pdf:
        text = pdf.pages[0].extract_text() or ""
    assert "Signed on: May 1, 2024, 10:30:00 AM, UTC" in text


@ENGINES
def test_hidden_timestamp_not_in_output(engine: str, letter_pdf: bytes, png_uri: str):
    store = OverlayStore(now=lambda: FIXED_NOW)
    sig_id = store.add_signature(png_uri, page=1)
    store.toggle_timestamp(sig_id)

    out = compose(letter_pdf, store, engine=engine)

    with _open(out) as pdf:
        assert "Signed on" not in (pdf.pages[0].extract_text() or "")
        assert len(pdf.pages[0].images) == 1


@ENGINES
def test_multi_page_only_touched_pages_get_images(engine: str, three_page_pdf: bytes, make_png_uri):
    store = OverlayStore(now=lambda: FIXED_NOW)
    store.add_stamp(make_png_uri(fmt="JPEG", mode="RGB"), page=3)
    store.add_stamp(make_png_uri(fmt="GIF", mode="P"), page=1)

    composer = PDFComposer(engine)
    out = composer.compose(three_page_pdf, store)

    with _open(out) as pdf:
        assert [len(p.images) for p in pdf.pages] == [1, 0, 1]
        assert "Page 2" in (pdf.pages[1].extract_text() or "")
    assert composer.last_engine_used == engine


@ENGINES
def test_repeat_compose_is_deterministic(engine: str, letter_pdf: bytes, png_uri: str):
    store = OverlayStore(now=lambda: FIXED_NOW)
    store.add_signature(png_uri, page=1)
    composer = PDFComposer(engine)

    first = composer.compose(letter_pdf, store)
    second = composer.compose(letter_pdf, store)
    assert first == second

    with _open(first) as a, _open(second) as b:
        box_a = [(round(i["x0"], 2), round(i["y0"], 2)) for i in a.pages[0].images]
        box_b = [(round(i["x0"], 2), round(i["y0"], 2)) for i in b.pages[0].images]
        assert box_a == box_b
        assert a.pages[0].extract_text() == b.pages[0].extract_text()


@ENGINES
def test_invalid_source_document(engine: str, png_uri: str):
    store = OverlayStore()
    store.add_stamp(png_uri, page=1)

    with pytest.raises(CompositionError) as info:
        compose(b"this is not a pdf", store, engine=engine)

    assert isinstance(info.value.cause, SourceDocumentError)


@ENGINES
def test_page_out_of_range_real_engine(engine: str, png_uri: str):
    source = build_pdf_bytes(((612.0, 792.0), (612.0, 792.0)))
    store = OverlayStore()
    store.add_stamp(png_uri, page=3)

    with pytest.raises(CompositionError) as info:
        compose(source, store, engine=engine)

    assert isinstance(info.value.cause, PageOutOfRangeError)
    assert info.value.cause.page_count == 2


def test_unknown_engine_rejected():
    with pytest.raises(ValueError):
        PDFComposer("raster")


@ENGINES
def test_source_bytes_unchanged(engine: str, letter_pdf: bytes):
    original = bytes(letter_pdf)
    store = OverlayStore()
    store.add_stamp(to_data_uri(build_image_bytes()), page=1)
    compose(letter_pdf, store, engine=engine)
    assert letter_pdf == original


@ENGINES
def test_page_zero_key_rejected_real_engine(engine: str, three_page_pdf: bytes, png_uri: str):
    store = OverlayStore()
    store.add_stamp(png_uri, page=1)

    with pytest.raises(CompositionError) as info:
        compose(three_page_pdf, {0: store.stamps()}, engine=engine)

    assert isinstance(info.value.cause, PageOutOfRangeError)


def test_reportlab_layer_resources_do_not_clash(letter_pdf: bytes, png_uri: str):
    store = OverlayStore(now=lambda: FIXED_NOW)
    store.add_signature(png_uri, page=1)

    out = compose(letter_pdf, store, engine="reportlab")

    resources = PdfReader(BytesIO(out)).pages[0]["/Resources"].get_object()
    fonts = sorted(resources["/Font"].get_object().keys())
    # 源页面的 /F1 保留原名，图层字体使用固定前缀
    assert "/F1" in fonts
    assert f"/{CONST_OVERLAY_RESOURCE_PREFIX}F1" in fonts
    assert all(len(name) < 20 for name in fonts)
    xobjects = resources["/XObject"].get_object().keys()
    assert all(name.startswith(f"/{CONST_OVERLAY_RESOURCE_PREFIX}") for name in xobjects)

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from conftest import build_image_bytes, to_data_uri
from docsign.data_handler import load_image_payload, load_overlays_json
from docsign.overlay_store import OverlayKind, OverlayStore


def _write_manifest(path: Path, data: dict, bom: bool = False) -> Path:
    text = json.dumps(data, ensure_ascii=False)
    path.write_text(("\ufeff" if bom else "") + text, encoding="utf-8")
    return path


def test_load_image_payload_png(tmp_path: Path):
    img = tmp_path / "sig.png"
    img.write_bytes(build_image_bytes())
    uri = load_image_payload(img)
    assert uri.startswith("data:image/png;base64,")


def test_load_image_payload_jpeg_mime(tmp_path: Path):
    img = tmp_path / "sig.JPG"
    img.write_bytes(build_image_bytes(fmt="JPEG", mode="RGB"))
    assert load_image_payload(img).startswith("data:image/jpeg;base64,")


def test_load_image_payload_rejects_suffix(tmp_path: Path):
    img = tmp_path / "sig.svg"
    img.write_text("<svg/>", encoding="utf-8")
    with pytest.raises(RuntimeError, match=r"\[4002\]"):
        load_image_payload(img)


def test_load_image_payload_rejects_large_file(tmp_path: Path, monkeypatch):
    monkeypatch.setattr("docsign.data_handler.CONST_IMAGE_MAX_BYTES", 10)
    img = tmp_path / "big.png"
    img.write_bytes(build_image_bytes())
    with pytest.raises(RuntimeError, match=r"\[4002\]"):
        load_image_payload(img)


def test_load_image_payload_missing(tmp_path: Path):
    with pytest.raises(RuntimeError, match=r"\[1001\]"):
        load_image_payload(tmp_path / "nope.png")


def test_load_overlays_full_manifest(tmp_path: Path):
    (tmp_path / "signature.png").write_bytes(build_image_bytes())
    manifest = _write_manifest(
        tmp_path / "overlays.json",
        {
            "signatures": [
                {
                    "image": "signature.png",
                    "page": 1,
                    "position": {"x": 10, "y": 70},
                    "size": {"width": 300, "height": 120},
                    "created_at": "2024-05-01T10:30:00Z",
                    "timestamp": {"position": {"x": 10, "y": 90}, "font_size": 12, "visible": False},
                }
            ],
            "stamps": [
                {"image": to_data_uri(build_image_bytes()), "page": 2, "position": {"x": 160, "y": 10}},
            ],
        },
        bom=True,
    )

    store = load_overlays_json(manifest)

    sig, stamp = list(store)
    assert sig.kind is OverlayKind.SIGNATURE
    assert sig.position == (10, 70)
    assert sig.size == (300, 120)
    assert sig.created_at == datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc)
    assert sig.timestamp_position == (10, 90)
    assert sig.timestamp_font_size == 12
    assert sig.timestamp_visible is False
    assert sig.image_payload.startswith("data:image/png;base64,")
    assert stamp.kind is OverlayKind.STAMP
    assert stamp.page == 2
    assert stamp.position == (100, 10)
    assert stamp.size == (100, 100)


def test_signatures_added_before_stamps(tmp_path: Path):
    uri = to_data_uri(build_image_bytes())
    manifest = _write_manifest(
        tmp_path / "m.json",
        {"stamps": [{"image": uri, "page": 1}], "signatures": [{"image": uri, "page": 1}]},
    )
    kinds = [o.kind for o in load_overlays_json(manifest)]
    assert kinds == [OverlayKind.SIGNATURE, OverlayKind.STAMP]


def test_load_into_existing_store(tmp_path: Path):
    store = OverlayStore()
    store.add_stamp(b"x", page=1)
    manifest = _write_manifest(tmp_path / "m.json", {"signatures": [{"image": to_data_uri(b"abc"), "page": 2}]})
    assert load_overlays_json(manifest, store=store) is store
    assert len(store) == 2


def test_broken_json_is_config_error(tmp_path: Path):
    path = tmp_path / "m.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(RuntimeError, match=r"\[4001\]"):
        load_overlays_json(path)


def test_missing_manifest_is_config_error(tmp_path: Path):
    with pytest.raises(RuntimeError, match=r"\[4001\]"):
        load_overlays_json(tmp_path / "missing.json")


@pytest.mark.parametrize(
    "data",
    [
        [],
        {"signatures": {}},
        {"signatures": [{"page": 1}]},
        {"stamps": [{"image": "data:image/png;base64,AA==", "page": 0}]},
        {"stamps": [{"image": "data:image/png;base64,AA==", "page": "1"}]},
        {"stamps": [{"image": "data:image/png;base64,AA==", "position": {"x": 1}}]},
        {"signatures": [{"image": "data:image/png;base64,AA==", "created_at": "yesterday"}]},
    ],
)
def test_invalid_manifest_content(tmp_path: Path, data):
    manifest = _write_manifest(tmp_path / "m.json", data)
    with pytest.raises(RuntimeError, match=r"\[4002\]"):
        load_overlays_json(manifest)


def test_ordered_overlays_list_keeps_mixed_order(tmp_path: Path):
    uri = to_data_uri(build_image_bytes())
    manifest = _write_manifest(
        tmp_path / "m.json",
        {
            "overlays": [
                {"kind": "stamp", "image": uri, "page": 1},
                {"kind": "signature", "image": uri, "page": 1, "timestamp": {"visible": False}},
                {"kind": "stamp", "image": uri, "page": 1, "position": {"x": 5, "y": 5}},
            ]
        },
    )
    grouped = load_overlays_json(manifest).all_overlays_grouped_by_page()
    assert [o.kind for o in grouped[1]] == [OverlayKind.STAMP, OverlayKind.SIGNATURE, OverlayKind.STAMP]
    assert grouped[1][1].timestamp_visible is False
    assert grouped[1][2].position == (5, 5)


@pytest.mark.parametrize("kind", [None, "watermark", ["stamp"]])
def test_ordered_overlays_require_known_kind(tmp_path: Path, kind):
    item = {"image": to_data_uri(b"abc"), "page": 1}
    if kind is not None:
        item["kind"] = kind
    manifest = _write_manifest(tmp_path / "m.json", {"overlays": [item]})
    with pytest.raises(RuntimeError, match=r"\[4002\]"):
        load_overlays_json(manifest)


def test_invalid_item_leaves_existing_store_untouched(tmp_path: Path):
    now = lambda: datetime(2024, 5, 1, tzinfo=timezone.utc)  # noqa: E731
    store = OverlayStore(now=now)
    existing = store.add_stamp(b"x", page=1)
    uri = to_data_uri(build_image_bytes())
    manifest = _write_manifest(
        tmp_path / "m.json",
        {"signatures": [{"image": uri, "page": 1}, {"image": uri, "page": 2}], "stamps": [{"image": uri, "page": 0}]},
    )

    with pytest.raises(RuntimeError, match=r"\[4002\]"):
        load_overlays_json(manifest, store=store)

    assert [o.id for o in store] == [existing]


def test_merged_items_get_fresh_ids_and_store_clock(tmp_path: Path):
    moment = datetime(2023, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    store = OverlayStore(now=lambda: moment)
    first = store.add_stamp(b"x", page=1)
    manifest = _write_manifest(tmp_path / "m.json", {"signatures": [{"image": to_data_uri(b"abc"), "page": 1}]})

    load_overlays_json(manifest, store=store)

    ids = [o.id for o in store]
    assert ids[0] == first and len(set(ids)) == 2
    assert store.signatures()[0].created_at == moment
    assert [o.seq for o in store] == sorted(o.seq for o in store)

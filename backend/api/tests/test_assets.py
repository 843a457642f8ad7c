"""Tests for asset path derivation and the local blob store."""

from __future__ import annotations

import pytest

from publishing_api.assets import (
    AssetPlacer,
    Upload,
    episode_asset_path,
    file_extension,
    icon_path,
)
from publishing_api.errors import BadRequest
from publishing_api.models import AUDIOBOOK, GRAPHIC_NOVEL
from publishing_api.storage import LocalBlobStore


class TestPathDerivation:
    def test_graphic_novel_icon(self):
        assert icon_path(GRAPHIC_NOVEL, "cover.png", 1700000000123) == (
            "graphic-novels/icons/novel-icon-1700000000123.png"
        )

    def test_audiobook_icon(self):
        assert icon_path(AUDIOBOOK, "cover.jpeg", 42) == "audiobooks/icons/book-icon-42.jpeg"

    def test_episode_asset(self):
        assert episode_asset_path(GRAPHIC_NOVEL, 7, 3, "pdf", "chapter.pdf", 99) == (
            "graphic-novels/7/3/pdf-99.pdf"
        )

    def test_episode_number_must_be_positive(self):
        with pytest.raises(ValueError):
            episode_asset_path(AUDIOBOOK, 1, 0, "icon", "a.png", 1)

    def test_unsafe_asset_prefix_is_rejected(self):
        with pytest.raises(ValueError):
            episode_asset_path(AUDIOBOOK, 1, 1, "../icon", "a.png", 1)


class TestFileExtension:
    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("cover.png", ".png"),
            ("archive.tar.gz", ".gz"),
            ("noext", ""),
            (".hidden", ""),
            ("", ""),
            (None, ""),
            ("evil.p/../ng", ""),
            ("C:\\docs\\scan.PDF", ".PDF"),
            ("weird.p$n%g", ".png"),
        ],
    )
    def test_extension(self, filename, expected):
        assert file_extension(filename) == expected


class TestLocalBlobStore:
    def test_write_returns_root_relative_reference(self, store):
        store.ensure_directory("audiobooks/icons")
        ref = store.write_file("audiobooks/icons/book-icon-1.png", b"png")
        assert ref == "/uploads/audiobooks/icons/book-icon-1.png"
        assert (store.root / "audiobooks" / "icons" / "book-icon-1.png").read_bytes() == b"png"

    def test_no_partial_file_left_behind(self, store):
        store.ensure_directory("x")
        store.write_file("x/a.bin", b"data")
        assert sorted(p.name for p in (store.root / "x").iterdir()) == ["a.bin"]

    def test_ensure_directory_is_idempotent(self, store):
        first = store.ensure_directory("graphic-novels/1/1")
        second = store.ensure_directory("graphic-novels/1/1")
        assert first == second
        assert first.is_dir()

    @pytest.mark.parametrize("bad", ["../outside.txt", "/etc/passwd", "a/../../b"])
    def test_rejects_paths_escaping_root(self, store, bad):
        with pytest.raises(ValueError):
            store.resolve(bad)

    def test_upload_cap(self, tmp_path):
        small = LocalBlobStore(tmp_path / "up", max_bytes=4)
        small.ensure_directory("d")
        with pytest.raises(BadRequest):
            small.write_file("d/f.bin", b"12345")
        assert not (tmp_path / "up" / "d" / "f.bin").exists()


class TestAssetPlacer:
    def test_place_icon_creates_directories(self, store):
        placer = AssetPlacer(store, clock=lambda: 1000)
        ref = placer.place_icon(GRAPHIC_NOVEL, Upload(filename="c.webp", data=b"img"))
        assert ref == "/uploads/graphic-novels/icons/novel-icon-1000.webp"
        assert (store.root / "graphic-novels" / "icons" / "novel-icon-1000.webp").exists()

    def test_same_millisecond_overwrites(self, store):
        placer = AssetPlacer(store, clock=lambda: 5)
        placer.prepare_episode(AUDIOBOOK, 2, 1)
        first = placer.place_episode_asset(AUDIOBOOK, 2, 1, "icon", Upload("a.png", b"first"))
        second = placer.place_episode_asset(AUDIOBOOK, 2, 1, "icon", Upload("b.png", b"second"))
        assert first == second
        assert (store.root / "audiobooks" / "2" / "1" / "icon-5.png").read_bytes() == b"second"

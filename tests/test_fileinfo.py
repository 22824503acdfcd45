"""Tests for FileInfo construction, classification and checksums."""

from __future__ import annotations

import hashlib

import pytest

from fileshelf.exceptions import InvalidOptionError
from fileshelf.fileinfo import (
    CHECKSUM_CHUNK,
    checksum,
    classify,
    classify_by_name,
    detect_subtitles,
    new_file_info,
)
from fileshelf.scoped_fs import LocalScopedFileSystem
from fileshelf.types import Listing


@pytest.fixture
def fs(scope) -> LocalScopedFileSystem:
    return LocalScopedFileSystem(scope)


class TestClassify:
    @pytest.mark.parametrize(
        ("name", "kind"),
        [
            ("movie.mp4", "video"),
            ("song.mp3", "audio"),
            ("photo.png", "image"),
            ("paper.pdf", "pdf"),
        ],
    )
    def test_by_name(self, name, kind):
        assert classify(name, b"\x00\x01") == kind

    def test_text(self):
        assert classify("notes.txt", b"plain words\n") == "text"

    def test_unknown_extension_text(self):
        assert classify("Makefile", b"all:\n\techo hi\n") == "text"

    def test_binary(self):
        assert classify("data.bin", b"\x00\x01\x02\x03") == "blob"

    @pytest.mark.parametrize("name", ["notes.txt", "page.html", "data.json", "feed.xml"])
    def test_text_by_name(self, name):
        assert classify_by_name(name) == "text"

    def test_text_name_with_binary_content(self):
        assert classify("notes.txt", b"\x00\x01\x02\x03") == "blob"

    def test_empty_is_text(self):
        assert classify("empty.txt", b"") == "text"

    def test_multibyte_cut_at_boundary(self):
        head = "é".encode() * 10 + "é".encode()[:1]
        assert classify("notes.txt", head) == "text"


class TestNewFileInfo:
    async def test_text_file_has_content(self, fs):
        info = await new_file_info(fs, "/docs/readme.txt")
        assert info.type == "text"
        assert info.content == "hello\n"
        assert info.extension == ".txt"
        assert info.listing is None

    async def test_large_text_not_embedded(self, fs):
        info = await new_file_info(fs, "/docs/readme.txt", max_content_size=2)
        assert info.type == "blob"
        assert info.content == ""

    async def test_directory_listing(self, fs):
        info = await new_file_info(fs, "/")
        assert info.is_dir is True
        assert info.type == "directory"
        assert info.listing is not None
        assert info.listing.num_dirs == 2
        assert info.listing.num_files == 1

    async def test_listing_classifies_text_by_name(self, fs):
        info = await new_file_info(fs, "/docs")
        [item] = info.listing.items
        assert item.type == "text"

    async def test_missing(self, fs):
        with pytest.raises(FileNotFoundError):
            await new_file_info(fs, "/missing")


class TestListingSort:
    async def test_sort_by_name_case_insensitive(self, fs, scope):
        (scope / "B.txt").write_text("b")
        (scope / "a.txt").write_text("aaaa")
        info = await new_file_info(fs, "/")
        info.listing.apply_sort()
        assert [i.name for i in info.listing.items] == [
            "a.txt", "B.txt", "docs", "empty.txt", "private",
        ]

    async def test_sort_by_size_desc(self, fs, scope):
        (scope / "big.txt").write_text("x" * 100)
        info = await new_file_info(fs, "/")
        listing: Listing = info.listing
        listing.sort, listing.order = "size", "desc"
        listing.apply_sort()
        files = [i for i in listing.items if not i.is_dir]
        assert files[0].name == "big.txt"
        assert files[-1].name == "empty.txt"


class TestChecksum:
    async def test_sha1_of_empty_file(self, fs):
        info = await new_file_info(fs, "/empty.txt")
        value = await checksum(fs, info, "sha1")
        assert value == hashlib.sha1(b"").hexdigest()
        assert info.checksums == {"sha1": value}

    async def test_md5(self, fs):
        info = await new_file_info(fs, "/docs/readme.txt")
        assert await checksum(fs, info, "MD5") == hashlib.md5(b"hello\n").hexdigest()

    async def test_unsupported(self, fs):
        info = await new_file_info(fs, "/empty.txt")
        with pytest.raises(InvalidOptionError):
            await checksum(fs, info, "unsupported")

    async def test_not_in_allowed(self, fs):
        info = await new_file_info(fs, "/empty.txt")
        with pytest.raises(InvalidOptionError):
            await checksum(fs, info, "sha512", allowed=("sha256",))

    async def test_directory(self, fs):
        info = await new_file_info(fs, "/docs")
        with pytest.raises(InvalidOptionError):
            await checksum(fs, info, "sha1")

    async def test_file_spanning_several_chunks(self, fs, scope):
        data = bytes(range(256)) * (CHECKSUM_CHUNK // 256 * 3 + 1)
        (scope / "video.bin").write_bytes(data)
        info = await new_file_info(fs, "/video.bin")
        assert await checksum(fs, info, "sha256") == hashlib.sha256(data).hexdigest()


class TestSubtitles:
    async def test_sibling_vtt(self, fs, scope):
        (scope / "movie.mp4").write_bytes(b"\x00\x00")
        (scope / "movie.vtt").write_text("WEBVTT\n")
        (scope / "other.vtt").write_text("WEBVTT\n")
        info = await new_file_info(fs, "/movie.mp4")
        await detect_subtitles(fs, info)
        assert info.subtitles == ["/movie.vtt"]

    async def test_non_video_untouched(self, fs):
        info = await new_file_info(fs, "/docs/readme.txt")
        await detect_subtitles(fs, info)
        assert info.subtitles == []

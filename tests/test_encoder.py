"""TDD: EncoderCache tests written FIRST"""
import base64
import os
from unittest.mock import MagicMock

import pytest

from vision_jobs.encoder import EncoderCache
from vision_jobs.errors import ErrorKind


def make_files(tmp_path):
    a = tmp_path / "a.jpg"
    b = tmp_path / "b.jpg"
    a.write_bytes(b"image-a")
    b.write_bytes(b"image-b")
    return a, b


def test_encode_returns_base64_of_file(tmp_path):
    a, _ = make_files(tmp_path)

    assert EncoderCache().encode(a) == base64.standard_b64encode(b"image-a").decode()


def test_same_path_twice_reads_once(tmp_path):
    a, _ = make_files(tmp_path)
    reader = MagicMock(side_effect=lambda p: p.read_bytes())
    cache = EncoderCache(reader=reader)

    first = cache.encode(a)
    second = cache.encode(str(a))

    assert first == second
    assert reader.call_count == 1


def test_different_path_evicts_previous_entry(tmp_path):
    a, b = make_files(tmp_path)
    reader = MagicMock(side_effect=lambda p: p.read_bytes())
    cache = EncoderCache(reader=reader)

    cache.encode(a)
    cache.encode(b)
    cache.encode(a)

    assert reader.call_count == 3
    assert cache.cached_path == a


def test_missing_file_is_unreadable(tmp_path):
    error = EncoderCache().encode(tmp_path / "nope.jpg")

    assert error.kind == ErrorKind.RESOURCE_UNREADABLE
    assert "nope.jpg" in error.detail


@pytest.mark.skipif(hasattr(os, "geteuid") and os.geteuid() == 0, reason="root can read anything")
def test_permission_denied_is_unreadable(tmp_path):
    a, _ = make_files(tmp_path)
    a.chmod(0)

    assert EncoderCache().encode(a).kind == ErrorKind.RESOURCE_UNREADABLE


def test_read_error_is_reported(tmp_path):
    a, _ = make_files(tmp_path)
    cache = EncoderCache(reader=MagicMock(side_effect=OSError("I/O error")))

    assert cache.encode(a).kind == ErrorKind.RESOURCE_READ_ERROR
    assert cache.cached_path is None


def test_empty_file_is_not_cached(tmp_path):
    empty = tmp_path / "empty.png"
    empty.write_bytes(b"")
    cache = EncoderCache()

    assert cache.encode(empty).kind == ErrorKind.RESOURCE_EMPTY
    assert cache.cached_path is None


def test_failed_encode_keeps_previous_entry(tmp_path):
    a, _ = make_files(tmp_path)
    reader = MagicMock(side_effect=lambda p: p.read_bytes())
    cache = EncoderCache(reader=reader)

    cache.encode(a)
    cache.encode(tmp_path / "missing.jpg")
    cache.encode(a)

    assert reader.call_count == 1


def test_clear_forces_reread(tmp_path):
    a, _ = make_files(tmp_path)
    reader = MagicMock(side_effect=lambda p: p.read_bytes())
    cache = EncoderCache(reader=reader)

    cache.encode(a)
    cache.clear()
    cache.encode(a)

    assert reader.call_count == 2

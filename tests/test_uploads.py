"""Tests for the upload registry: sessions, confirmation, deletion, sweeping."""

import os
import time

import pytest


def test_save_registers_pending(uploads):
    result = uploads.save("hero.png", b"png-bytes", "s1")
    assert result["url"] == f"/uploads/{result['fileName']}"
    assert result["fileName"].endswith("-hero.png")
    assert (uploads.upload_dir / result["fileName"]).read_bytes() == b"png-bytes"
    assert uploads.pending_files("s1") == {result["fileName"]}


def test_save_strips_directories(uploads):
    result = uploads.save("../../evil.png", b"x", "s1")
    assert result["fileName"].endswith("-evil.png")
    assert (uploads.upload_dir / result["fileName"]).is_file()


def test_confirm_removes_from_session(uploads):
    name = uploads.save("a.png", b"x", "s1")["fileName"]
    uploads.confirm(name)
    assert not uploads.is_pending(name)
    assert uploads.pending_files("s1") == set()
    assert (uploads.upload_dir / name).is_file()


def test_confirm_unknown_is_noop(uploads):
    uploads.confirm("never-uploaded.png")


def test_cleanup_session_deletes_only_pending(uploads):
    kept = uploads.save("kept.png", b"x", "s1")["fileName"]
    dropped = uploads.save("dropped.png", b"x", "s1")["fileName"]
    other = uploads.save("other.png", b"x", "s2")["fileName"]
    uploads.confirm(kept)

    assert uploads.cleanup_session("s1") == [dropped]
    assert (uploads.upload_dir / kept).is_file()
    assert not (uploads.upload_dir / dropped).exists()
    assert (uploads.upload_dir / other).is_file()
    assert uploads.pending_files("s2") == {other}


def test_delete_removes_file_and_tracking(uploads):
    name = uploads.save("a.png", b"x", "s1")["fileName"]
    uploads.delete(name)
    assert not (uploads.upload_dir / name).exists()
    assert not uploads.is_pending(name)


def test_delete_missing_file_is_noop(uploads):
    uploads.delete("gone.png")


def test_delete_rejects_traversal(uploads):
    with pytest.raises(ValueError):
        uploads.delete("../characters.json")


def test_release_by_url(uploads):
    name = uploads.save("a.png", b"x", "s1")["fileName"]
    uploads.confirm(name)
    uploads.release(f"/uploads/{name}")
    assert not (uploads.upload_dir / name).exists()


@pytest.mark.parametrize("url", ["/uploads/", "/uploads/../x", "/uploads/a/b.png"])
def test_file_name_from_url_rejects_bad(uploads, url):
    with pytest.raises(ValueError):
        uploads.file_name_from_url(url)


def test_sweep_removes_old_pending_only(uploads):
    old = uploads.save("old.png", b"x", "s1")["fileName"]
    fresh = uploads.save("fresh.png", b"x", "s1")["fileName"]
    confirmed_old = uploads.save("confirmed.png", b"x", "s2")["fileName"]
    uploads.confirm(confirmed_old)
    two_days_ago = time.time() - 2 * 24 * 60 * 60
    for name in (old, confirmed_old):
        os.utime(uploads.upload_dir / name, (two_days_ago, two_days_ago))

    assert uploads.sweep() == [old]
    assert not (uploads.upload_dir / old).exists()
    assert (uploads.upload_dir / fresh).is_file()
    assert (uploads.upload_dir / confirmed_old).is_file()
    assert uploads.pending_files("s1") == {fresh}


@pytest.mark.parametrize("url", ["https://x/y.png", "/uploads/a/b.png", "/uploads/"])
def test_release_and_confirm_ignore_foreign_urls(uploads, url):
    kept = uploads.save("kept.png", b"x", "s1")["fileName"]
    uploads.release(url)
    uploads.confirm_url(url)
    assert (uploads.upload_dir / kept).exists()
    assert uploads.is_pending(kept)

"""Tests for the upload descriptor builder."""

import ntpath
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from asset_publisher.errors import SourceUnavailable
from asset_publisher.integrity import Integrity
from asset_publisher.upload import (
  LifecycleTag,
  RemoteAssetRecord,
  build_upload_descriptor,
  guess_content_type,
  logical_key,
)


class TestLogicalKey:
  """Tests for logical key normalization."""

  def test_nested_file(self, tmp_path: Path) -> None:
    """Nested paths use forward slashes relative to the root."""
    path = tmp_path / "root" / "sub" / "dir" / "file.txt"
    assert logical_key(tmp_path / "root", path) == "sub/dir/file.txt"

  def test_windows_separators(self) -> None:
    """Backslash separators are normalized to forward slashes."""
    windows_os = SimpleNamespace(path=ntpath, sep="\\", curdir=".", pardir="..")
    with patch("asset_publisher.upload.os", windows_os):
      key = logical_key("C:\\site\\root", "C:\\site\\root\\sub\\dir\\file.txt")
    assert key == "sub/dir/file.txt"

  def test_outside_root(self, tmp_path: Path) -> None:
    """Files outside the root have no logical key."""
    with pytest.raises(ValueError):
      logical_key(tmp_path / "root", tmp_path / "other" / "file.txt")


class TestGuessContentType:
  """Tests for content type inference."""

  @pytest.mark.parametrize(
    ("key", "expected"),
    [
      ("index.html", "text/html"),
      ("css/app.css", "text/css"),
      ("img/logo.png", "image/png"),
    ],
  )
  def test_known_extensions(self, key: str, expected: str) -> None:
    """Known extensions map to their MIME type."""
    assert guess_content_type(key) == expected

  def test_unknown_extension_falls_back_to_html(self) -> None:
    """Unknown extensions use the HTML fallback by default."""
    assert guess_content_type("render") == "text/html"

  def test_configurable_fallback(self) -> None:
    """The fallback can be switched to a binary type."""
    assert guess_content_type("blob.zzz", "application/octet-stream") == "application/octet-stream"


class TestBuildUploadDescriptor:
  """Tests for build_upload_descriptor."""

  def test_full_descriptor(self, public_dir: Path) -> None:
    """Every upload option is derived from the file."""
    descriptor = build_upload_descriptor(public_dir, public_dir / "css" / "app.css", "b")

    assert descriptor.bucket == "b"
    assert descriptor.key == "css/app.css"
    assert descriptor.body == b"body { margin: 0; }"
    assert descriptor.content_type == "text/css"
    assert descriptor.acl == "public-read"
    assert descriptor.integrity == Integrity.from_data(b"body { margin: 0; }")
    assert descriptor.tags == {"AssetActiveState": "active"}
    assert descriptor.metadata == {"integrity": str(descriptor.integrity)}

  def test_reads_current_content(self, public_dir: Path) -> None:
    """Content is re-read on every call."""
    path = public_dir / "index.html"
    first = build_upload_descriptor(public_dir, path, "b")
    path.write_text("changed")
    second = build_upload_descriptor(public_dir, path, "b")

    assert first.integrity != second.integrity
    assert second.body == b"changed"

  def test_missing_file(self, public_dir: Path) -> None:
    """A vanished file raises SourceUnavailable naming the key."""
    with pytest.raises(SourceUnavailable) as exc_info:
      build_upload_descriptor(public_dir, public_dir / "gone.js", "b")

    assert exc_info.value.key == "gone.js"
    assert "gone.js" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, OSError)


class TestRemoteAssetRecord:
  """Tests for RemoteAssetRecord serialization."""

  def test_from_dict_tolerates_missing_fields(self) -> None:
    """Missing fields load as None instead of raising."""
    record = RemoteAssetRecord.from_dict({"bucket": "b"})

    assert record.bucket == "b"
    assert record.integrity is None
    assert record.state == LifecycleTag.ACTIVE

  def test_from_dict_rejects_non_string_integrity(self) -> None:
    """A non-string stored digest is dropped."""
    assert RemoteAssetRecord.from_dict({"integrity": 42}).integrity is None

  def test_unknown_state(self) -> None:
    """An unknown lifecycle value loads as None."""
    assert RemoteAssetRecord.from_dict({"state": "archived"}).state is None

  def test_to_dict(self) -> None:
    """Records serialize to plain values."""
    record = RemoteAssetRecord("b", "k", "/p", "sha512-x", LifecycleTag.REMOVED)
    assert record.to_dict() == {
      "bucket": "b",
      "key": "k",
      "path": "/p",
      "integrity": "sha512-x",
      "state": "removed",
    }

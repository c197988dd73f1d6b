"""Derive everything needed to publish one local file."""

import mimetypes
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import SourceUnavailable
from .integrity import Integrity

LIFECYCLE_TAG_KEY = "AssetActiveState"
INTEGRITY_METADATA_KEY = "integrity"
PUBLIC_READ_ACL = "public-read"
DEFAULT_FALLBACK_CONTENT_TYPE = "text/html"


class LifecycleTag(str, Enum):
  """Value of the `AssetActiveState` tag on every published object."""

  ACTIVE = "active"
  REMOVED = "removed"


@dataclass(frozen=True)
class UploadDescriptor:
  """Full set of options for one put_object call."""

  bucket: str
  key: str
  path: str
  body: bytes = field(repr=False)
  content_type: str
  acl: str
  integrity: Integrity
  tag: LifecycleTag = LifecycleTag.ACTIVE

  @property
  def metadata(self) -> dict[str, str]:
    return {INTEGRITY_METADATA_KEY: str(self.integrity)}

  @property
  def tags(self) -> dict[str, str]:
    return {LIFECYCLE_TAG_KEY: self.tag.value}


@dataclass
class RemoteAssetRecord:
  """Observed state of one published object."""

  bucket: str | None
  key: str | None
  path: str | None
  integrity: str | None
  state: LifecycleTag | None = LifecycleTag.ACTIVE

  @classmethod
  def from_descriptor(cls, descriptor: UploadDescriptor) -> "RemoteAssetRecord":
    return cls(
      bucket=descriptor.bucket,
      key=descriptor.key,
      path=descriptor.path,
      integrity=str(descriptor.integrity),
      state=descriptor.tag,
    )

  @classmethod
  def from_dict(cls, data: dict[str, Any] | None) -> "RemoteAssetRecord":
    """Load a record from the state file, tolerating missing fields."""
    data = data or {}
    state: LifecycleTag | None
    try:
      state = LifecycleTag(data.get("state", LifecycleTag.ACTIVE.value))
    except ValueError:
      state = None
    integrity = data.get("integrity")
    return cls(
      bucket=data.get("bucket"),
      key=data.get("key"),
      path=data.get("path"),
      integrity=integrity if isinstance(integrity, str) else None,
      state=state,
    )

  def to_dict(self) -> dict[str, Any]:
    return {
      "bucket": self.bucket,
      "key": self.key,
      "path": self.path,
      "integrity": self.integrity,
      "state": self.state.value if self.state else None,
    }


def logical_key(root: str | os.PathLike[str], path: str | os.PathLike[str]) -> str:
  """Path of `path` relative to `root`, always with forward slashes."""
  relative = os.path.relpath(os.path.abspath(path), os.path.abspath(root))
  if relative == os.curdir or relative.split(os.sep)[0] == os.pardir:
    raise ValueError(f"{path} is not inside {root}")
  return relative.replace(os.sep, "/")


def guess_content_type(key: str, fallback: str = DEFAULT_FALLBACK_CONTENT_TYPE) -> str:
  content_type, _ = mimetypes.guess_type(key, strict=False)
  return content_type or fallback


def build_upload_descriptor(
  root: str | os.PathLike[str],
  path: str | os.PathLike[str],
  bucket: str,
  *,
  fallback_content_type: str = DEFAULT_FALLBACK_CONTENT_TYPE,
) -> UploadDescriptor:
  """Build the upload options for a file, reading it from disk now.

  Args:
    root: Directory the logical key is relative to
    path: File to publish (absolute, or relative to the working directory)
    bucket: Destination bucket name
    fallback_content_type: Content type used when the extension is unknown

  Raises:
    SourceUnavailable: If the file cannot be read
  """
  absolute = os.path.abspath(path)
  key = logical_key(root, absolute)

  try:
    with open(absolute, "rb") as f:
      body = f.read()
  except OSError as e:
    raise SourceUnavailable(absolute, key) from e

  return UploadDescriptor(
    bucket=bucket,
    key=key,
    path=absolute,
    body=body,
    content_type=guess_content_type(key, fallback_content_type),
    acl=PUBLIC_READ_ACL,
    integrity=Integrity.from_data(body),
    tag=LifecycleTag.ACTIVE,
  )

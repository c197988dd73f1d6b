"""Lazily deleted asset: one local file published as one S3 object."""

import logging
from dataclasses import dataclass
from typing import Any

from .integrity import matches
from .provider import CreateResult, DiffResult, Resource, ResourceProvider, UpdateResult
from .store import ObjectStore
from .upload import (
  DEFAULT_FALLBACK_CONTENT_TYPE,
  LIFECYCLE_TAG_KEY,
  LifecycleTag,
  RemoteAssetRecord,
  UploadDescriptor,
  build_upload_descriptor,
  logical_key,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssetInputs:
  """Desired state of one asset."""

  path: str
  bucket: str
  root: str


class AssetProvider(ResourceProvider):
  """Creates, diffs, overwrites and soft-deletes published assets.

  Deleting an asset only re-tags the object `AssetActiveState=removed`. The
  object stays readable until the bucket's expiration rule removes it, so
  pages still cached by CloudFront keep resolving their scripts and styles.
  """

  type_name = "asset"

  def __init__(
    self,
    store: ObjectStore,
    *,
    fallback_content_type: str = DEFAULT_FALLBACK_CONTENT_TYPE,
  ) -> None:
    self.store = store
    self.fallback_content_type = fallback_content_type

  def _describe(self, inputs: AssetInputs) -> UploadDescriptor:
    return build_upload_descriptor(
      inputs.root,
      inputs.path,
      inputs.bucket,
      fallback_content_type=self.fallback_content_type,
    )

  def _put(self, descriptor: UploadDescriptor) -> None:
    self.store.put_object(
      bucket=descriptor.bucket,
      key=descriptor.key,
      body=descriptor.body,
      content_type=descriptor.content_type,
      acl=descriptor.acl,
      metadata=descriptor.metadata,
      tags=descriptor.tags,
    )

  def create(self, inputs: AssetInputs) -> CreateResult:
    try:
      descriptor = self._describe(inputs)
      self._put(descriptor)
    except Exception:
      logger.exception("Failed to create asset %s in %s", inputs.path, inputs.bucket)
      raise

    logger.info("Published %s to s3://%s", descriptor.key, descriptor.bucket)
    return CreateResult(
      id=descriptor.key,
      outs=RemoteAssetRecord.from_descriptor(descriptor),
    )

  def diff(self, id: str, olds: RemoteAssetRecord, news: AssetInputs) -> DiffResult:
    descriptor = self._describe(news)

    if olds.bucket != descriptor.bucket:
      return DiffResult(changes=True, reason="bucket changed")
    if olds.key is not None and olds.key != descriptor.key:
      return DiffResult(changes=True, reason="key changed")
    if olds.state is not LifecycleTag.ACTIVE:
      return DiffResult(changes=True, reason="object is not tagged active")
    if not matches(olds.integrity, descriptor.integrity):
      return DiffResult(changes=True, reason="content changed")
    return DiffResult(changes=False)

  def update(self, id: str, olds: RemoteAssetRecord, news: AssetInputs) -> UpdateResult:
    try:
      descriptor = self._describe(news)
      self._put(descriptor)
    except Exception:
      logger.exception("Failed to update asset %s in %s", id, news.bucket)
      raise

    logger.info("Updated %s in s3://%s", descriptor.key, descriptor.bucket)
    return UpdateResult(outs=RemoteAssetRecord.from_descriptor(descriptor))

  def delete(self, id: str, olds: RemoteAssetRecord) -> None:
    bucket = olds.bucket or ""
    key = olds.key or id
    try:
      self.store.put_object_tagging(
        bucket=bucket,
        key=key,
        tags={LIFECYCLE_TAG_KEY: LifecycleTag.REMOVED.value},
      )
    except Exception:
      logger.exception("Failed to mark %s removed in %s", key, bucket)
      raise

    logger.info("Marked %s removed in s3://%s", key, bucket)

  def load_outs(self, data: dict[str, Any]) -> RemoteAssetRecord:
    return RemoteAssetRecord.from_dict(data)

  def dump_outs(self, outs: RemoteAssetRecord) -> dict[str, Any]:
    return outs.to_dict()


class LazilyDeletedAsset(Resource):
  """Resource node for a single published file."""

  def __init__(
    self,
    name: str,
    inputs: AssetInputs,
    provider: AssetProvider,
    *,
    depends_on: list[Resource] | None = None,
  ) -> None:
    super().__init__(
      name=name,
      provider=provider,
      inputs=inputs,
      depends_on=list(depends_on or []),
    )

  @property
  def key(self) -> str:
    return logical_key(self.inputs.root, self.inputs.path)

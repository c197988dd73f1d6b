"""Publish static site assets to S3 with lazy, tag-based deletion."""

from .asset import AssetInputs, AssetProvider, LazilyDeletedAsset
from .bucket import (
  BucketConfig,
  BucketProvider,
  BucketResource,
  GlobOptions,
  LazilyDeletedBucket,
  expand,
)
from .engine import Reconciler, ReconcileSummary
from .errors import (
  AssetPublisherError,
  DependencyNotReady,
  ReconcileError,
  RemoteStoreError,
  SourceUnavailable,
)
from .integrity import Integrity, matches
from .state import StateFile
from .store import ObjectStore, S3ObjectStore
from .upload import LifecycleTag, RemoteAssetRecord, UploadDescriptor, build_upload_descriptor

__all__ = [
  "AssetInputs",
  "AssetProvider",
  "AssetPublisherError",
  "BucketConfig",
  "BucketProvider",
  "BucketResource",
  "DependencyNotReady",
  "GlobOptions",
  "Integrity",
  "LazilyDeletedAsset",
  "LazilyDeletedBucket",
  "LifecycleTag",
  "ObjectStore",
  "ReconcileError",
  "ReconcileSummary",
  "Reconciler",
  "RemoteAssetRecord",
  "RemoteStoreError",
  "S3ObjectStore",
  "SourceUnavailable",
  "StateFile",
  "UploadDescriptor",
  "build_upload_descriptor",
  "expand",
  "matches",
]

"""Object store client used by the asset providers."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any
from urllib.parse import urlencode

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import RemoteStoreError

logger = logging.getLogger(__name__)

EXPIRATION_RULE_ID = "expire-removed-assets"


class ObjectStore(ABC):
  """Bucket operations the publisher needs from a storage backend."""

  @abstractmethod
  def put_object(
    self,
    *,
    bucket: str,
    key: str,
    body: bytes,
    content_type: str,
    acl: str,
    metadata: dict[str, str],
    tags: dict[str, str],
  ) -> None:
    """Write (or fully overwrite) an object with its metadata and tags."""

  @abstractmethod
  def delete_object(self, *, bucket: str, key: str) -> None:
    """Remove an object."""

  @abstractmethod
  def put_object_tagging(self, *, bucket: str, key: str, tags: dict[str, str]) -> None:
    """Replace the tag set of an existing object."""

  @abstractmethod
  def bucket_exists(self, bucket: str) -> bool:
    """Check whether the bucket exists and is reachable."""

  @abstractmethod
  def create_bucket(self, bucket: str, *, region: str) -> None:
    """Create a bucket that accepts public-read object ACLs."""

  @abstractmethod
  def put_expiration_rule(
    self, bucket: str, *, tag_key: str, tag_value: str, days: int
  ) -> None:
    """Expire objects carrying the given tag after `days` days."""


class S3ObjectStore(ObjectStore):
  """ObjectStore backed by Amazon S3 through boto3."""

  def __init__(self, client: Any = None, *, region: str | None = None) -> None:
    self.s3 = client or boto3.client("s3", region_name=region)

  @contextmanager
  def _call(self, operation: str, bucket: str, key: str | None = None) -> Iterator[None]:
    try:
      yield
    except (ClientError, BotoCoreError) as e:
      raise RemoteStoreError(operation, bucket, key) from e

  def put_object(
    self,
    *,
    bucket: str,
    key: str,
    body: bytes,
    content_type: str,
    acl: str,
    metadata: dict[str, str],
    tags: dict[str, str],
  ) -> None:
    with self._call("PutObject", bucket, key):
      self.s3.put_object(
        Bucket=bucket,
        Key=key,
        Body=body,
        ContentType=content_type,
        ACL=acl,
        Metadata=metadata,
        Tagging=urlencode(tags),
      )
    logger.debug("Put s3://%s/%s (%d bytes)", bucket, key, len(body))

  def delete_object(self, *, bucket: str, key: str) -> None:
    with self._call("DeleteObject", bucket, key):
      self.s3.delete_object(Bucket=bucket, Key=key)

  def put_object_tagging(self, *, bucket: str, key: str, tags: dict[str, str]) -> None:
    with self._call("PutObjectTagging", bucket, key):
      self.s3.put_object_tagging(
        Bucket=bucket,
        Key=key,
        Tagging={"TagSet": [{"Key": k, "Value": v} for k, v in tags.items()]},
      )

  def bucket_exists(self, bucket: str) -> bool:
    try:
      self.s3.head_bucket(Bucket=bucket)
    except ClientError as e:
      code = e.response.get("Error", {}).get("Code")
      if code in ("404", "NoSuchBucket", "NotFound"):
        return False
      raise RemoteStoreError("HeadBucket", bucket) from e
    except BotoCoreError as e:
      raise RemoteStoreError("HeadBucket", bucket) from e
    return True

  def create_bucket(self, bucket: str, *, region: str) -> None:
    kwargs: dict[str, Any] = {
      "Bucket": bucket,
      # Objects are published with ACL=public-read
      "ObjectOwnership": "BucketOwnerPreferred",
    }
    # us-east-1 rejects an explicit LocationConstraint
    if region != "us-east-1":
      kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}

    with self._call("CreateBucket", bucket):
      self.s3.create_bucket(**kwargs)
    with self._call("PutPublicAccessBlock", bucket):
      self.s3.put_public_access_block(
        Bucket=bucket,
        PublicAccessBlockConfiguration={
          "BlockPublicAcls": False,
          "IgnorePublicAcls": False,
          "BlockPublicPolicy": False,
          "RestrictPublicBuckets": False,
        },
      )
    logger.info("Created bucket %s in %s", bucket, region)

  def _lifecycle_rules(self, bucket: str) -> list[dict[str, Any]]:
    try:
      response = self.s3.get_bucket_lifecycle_configuration(Bucket=bucket)
    except ClientError as e:
      if e.response.get("Error", {}).get("Code") == "NoSuchLifecycleConfiguration":
        return []
      raise RemoteStoreError("GetBucketLifecycleConfiguration", bucket) from e
    except BotoCoreError as e:
      raise RemoteStoreError("GetBucketLifecycleConfiguration", bucket) from e
    return list(response.get("Rules", []))

  def put_expiration_rule(
    self, bucket: str, *, tag_key: str, tag_value: str, days: int
  ) -> None:
    """Install or replace the expiration rule, keeping the bucket's other rules."""
    rule = {
      "ID": EXPIRATION_RULE_ID,
      "Status": "Enabled",
      "Filter": {"Tag": {"Key": tag_key, "Value": tag_value}},
      "Expiration": {"Days": days},
    }
    rules = [r for r in self._lifecycle_rules(bucket) if r.get("ID") != EXPIRATION_RULE_ID]
    rules.append(rule)

    with self._call("PutBucketLifecycleConfiguration", bucket):
      self.s3.put_bucket_lifecycle_configuration(
        Bucket=bucket,
        LifecycleConfiguration={"Rules": rules},
      )

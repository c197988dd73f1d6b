"""Tests for the S3 object store client."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from asset_publisher.errors import RemoteStoreError
from asset_publisher.store import EXPIRATION_RULE_ID, S3ObjectStore


def client_error(code: str, operation: str = "Operation") -> ClientError:
  return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def s3() -> MagicMock:
  """Create a mock boto3 S3 client."""
  return MagicMock()


@pytest.fixture
def store(s3: MagicMock) -> S3ObjectStore:
  """Create an S3ObjectStore around the mock client."""
  return S3ObjectStore(s3)


class TestPutObject:
  """Tests for S3ObjectStore.put_object."""

  def test_passes_all_options(self, store: S3ObjectStore, s3: MagicMock) -> None:
    """Content, ACL, metadata and tags go out in one call."""
    store.put_object(
      bucket="b",
      key="css/app.css",
      body=b"x",
      content_type="text/css",
      acl="public-read",
      metadata={"integrity": "sha512-abc"},
      tags={"AssetActiveState": "active"},
    )

    s3.put_object.assert_called_once_with(
      Bucket="b",
      Key="css/app.css",
      Body=b"x",
      ContentType="text/css",
      ACL="public-read",
      Metadata={"integrity": "sha512-abc"},
      Tagging="AssetActiveState=active",
    )

  def test_wraps_client_error(self, store: S3ObjectStore, s3: MagicMock) -> None:
    """Client errors become RemoteStoreError with the cause attached."""
    s3.put_object.side_effect = client_error("AccessDenied", "PutObject")

    with pytest.raises(RemoteStoreError) as exc_info:
      store.put_object(
        bucket="b",
        key="index.html",
        body=b"",
        content_type="text/html",
        acl="public-read",
        metadata={},
        tags={},
      )

    assert exc_info.value.key == "index.html"
    assert isinstance(exc_info.value.__cause__, ClientError)
    assert "s3://b/index.html" in str(exc_info.value)
    assert "AccessDenied" in str(exc_info.value)

  def test_wraps_network_error(self, store: S3ObjectStore, s3: MagicMock) -> None:
    """Connection failures are wrapped too."""
    s3.put_object.side_effect = EndpointConnectionError(endpoint_url="https://s3")

    with pytest.raises(RemoteStoreError):
      store.put_object(
        bucket="b",
        key="k",
        body=b"",
        content_type="text/html",
        acl="public-read",
        metadata={},
        tags={},
      )


class TestTagging:
  """Tests for tagging and deleting objects."""

  def test_put_object_tagging(self, store: S3ObjectStore, s3: MagicMock) -> None:
    """Tags are sent as a TagSet."""
    store.put_object_tagging(bucket="b", key="k", tags={"AssetActiveState": "removed"})

    s3.put_object_tagging.assert_called_once_with(
      Bucket="b",
      Key="k",
      Tagging={"TagSet": [{"Key": "AssetActiveState", "Value": "removed"}]},
    )

  def test_delete_object(self, store: S3ObjectStore, s3: MagicMock) -> None:
    """delete_object maps directly onto the S3 call."""
    store.delete_object(bucket="b", key="k")
    s3.delete_object.assert_called_once_with(Bucket="b", Key="k")

  def test_tagging_missing_key(self, store: S3ObjectStore, s3: MagicMock) -> None:
    """Tagging a missing object is a remote store error."""
    s3.put_object_tagging.side_effect = client_error("NoSuchKey")
    with pytest.raises(RemoteStoreError):
      store.put_object_tagging(bucket="b", key="k", tags={})


class TestBuckets:
  """Tests for bucket operations."""

  def test_bucket_exists(self, store: S3ObjectStore, s3: MagicMock) -> None:
    """A successful HeadBucket means the bucket exists."""
    assert store.bucket_exists("b") is True

  def test_bucket_missing(self, store: S3ObjectStore, s3: MagicMock) -> None:
    """A 404 means the bucket does not exist."""
    s3.head_bucket.side_effect = client_error("404", "HeadBucket")
    assert store.bucket_exists("b") is False

  def test_bucket_forbidden(self, store: S3ObjectStore, s3: MagicMock) -> None:
    """A bucket owned by someone else is an error, not absence."""
    s3.head_bucket.side_effect = client_error("403", "HeadBucket")
    with pytest.raises(RemoteStoreError):
      store.bucket_exists("b")

  def test_create_bucket_us_east_1(self, store: S3ObjectStore, s3: MagicMock) -> None:
    """No LocationConstraint is sent for us-east-1."""
    store.create_bucket("b", region="us-east-1")

    s3.create_bucket.assert_called_once_with(Bucket="b", ObjectOwnership="BucketOwnerPreferred")
    s3.put_public_access_block.assert_called_once()

  def test_create_bucket_other_region(self, store: S3ObjectStore, s3: MagicMock) -> None:
    """Other regions need a LocationConstraint."""
    store.create_bucket("b", region="eu-west-1")

    kwargs = s3.create_bucket.call_args.kwargs
    assert kwargs["CreateBucketConfiguration"] == {"LocationConstraint": "eu-west-1"}

  def test_create_bucket_collision(self, store: S3ObjectStore, s3: MagicMock) -> None:
    """Name collisions surface as RemoteStoreError."""
    s3.create_bucket.side_effect = client_error("BucketAlreadyExists")
    with pytest.raises(RemoteStoreError):
      store.create_bucket("b", region="us-east-1")
    s3.put_public_access_block.assert_not_called()

  def test_put_expiration_rule(self, store: S3ObjectStore, s3: MagicMock) -> None:
    """The lifecycle rule expires objects by tag."""
    s3.get_bucket_lifecycle_configuration.side_effect = client_error(
      "NoSuchLifecycleConfiguration"
    )
    store.put_expiration_rule("b", tag_key="AssetActiveState", tag_value="removed", days=15)

    rules = s3.put_bucket_lifecycle_configuration.call_args.kwargs["LifecycleConfiguration"]["Rules"]
    assert rules == [
      {
        "ID": EXPIRATION_RULE_ID,
        "Status": "Enabled",
        "Filter": {"Tag": {"Key": "AssetActiveState", "Value": "removed"}},
        "Expiration": {"Days": 15},
      }
    ]

  def test_put_expiration_rule_keeps_other_rules(
    self, store: S3ObjectStore, s3: MagicMock
  ) -> None:
    """Rules already on an adopted bucket survive; ours is replaced in place."""
    logs_rule = {
      "ID": "expire-logs",
      "Status": "Enabled",
      "Filter": {"Prefix": "logs/"},
      "Expiration": {"Days": 90},
    }
    s3.get_bucket_lifecycle_configuration.return_value = {
      "Rules": [
        logs_rule,
        {
          "ID": EXPIRATION_RULE_ID,
          "Status": "Enabled",
          "Filter": {"Tag": {"Key": "AssetActiveState", "Value": "removed"}},
          "Expiration": {"Days": 15},
        },
      ]
    }

    store.put_expiration_rule("b", tag_key="AssetActiveState", tag_value="removed", days=30)

    rules = s3.put_bucket_lifecycle_configuration.call_args.kwargs["LifecycleConfiguration"]["Rules"]
    assert rules[0] == logs_rule
    assert [r["ID"] for r in rules] == ["expire-logs", EXPIRATION_RULE_ID]
    assert rules[1]["Expiration"] == {"Days": 30}

  def test_put_expiration_rule_read_denied(self, store: S3ObjectStore, s3: MagicMock) -> None:
    """Failing to read the current rules never overwrites them."""
    s3.get_bucket_lifecycle_configuration.side_effect = client_error("AccessDenied")

    with pytest.raises(RemoteStoreError) as exc_info:
      store.put_expiration_rule("b", tag_key="AssetActiveState", tag_value="removed", days=15)

    assert exc_info.value.operation == "GetBucketLifecycleConfiguration"
    s3.put_bucket_lifecycle_configuration.assert_not_called()

"""Bucket container: one S3 bucket plus one asset resource per matched file."""

import logging
import os
import re
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from .asset import AssetInputs, AssetProvider, LazilyDeletedAsset
from .provider import CreateResult, DiffResult, Resource, ResourceProvider, UpdateResult
from .store import ObjectStore
from .upload import DEFAULT_FALLBACK_CONTENT_TYPE, LIFECYCLE_TAG_KEY, LifecycleTag

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 15

_BRACE_RE = re.compile(r"\{([^{}]*)\}")


@dataclass(frozen=True)
class BucketConfig:
  """Desired state of the backing bucket."""

  bucket_name: str
  region: str = "us-east-1"
  retention_days: int = DEFAULT_RETENTION_DAYS


@dataclass
class BucketOuts:
  bucket: str
  region: str
  retention_days: int


@dataclass(frozen=True)
class GlobOptions:
  """Options for expanding the asset pattern.

  `cwd` is both the directory patterns are matched in and the root that
  logical keys are relative to.
  """

  cwd: str | None = None
  ignore: tuple[str, ...] = field(default_factory=tuple)
  dot: bool = False


class BucketProvider(ResourceProvider):
  """Creates the bucket and installs the removed-asset expiration rule."""

  type_name = "bucket"

  def __init__(self, store: ObjectStore) -> None:
    self.store = store

  def _converge(self, config: BucketConfig) -> BucketOuts:
    if self.store.bucket_exists(config.bucket_name):
      logger.info("Bucket %s already exists, adopting it", config.bucket_name)
    else:
      self.store.create_bucket(config.bucket_name, region=config.region)

    self.store.put_expiration_rule(
      config.bucket_name,
      tag_key=LIFECYCLE_TAG_KEY,
      tag_value=LifecycleTag.REMOVED.value,
      days=config.retention_days,
    )
    return BucketOuts(
      bucket=config.bucket_name,
      region=config.region,
      retention_days=config.retention_days,
    )

  def create(self, inputs: BucketConfig) -> CreateResult:
    return CreateResult(id=inputs.bucket_name, outs=self._converge(inputs))

  def diff(self, id: str, olds: BucketOuts, news: BucketConfig) -> DiffResult:
    if olds.bucket != news.bucket_name:
      return DiffResult(changes=True, reason="bucket name changed")
    if olds.region != news.region:
      return DiffResult(changes=True, reason="region changed")
    if olds.retention_days != news.retention_days:
      return DiffResult(changes=True, reason="retention changed")
    return DiffResult(changes=False)

  def update(self, id: str, olds: BucketOuts, news: BucketConfig) -> UpdateResult:
    return UpdateResult(outs=self._converge(news))

  def delete(self, id: str, olds: BucketOuts) -> None:
    # Removed assets still live here until they expire
    logger.warning("Retaining bucket %s; delete it manually once empty", olds.bucket)

  def load_outs(self, data: dict[str, Any]) -> BucketOuts:
    return BucketOuts(
      bucket=data["bucket"],
      region=data.get("region", "us-east-1"),
      retention_days=int(data.get("retention_days", DEFAULT_RETENTION_DAYS)),
    )

  def dump_outs(self, outs: BucketOuts) -> dict[str, Any]:
    return asdict(outs)


class BucketResource(Resource):
  """Resource node for the bucket itself."""

  def __init__(self, name: str, config: BucketConfig, provider: BucketProvider) -> None:
    super().__init__(name=name, provider=provider, inputs=config)

  @property
  def bucket_name(self) -> str:
    return self.inputs.bucket_name


def expand_braces(pattern: str) -> list[str]:
  """Expand `{a,b}` alternatives, e.g. `*.{js,css}` -> `*.js`, `*.css`."""
  match = _BRACE_RE.search(pattern)
  if match is None:
    return [pattern]
  head, tail = pattern[: match.start()], pattern[match.end() :]
  expanded: list[str] = []
  for option in match.group(1).split(","):
    expanded.extend(expand_braces(f"{head}{option}{tail}"))
  return expanded


def _match(root: Path, pattern: str) -> set[str]:
  # A trailing `**` means "everything below", files included
  if pattern == "**" or pattern.endswith("/**"):
    pattern = f"{pattern}/*"

  matched: set[str] = set()
  for brace_free in expand_braces(pattern):
    for path in root.glob(brace_free):
      if path.is_file():
        matched.add(path.relative_to(root).as_posix())
  return matched


def expand(
  pattern: str | Iterable[str],
  *,
  cwd: str | None = None,
  ignore: Iterable[str] = (),
  dot: bool = False,
) -> list[str]:
  """Expand glob patterns into sorted, forward-slash relative file paths.

  Patterns starting with `!` exclude what they match, as do `ignore`
  patterns. Files or directories starting with `.` are skipped unless
  `dot` is set.
  """
  patterns = [pattern] if isinstance(pattern, str) else list(pattern)
  root = Path(cwd or os.getcwd())

  included: set[str] = set()
  excluded: set[str] = set()
  for p in patterns:
    if p.startswith("!"):
      excluded |= _match(root, p[1:])
    else:
      included |= _match(root, p)
  for p in ignore:
    excluded |= _match(root, p)

  files = included - excluded
  if not dot:
    files = {f for f in files if not any(part.startswith(".") for part in f.split("/"))}
  return sorted(files)


class LazilyDeletedBucket:
  """A bucket whose assets are tagged instead of deleted when they go away.

  The filesystem is globbed once, when the container is built. Every asset
  depends on the bucket resource, so no upload starts before the bucket and
  its expiration rule exist.
  """

  def __init__(
    self,
    name: str,
    pattern: str | list[str],
    store: ObjectStore,
    *,
    glob_options: GlobOptions | None = None,
    bucket_config: BucketConfig | None = None,
    fallback_content_type: str = DEFAULT_FALLBACK_CONTENT_TYPE,
  ) -> None:
    self.name = name
    glob_options = glob_options or GlobOptions()
    bucket_config = bucket_config or BucketConfig(bucket_name=f"{name}-bucket")

    self.bucket_resource = BucketResource(
      f"{name}-bucket",
      bucket_config,
      BucketProvider(store),
    )

    root = os.path.abspath(glob_options.cwd or os.getcwd())
    files = expand(
      pattern,
      cwd=root,
      ignore=glob_options.ignore,
      dot=glob_options.dot,
    )
    logger.debug("Pattern %r matched %d file(s) under %s", pattern, len(files), root)
    if self.bucket_resource.name in files:
      raise ValueError(
        f"Asset {self.bucket_resource.name!r} collides with the bucket resource name; "
        "rename the file or the container"
      )

    self.asset_provider = AssetProvider(store, fallback_content_type=fallback_content_type)
    self._assets: list[LazilyDeletedAsset] = [
      LazilyDeletedAsset(
        file,
        AssetInputs(
          path=os.path.join(root, *file.split("/")),
          bucket=bucket_config.bucket_name,
          root=root,
        ),
        self.asset_provider,
        depends_on=[self.bucket_resource],
      )
      for file in files
    ]

  @property
  def bucket(self) -> str:
    return self.bucket_resource.bucket_name

  @property
  def bucket_domain_name(self) -> str:
    return f"{self.bucket}.s3.amazonaws.com"

  @property
  def bucket_regional_domain_name(self) -> str:
    return f"{self.bucket}.s3.{self.bucket_resource.inputs.region}.amazonaws.com"

  @property
  def assets(self) -> list[LazilyDeletedAsset]:
    return list(self._assets)

  @property
  def resources(self) -> list[Resource]:
    """Bucket first, then its assets."""
    return [self.bucket_resource, *self._assets]

  @property
  def providers(self) -> list[ResourceProvider]:
    return [self.bucket_resource.provider, self.asset_provider]

  def outputs(self) -> dict[str, Any]:
    return {
      "bucket": self.bucket,
      "bucketDomainName": self.bucket_domain_name,
      "bucketRegionalDomainName": self.bucket_regional_domain_name,
      "assets": [asset.key for asset in self._assets],
    }

"""Exceptions raised while publishing assets."""


class AssetPublisherError(Exception):
  """Base class for asset publishing failures."""


class SourceUnavailable(AssetPublisherError):
  """A local file vanished or could not be read after discovery."""

  def __init__(self, path: str, key: str | None = None) -> None:
    self.path = path
    self.key = key
    label = f"{key} ({path})" if key else path
    super().__init__(f"Source file unavailable: {label}")


class RemoteStoreError(AssetPublisherError):
  """A call to the backing object store failed.

  The botocore exception is kept as ``__cause__``.
  """

  def __init__(self, operation: str, bucket: str, key: str | None = None) -> None:
    self.operation = operation
    self.bucket = bucket
    self.key = key
    target = f"s3://{bucket}/{key}" if key else f"s3://{bucket}"
    super().__init__(f"{operation} failed for {target}")

  def __str__(self) -> str:
    message = super().__str__()
    if self.__cause__ is not None:
      return f"{message}: {self.__cause__}"
    return message


class DependencyNotReady(AssetPublisherError):
  """A resource was converged before the resources it depends on."""

  def __init__(self, name: str, missing: list[str]) -> None:
    self.name = name
    self.missing = missing
    super().__init__(f"{name} depends on unfinished resources: {', '.join(missing)}")


class ReconcileError(AssetPublisherError):
  """One or more resources failed to converge."""

  def __init__(self, failures: dict[str, BaseException], skipped: list[str]) -> None:
    self.failures = failures
    self.skipped = skipped
    lines = [f"{len(failures)} resource(s) failed to converge"]
    lines.extend(f"  {name}: {error}" for name, error in failures.items())
    if skipped:
      lines.append(f"  skipped (dependency failed): {', '.join(skipped)}")
    super().__init__("\n".join(lines))

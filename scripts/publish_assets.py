#!/usr/bin/env python3
"""Publish the built site assets to the lazily deleted S3 bucket."""

import argparse
import logging
import sys
from pathlib import Path

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from asset_publisher import (
  AssetPublisherError,
  BucketConfig,
  GlobOptions,
  LazilyDeletedBucket,
  Reconciler,
  ReconcileError,
  S3ObjectStore,
  StateFile,
)
from infrastructure.config import Config


def build_container(config: Config, store: S3ObjectStore) -> LazilyDeletedBucket:
  """Glob the asset directory and build the bucket container."""
  return LazilyDeletedBucket(
    config.deployment_key,
    config.assets.pattern,
    store,
    glob_options=GlobOptions(
      cwd=config.assets.cwd,
      ignore=tuple(config.assets.ignore),
      dot=config.assets.dot,
    ),
    bucket_config=BucketConfig(
      bucket_name=config.bucket_name,
      region=config.region,
      retention_days=config.assets.retention_days,
    ),
    fallback_content_type=config.assets.fallback_content_type,
  )


def publish(config: Config, *, preview: bool = False) -> int:
  """Converge the bucket against the local asset directory.

  Returns:
    Process exit code
  """
  store = S3ObjectStore(region=config.region)
  container = build_container(config, store)
  state_file = StateFile(config.assets.state_file)

  reconciler = Reconciler(
    container.resources,
    state_file.load(),
    providers=container.providers,
    max_workers=config.assets.max_workers,
  )

  if preview:
    for name, action in sorted(reconciler.preview().items()):
      print(f"  {action:<7} {name}")
    return 0

  try:
    summary = reconciler.up()
  except ReconcileError as e:
    print(f"Error: {e}", file=sys.stderr)
    return 1
  finally:
    state_file.save(reconciler.state)

  print(f"✓ Published {len(container.assets)} asset(s) to s3://{container.bucket}")
  print(
    f"  {len(summary.created)} created, {len(summary.updated)} updated, "
    f"{len(summary.unchanged)} unchanged, {len(summary.deleted)} marked removed"
  )
  print(f"  Regional domain: {container.bucket_regional_domain_name}")
  return 0


def main() -> None:
  """Publish assets described by the site configuration."""
  parser = argparse.ArgumentParser(description="Publish site assets to S3")
  parser.add_argument(
    "--config",
    default="site.yaml",
    help="Path to the site configuration (default: site.yaml)",
  )
  parser.add_argument(
    "--stack",
    default=None,
    help="Stack to publish (default: the stack named in the config)",
  )
  parser.add_argument(
    "--preview",
    action="store_true",
    help="Show planned actions without touching the bucket",
  )
  parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
  args = parser.parse_args()

  logging.basicConfig(
    level=logging.DEBUG if args.verbose else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
  )
  for noisy in ("boto3", "botocore", "urllib3"):
    logging.getLogger(noisy).setLevel(logging.WARNING)

  try:
    config = Config.from_yaml(Path(args.config), stack=args.stack)
    sys.exit(publish(config, preview=args.preview))
  except (AssetPublisherError, OSError, ValueError) as e:
    print(f"Error: {e}", file=sys.stderr)
    sys.exit(1)


if __name__ == "__main__":
  main()

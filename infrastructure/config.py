"""Configuration loader for the server-rendered site."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_PATH = "site.yaml"


@dataclass
class AssetsConfig:
  """Which local files get published, and where."""

  pattern: list[str] = field(default_factory=lambda: ["**"])
  cwd: str = "build/public"
  ignore: list[str] = field(default_factory=list)
  dot: bool = False
  bucket_name: str | None = None
  retention_days: int = 15
  fallback_content_type: str = "text/html"
  state_file: str = ".asset-state.json"
  max_workers: int = 8


@dataclass
class DistributionConfig:
  """CloudFront distribution in front of the asset bucket."""

  price_class: str = "PriceClass_100"
  default_ttl: int = 3600
  min_ttl: int = 0
  max_ttl: int = 86400
  render_route: str = "/render"
  render_timeout_seconds: int = 30


@dataclass
class Config:
  """Site configuration."""

  project: str
  stack: str = "dev"
  region: str = "us-east-1"
  assets: AssetsConfig = field(default_factory=AssetsConfig)
  distribution: DistributionConfig = field(default_factory=DistributionConfig)
  render: dict[str, Any] = field(default_factory=dict)

  @property
  def deployment_key(self) -> str:
    return f"{self.project}-{self.stack}"

  @property
  def bucket_name(self) -> str:
    return self.assets.bucket_name or f"{self.deployment_key}-static"

  @property
  def edge_render_settings(self) -> dict[str, Any]:
    """Render settings bundled with the edge function.

    The route always follows `distribution.render_route`, which is also the
    distribution's default root object.
    """
    settings: dict[str, Any] = {"mode": "production", "route": self.distribution.render_route}
    if "title" in self.render:
      settings["title"] = self.render["title"]
    return settings

  @classmethod
  def from_yaml(cls, path: Path | str = DEFAULT_CONFIG_PATH, stack: str | None = None) -> "Config":
    """Load configuration from YAML file.

    Values under `defaults` apply first, then top-level values, then the
    entry for the selected stack under `stacks`.
    """
    with open(path) as f:
      data = yaml.safe_load(f) or {}

    defaults: dict[str, Any] = data.get("defaults", {})
    merged = _merge(defaults, {k: v for k, v in data.items() if k not in ("defaults", "stacks")})

    stack_name = stack or merged.get("stack", "dev")
    merged = _merge(merged, data.get("stacks", {}).get(stack_name, {}))

    if "project" not in merged:
      raise ValueError(f"{path}: 'project' is required")

    assets_data = merged.get("assets", {})
    pattern = assets_data.get("pattern", ["**"])
    assets = AssetsConfig(
      pattern=[pattern] if isinstance(pattern, str) else list(pattern),
      cwd=assets_data.get("cwd", "build/public"),
      ignore=list(assets_data.get("ignore", [])),
      dot=assets_data.get("dot", False),
      bucket_name=assets_data.get("bucket_name"),
      retention_days=int(assets_data.get("retention_days", 15)),
      fallback_content_type=assets_data.get("fallback_content_type", "text/html"),
      state_file=assets_data.get("state_file", ".asset-state.json"),
      max_workers=int(assets_data.get("max_workers", 8)),
    )
    if assets.max_workers < 1:
      raise ValueError(f"{path}: assets.max_workers must be at least 1, got {assets.max_workers}")

    dist_data = merged.get("distribution", {})
    distribution = DistributionConfig(
      price_class=dist_data.get("price_class", "PriceClass_100"),
      default_ttl=int(dist_data.get("default_ttl", 3600)),
      min_ttl=int(dist_data.get("min_ttl", 0)),
      max_ttl=int(dist_data.get("max_ttl", 86400)),
      render_route=dist_data.get("render_route", "/render"),
      render_timeout_seconds=int(dist_data.get("render_timeout_seconds", 30)),
    )

    return cls(
      project=merged["project"],
      stack=stack_name,
      region=merged.get("region", "us-east-1"),
      assets=assets,
      distribution=distribution,
      render=dict(merged.get("render", {})),
    )


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
  """Merge two config dicts, one level deep for nested sections."""
  merged = dict(base)
  for key, value in override.items():
    if isinstance(value, dict) and isinstance(merged.get(key), dict):
      merged[key] = {**merged[key], **value}
    else:
      merged[key] = value
  return merged

"""Render app settings."""

import json
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

DEVELOPMENT = "development"
PRODUCTION = "production"
MODES = (DEVELOPMENT, PRODUCTION)

# Written next to the handler when the edge function is packaged
BUNDLED_SETTINGS = Path(__file__).parent / "render_settings.json"


@dataclass(frozen=True)
class RenderSettings:
  """How the HTML document is produced and served.

  `mode` picks the entry point: the Flask dev server in development, the
  CloudFront origin-request handler in production.
  """

  mode: str = PRODUCTION
  route: str = "/render"
  port: int = 3000
  public_dir: str = "build/public"
  assets_manifest: str = str(Path(__file__).parent / "assets.json")
  title: str = "Example React App"

  def __post_init__(self) -> None:
    if self.mode not in MODES:
      raise ValueError(f"Unknown render mode {self.mode!r}, expected one of {MODES}")

  @property
  def production(self) -> bool:
    return self.mode == PRODUCTION

  @classmethod
  def from_dict(cls, data: dict[str, Any]) -> "RenderSettings":
    defaults = cls()
    return cls(
      mode=data.get("mode", defaults.mode),
      route=data.get("route", defaults.route),
      port=int(data.get("port", defaults.port)),
      public_dir=data.get("public_dir", defaults.public_dir),
      assets_manifest=data.get("assets_manifest", defaults.assets_manifest),
      title=data.get("title", defaults.title),
    )


@lru_cache(maxsize=8)
def load_manifest(path: str) -> dict[str, Any]:
  """Load the client bundle manifest, e.g. `{"client": {"js": ..., "css": ...}}`."""
  with open(path) as f:
    manifest: dict[str, Any] = json.load(f)
  return manifest


def load_bundled_settings(path: Path | str = BUNDLED_SETTINGS) -> RenderSettings:
  """Settings packaged with the edge function, or the defaults without them."""
  if not os.path.exists(path):
    return RenderSettings()
  with open(path) as f:
    return RenderSettings.from_dict(json.load(f))

#!/usr/bin/env python3
"""Entry point choosing the dev server or the edge handler from settings."""

import argparse
import functools
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml
from dev_server import create_app
from handler import handle_request
from settings import DEVELOPMENT, RenderSettings


def load_settings(path: Path | str, stack: str | None = None) -> RenderSettings:
  """Read the `render` section of the site configuration.

  A `stacks.<name>.render` section overrides the top-level one. The route
  is `distribution.render_route`, the same one the edge function gets.
  """
  with open(path) as f:
    data = yaml.safe_load(f) or {}

  stack_name = stack or data.get("stack", "dev")
  sections = [data.get("defaults", {}), data, data.get("stacks", {}).get(stack_name, {})]
  render: dict[str, Any] = {}
  distribution: dict[str, Any] = {}
  for section in sections:
    render.update(section.get("render", {}))
    distribution.update(section.get("distribution", {}))

  if "render_route" in distribution:
    render["route"] = distribution["render_route"]
  return RenderSettings.from_dict(render)


def create_entry(settings: RenderSettings) -> Callable[..., Any]:
  """Return the WSGI dev app in development, the edge handler otherwise."""
  if settings.mode == DEVELOPMENT:
    return create_app(settings)
  return functools.partial(handle_request, settings=settings)


def main() -> None:
  """Run the development server."""
  parser = argparse.ArgumentParser(description="Run the render dev server")
  parser.add_argument(
    "--config",
    default="site.yaml",
    help="Path to the site configuration (default: site.yaml)",
  )
  parser.add_argument("--stack", default=None, help="Stack whose settings to use")
  parser.add_argument("--port", type=int, default=None, help="Override the port")
  args = parser.parse_args()

  try:
    settings = load_settings(args.config, args.stack)
  except (OSError, ValueError) as e:
    print(f"Error: {e}", file=sys.stderr)
    sys.exit(1)

  if settings.mode != DEVELOPMENT:
    print("Error: production mode is served by the CloudFront handler", file=sys.stderr)
    sys.exit(1)

  port = args.port or settings.port
  print(f"> Started on port {port}")
  create_entry(settings).run(port=port, debug=True)


if __name__ == "__main__":
  main()

"""Flask development server: static files plus server rendering for every path."""

import os
from typing import Any

from document import render_document, render_markup
from flask import Flask, request, send_from_directory
from settings import RenderSettings, load_manifest


def create_app(settings: RenderSettings) -> Flask:
  """Create the dev server for the given settings."""
  public_dir = os.path.abspath(settings.public_dir)
  app = Flask(__name__, static_folder=None)

  @app.route("/", defaults={"path": ""})
  @app.route("/<path:path>")
  def render(path: str) -> Any:
    """Serve a file from the public directory, or render the app."""
    if path and os.path.isfile(os.path.join(public_dir, path)):
      return send_from_directory(public_dir, path)

    # Re-read so a rebuilt client bundle is picked up without a restart
    load_manifest.cache_clear()
    return render_document(
      render_markup(request.path, settings.route),
      load_manifest(settings.assets_manifest),
      title=settings.title,
      production=settings.production,
    )

  return app

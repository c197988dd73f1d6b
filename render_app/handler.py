"""CloudFront origin-request handler that server-renders the app."""

from typing import Any

from document import render_document, render_markup
from settings import RenderSettings, load_bundled_settings, load_manifest

settings = load_bundled_settings()


def handle_request(event: dict[str, Any], settings: RenderSettings) -> dict[str, Any]:
  """Render the app for the render route, pass every other request through.

  Args:
    event: Lambda@Edge origin-request event
    settings: Render settings (route, manifest, title)

  Returns:
    The unmodified request, or a response with status 200 and the HTML body
  """
  request: dict[str, Any] = event["Records"][0]["cf"]["request"]
  if request.get("uri") != settings.route:
    return request

  body = render_document(
    render_markup(request["uri"], settings.route),
    load_manifest(settings.assets_manifest),
    title=settings.title,
    production=settings.production,
  )
  return {
    "status": "200",
    "statusDescription": "OK",
    "headers": {
      "content-type": [{"key": "Content-Type", "value": "text/html; charset=utf-8"}],
    },
    "body": body,
  }


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
  """Lambda entry point."""
  return handle_request(event, settings)

"""HTML document shell around the rendered app markup."""

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader
from markupsafe import Markup

TEMPLATES_DIR = Path(__file__).parent / "templates"

jinja_env = Environment(
  loader=FileSystemLoader(str(TEMPLATES_DIR)),
  autoescape=True,
)


def render_markup(location: str, route: str = "/render") -> Markup:
  """Render the application body for a request path.

  `route` is the path CloudFront requests for the site root, so it renders
  the home page just like `/`.
  """
  return Markup(jinja_env.get_template("app.html").render(location=location, route=route))


def render_document(
  markup: str,
  manifest: dict[str, Any],
  *,
  title: str,
  production: bool = True,
) -> str:
  """Wrap app markup in a full HTML document.

  The client script gets `crossorigin` outside production so the dev
  bundle served from another port reports readable errors.
  """
  client = manifest.get("client", {})
  return jinja_env.get_template("document.html").render(
    markup=Markup(markup),
    title=title,
    css=client.get("css"),
    js=client.get("js"),
    production=production,
  )

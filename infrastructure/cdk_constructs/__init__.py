"""CDK constructs for the server-rendered site infrastructure."""

from .distribution import SsrDistribution
from .render_function import RenderFunction
from .ssr_site import SsrSiteConstruct

__all__ = [
  "RenderFunction",
  "SsrDistribution",
  "SsrSiteConstruct",
]

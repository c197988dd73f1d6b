"""CDK stacks for the server-rendered site."""

from .site_stack import SsrSiteStack

__all__ = ["SsrSiteStack"]

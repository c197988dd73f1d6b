"""CDK stack for one deployment of the server-rendered site."""

from typing import Any

import aws_cdk as cdk
from constructs import Construct

from infrastructure.cdk_constructs import SsrSiteConstruct
from infrastructure.config import Config


class SsrSiteStack(cdk.Stack):
  """Stack for a single project/stack deployment."""

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    config: Config,
    **kwargs: Any,
  ) -> None:
    super().__init__(scope, id, **kwargs)

    self.site = SsrSiteConstruct(self, "Site", config=config)

    cdk.Tags.of(self).add("Project", config.project)
    cdk.Tags.of(self).add("Stack", config.stack)

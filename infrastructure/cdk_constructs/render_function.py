"""Lambda@Edge function that server-renders the app."""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Any

from aws_cdk import Duration
from aws_cdk import aws_iam as iam
from aws_cdk import aws_lambda as lambda_
from constructs import Construct

RENDER_APP_DIR = Path(__file__).parent.parent.parent / "render_app"
SETTINGS_FILE = "render_settings.json"


def stage_render_app(code_dir: Path | str, render_settings: dict[str, Any]) -> Path:
  """Copy the render app into a staging directory with its settings file.

  Dotfiles and `__pycache__` are left out.

  Returns:
    The staging directory, used as the function's code asset
  """
  staging = Path(tempfile.mkdtemp(prefix="render-app-")) / "code"
  shutil.copytree(code_dir, staging, ignore=shutil.ignore_patterns(".*", "__pycache__"))
  (staging / SETTINGS_FILE).write_text(json.dumps(render_settings, indent=2, sort_keys=True))
  return staging


class RenderFunction(Construct):
  """Python render function, published as a version for CloudFront.

  Lambda@Edge functions cannot use environment variables, so the render
  settings are written next to the handler as `render_settings.json`.
  """

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    resource_prefix: str,
    timeout_seconds: int = 30,
    code_dir: Path | str = RENDER_APP_DIR,
    render_settings: dict[str, Any] | None = None,
  ) -> None:
    super().__init__(scope, id)

    self.code_dir = Path(code_dir)
    if render_settings is not None:
      self.code_dir = stage_render_app(code_dir, render_settings)

    # Edge replicas assume the role through edgelambda.amazonaws.com
    self.role = iam.Role(
      self,
      f"{resource_prefix}-render-permission",
      assumed_by=iam.CompositePrincipal(
        iam.ServicePrincipal("lambda.amazonaws.com"),
        iam.ServicePrincipal("edgelambda.amazonaws.com"),
      ),
      managed_policies=[
        iam.ManagedPolicy.from_aws_managed_policy_name(
          "service-role/AWSLambdaBasicExecutionRole"
        )
      ],
    )

    self.function = lambda_.Function(
      self,
      f"{resource_prefix}-render",
      runtime=lambda_.Runtime.PYTHON_3_12,
      handler="handler.handler",
      code=lambda_.Code.from_asset(str(self.code_dir)),
      timeout=Duration.seconds(timeout_seconds),
      role=self.role,
    )

    self.version = self.function.current_version

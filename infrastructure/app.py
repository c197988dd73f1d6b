#!/usr/bin/env python3
"""CDK application entry point for the server-rendered site."""

import sys
from pathlib import Path

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

import aws_cdk as cdk
import boto3

from infrastructure.config import Config
from infrastructure.stacks.site_stack import SsrSiteStack

# Lambda@Edge functions must be deployed from us-east-1
EDGE_REGION = "us-east-1"


def get_account_id() -> str:
  """Get AWS account ID from current credentials."""
  sts = boto3.client("sts")
  return str(sts.get_caller_identity()["Account"])


def main() -> None:
  """Create the CDK app for the configured project and stack."""
  app = cdk.App()

  config_path = app.node.try_get_context("config") or "site.yaml"
  config = Config.from_yaml(Path(config_path), stack=app.node.try_get_context("stack"))

  SsrSiteStack(
    app,
    f"SsrSite-{config.deployment_key}",
    config=config,
    env=cdk.Environment(
      account=get_account_id(),
      region=EDGE_REGION,
    ),
    description=f"Server-rendered site infrastructure for {config.deployment_key}",
  )

  app.synth()


if __name__ == "__main__":
  main()

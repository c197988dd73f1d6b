"""Composite construct for the server-rendered site's AWS topology."""

from aws_cdk import CfnOutput, Stack
from aws_cdk import aws_s3 as s3
from constructs import Construct

from infrastructure.config import Config

from .distribution import SsrDistribution
from .render_function import RenderFunction


class SsrSiteConstruct(Construct):
  """Render function and CloudFront distribution for one deployment.

  Creates:
  - IAM role assumable by Lambda and Lambda@Edge
  - Python render function attached as an origin-request edge handler
  - CloudFront distribution with the asset bucket as origin

  The asset bucket itself is owned by the asset publisher
  (`scripts/publish_assets.py`), which installs the expiration rule for
  removed assets, so it is imported here by name.
  """

  def __init__(self, scope: Construct, id: str, *, config: Config) -> None:
    super().__init__(scope, id)

    stack_name = Stack.of(self).stack_name

    self.bucket = s3.Bucket.from_bucket_attributes(
      self,
      f"{stack_name}-static",
      bucket_name=config.bucket_name,
      region=config.region,
    )

    self.render = RenderFunction(
      self,
      f"{stack_name}-render",
      resource_prefix=config.deployment_key,
      timeout_seconds=config.distribution.render_timeout_seconds,
      render_settings=config.edge_render_settings,
    )

    self.distribution = SsrDistribution(
      self,
      f"{stack_name}-distribution",
      bucket=self.bucket,
      render_version=self.render.version,
      render_route=config.distribution.render_route,
      price_class=config.distribution.price_class,
      default_ttl=config.distribution.default_ttl,
      min_ttl=config.distribution.min_ttl,
      max_ttl=config.distribution.max_ttl,
    )

    # Outputs
    CfnOutput(
      self,
      "CloudfrontUrl",
      value=self.distribution.distribution.distribution_domain_name,
      description="CloudFront distribution domain name",
    )
    CfnOutput(
      self,
      "BucketId",
      value=self.bucket.bucket_name,
      description="Asset bucket name",
    )

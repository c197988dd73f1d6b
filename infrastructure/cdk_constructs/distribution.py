"""CloudFront distribution with the asset bucket origin and edge rendering."""

from aws_cdk import Duration
from aws_cdk import aws_cloudfront as cloudfront
from aws_cdk import aws_cloudfront_origins as origins
from aws_cdk import aws_lambda as lambda_
from aws_cdk import aws_s3 as s3
from constructs import Construct

PRICE_CLASSES = {
  "PriceClass_100": cloudfront.PriceClass.PRICE_CLASS_100,
  "PriceClass_200": cloudfront.PriceClass.PRICE_CLASS_200,
  "PriceClass_All": cloudfront.PriceClass.PRICE_CLASS_ALL,
}


class SsrDistribution(Construct):
  """CloudFront distribution serving bucket assets and rendered pages."""

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    bucket: s3.IBucket,
    render_version: lambda_.IVersion,
    render_route: str = "/render",
    price_class: str = "PriceClass_100",
    default_ttl: int = 3600,
    min_ttl: int = 0,
    max_ttl: int = 86400,
  ) -> None:
    super().__init__(scope, id)

    if price_class not in PRICE_CLASSES:
      raise ValueError(f"Unknown price class: {price_class}")

    self.origin_access_identity = cloudfront.OriginAccessIdentity(
      self,
      "OriginAccessIdentity",
      comment=f"Access to {bucket.bucket_name}",
    )

    cache_policy = cloudfront.CachePolicy(
      self,
      "CachePolicy",
      default_ttl=Duration.seconds(default_ttl),
      min_ttl=Duration.seconds(min_ttl),
      max_ttl=Duration.seconds(max_ttl),
      cookie_behavior=cloudfront.CacheCookieBehavior.none(),
      query_string_behavior=cloudfront.CacheQueryStringBehavior.none(),
    )

    self.distribution = cloudfront.Distribution(
      self,
      "Distribution",
      default_behavior=cloudfront.BehaviorOptions(
        origin=origins.S3BucketOrigin.with_origin_access_identity(
          bucket,
          origin_access_identity=self.origin_access_identity,
        ),
        viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.ALLOW_ALL,
        allowed_methods=cloudfront.AllowedMethods.ALLOW_GET_HEAD_OPTIONS,
        cached_methods=cloudfront.CachedMethods.CACHE_GET_HEAD,
        cache_policy=cache_policy,
        edge_lambdas=[
          cloudfront.EdgeLambda(
            event_type=cloudfront.LambdaEdgeEventType.ORIGIN_REQUEST,
            function_version=render_version,
            include_body=True,
          )
        ],
      ),
      enable_ipv6=True,
      price_class=PRICE_CLASSES[price_class],
      # CloudFront requests /render for the root, which the edge handler renders
      default_root_object=render_route.lstrip("/"),
    )

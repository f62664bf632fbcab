from constructs import Construct
from aws_cdk import (
    RemovalPolicy,
    aws_s3 as s3,
)
from cdk_nag import NagSuppressions


class S3BucketConstruct(Construct):
    """
    Creates a private S3 bucket for images.

    - Public access block enabled
    - S3-managed encryption
    - SSL enforced
    - Optional EventBridge notifications for object events
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        *,
        bucket_name: str,
        event_bridge_enabled: bool = False,
    ) -> None:
        super().__init__(scope, id)

        self.bucket = s3.Bucket(
            self,
            "Bucket",
            bucket_name=bucket_name,
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            encryption=s3.BucketEncryption.S3_MANAGED,
            enforce_ssl=True,
            event_bridge_enabled=event_bridge_enabled,
            removal_policy=RemovalPolicy.DESTROY,
            auto_delete_objects=True,
        )

        NagSuppressions.add_resource_suppressions(
            self.bucket,
            suppressions=[
                {
                    "id": "AwsSolutions-S1",
                    "reason": "Image buckets hold derived or user-uploaded media; access logs are not required.",
                }
            ],
        )

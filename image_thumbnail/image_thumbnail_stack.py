from aws_cdk import (
    Stack,
    CfnOutput,
    aws_events as events,
    aws_events_targets as targets,
)
from constructs import Construct

from cdk_constructs.bucket import S3BucketConstruct
from cdk_constructs.lmbda_construct import LambdaConstruct

# installed next to the function package in the Lambda asset
RUNTIME_REQUIREMENTS = [
    "aws-lambda-powertools[tracer]",
    "pillow",
    "pydantic",
    "pydantic-settings",
]


class ImageThumbnailStack(Stack):
    """Originals bucket, thumbnails bucket and the function between them.

    Thumbnails are named after the final segment of the object key, so
    "a/photo.jpg" and "b/photo.jpg" would share one thumbnail. The rule
    only forwards keys at the top level of the originals bucket.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        originals_bucket_name: str,
        thumbnails_bucket_name: str,
        thumbnail_max_width: int = 150,
        thumbnail_max_height: int = 150,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        originals_bucket = S3BucketConstruct(
            self, "OriginalsBucket",
            bucket_name=originals_bucket_name,
            event_bridge_enabled=True,
        ).bucket

        thumbnails_bucket = S3BucketConstruct(
            self, "ThumbnailsBucket",
            bucket_name=thumbnails_bucket_name,
        ).bucket

        thumbnail_fn = LambdaConstruct(
            self, "ThumbnailFunction",
            function_name="image_thumbnail",
            handler="thumbnail_function.handler.lambda_handler",
            code_path=".",
            package="thumbnail_function",
            requirements=RUNTIME_REQUIREMENTS,
            env={
                "ORIGINALS_FOLDER": originals_bucket.bucket_name,
                "THUMBNAILS_FOLDER": thumbnails_bucket.bucket_name,
                "THUMBNAIL_MAX_WIDTH": str(thumbnail_max_width),
                "THUMBNAIL_MAX_HEIGHT": str(thumbnail_max_height),
                "POWERTOOLS_SERVICE_NAME": "image-thumbnail",
                "POWERTOOLS_TRACE_DISABLED": "true",
            },
            timeout=60,
        ).lambda_fn

        originals_bucket.grant_read(thumbnail_fn)
        thumbnails_bucket.grant_put(thumbnail_fn)

        # S3 "Object Created" events for top-level keys of the originals bucket
        rule = events.Rule(
            self, "OriginalUploadedRule",
            event_pattern=events.EventPattern(
                source=["aws.s3"],
                detail_type=["Object Created"],
                detail={
                    "bucket": {"name": [originals_bucket.bucket_name]},
                    "object": {"key": [{"anything-but": {"wildcard": "*/*"}}]},
                },
            ),
        )

        bucket_field = events.EventField.from_path("$.detail.bucket.name")
        key_field = events.EventField.from_path("$.detail.object.key")

        # reshape into the notification format the function consumes
        rule.add_target(
            targets.LambdaFunction(
                thumbnail_fn,
                event=events.RuleTargetInput.from_object({
                    "id": events.EventField.event_id,
                    "topic": events.EventField.source,
                    "subject": f"{bucket_field}/{key_field}",
                    "eventType": events.EventField.detail_type,
                    "eventTime": events.EventField.time,
                    "data": {
                        "api": events.EventField.from_path("$.detail.reason"),
                        "requestId": events.EventField.from_path("$.detail.request-id"),
                        "etag": events.EventField.from_path("$.detail.object.etag"),
                        "contentLength": events.EventField.from_path("$.detail.object.size"),
                        "sequencer": events.EventField.from_path("$.detail.object.sequencer"),
                        "url": f"https://s3.amazonaws.com/{bucket_field}/{key_field}",
                    },
                }),
                retry_attempts=0,
            )
        )

        CfnOutput(self, "OriginalsBucketName", value=originals_bucket.bucket_name)
        CfnOutput(self, "ThumbnailsBucketName", value=thumbnails_bucket.bucket_name)

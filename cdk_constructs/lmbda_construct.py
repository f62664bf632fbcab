from typing import List, Optional

from aws_cdk import (
    BundlingOptions,
    Duration,
    aws_lambda as lmbda,
    aws_sqs as sqs,
)
from constructs import Construct
from cdk_nag import NagSuppressions


class LambdaConstruct(Construct):
    """
    A reusable Python Lambda construct for event-driven functions.

    Defaults:
    - Python 3.12 runtime
    - DLQ automatically created for failed async invocations
    - Tracing disabled with cdk-nag suppression
    - 30s timeout
    - 512 MB memory
    - Dependencies installed into the asset when ``requirements`` is given
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        *,
        function_name: str,
        handler: str,
        code_path: str,
        package: str,
        requirements: Optional[List[str]] = None,
        env: dict = None,
        runtime: lmbda.Runtime = lmbda.Runtime.PYTHON_3_12,
        timeout: int = 30,
        memory: int = 512,
    ):
        super().__init__(scope, id)

        dlq = sqs.Queue(
            self,
            "DLQ",
            queue_name=f"{function_name}-dlq",
            enforce_ssl=True
        )

        NagSuppressions.add_resource_suppressions(
            dlq,
            suppressions=[
                {
                    "id": "AwsSolutions-SQS3",
                    "reason": "This queue IS the dead letter queue of the function.",
                },
                {
                    "id": "Serverless-SQSRedrivePolicy",
                    "reason": "Redrive to another queue is not necessary for this project.",
                },
            ]
        )

        install = ""
        if requirements:
            install = f"pip install --no-cache-dir {' '.join(requirements)} -t /asset-output && "

        self.lambda_fn = lmbda.Function(
            self,
            "Lambda",
            function_name=function_name,
            handler=handler,
            runtime=runtime,
            code=lmbda.Code.from_asset(
                code_path,
                exclude=["cdk.out", "tests", ".*", "*.egg-info"],
                bundling=BundlingOptions(
                    image=runtime.bundling_image,
                    command=["bash", "-c", f"{install}cp -r {package} /asset-output/"],
                ),
            ),
            timeout=Duration.seconds(timeout),
            memory_size=memory,
            environment=env or {},
            dead_letter_queue=dlq,
            tracing=lmbda.Tracing.DISABLED,
        )

        NagSuppressions.add_resource_suppressions(
            self.lambda_fn,
            suppressions=[
                {
                    "id": "Serverless-LambdaTracing",
                    "reason": (
                        "X-Ray tracing is intentionally disabled to reduce costs. "
                        "CloudWatch Logs with Powertools structured logging provides sufficient observability."
                    )
                }
            ]
        )

        if self.lambda_fn.role:
            NagSuppressions.add_resource_suppressions(
                self.lambda_fn.role,
                suppressions=[
                    {
                        "id": "AwsSolutions-IAM4",
                        "reason": (
                            "AWSLambdaBasicExecutionRole is the minimal AWS managed policy providing "
                            "only CloudWatch Logs access."
                        )
                    },
                    {
                        "id": "AwsSolutions-IAM5",
                        "reason": (
                            "Bucket grants use object-level wildcards scoped to a single bucket."
                        )
                    },
                ],
                apply_to_children=True,
            )

"""CDK Stack for the browser automation Lambda."""
from pathlib import Path

from aws_cdk import (
    CfnOutput,
    Duration,
    Size,
    Stack,
    aws_ecr_assets as ecr_assets,
    aws_lambda as lambda_,
    aws_logs as logs,
)
from constructs import Construct

# Project root for Docker build context
PROJECT_ROOT = Path(__file__).parent.parent.parent


class BrowserAutomationStack(Stack):
    """Container Lambda running the Playwright station finder."""

    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        target_url = self.node.try_get_context("browser_target_url") or ""

        browser_handler = lambda_.DockerImageFunction(
            self,
            "BrowserHandler",
            function_name="browser-lambda",
            code=lambda_.DockerImageCode.from_image_asset(
                str(PROJECT_ROOT),
                file="src/browser_handler/Dockerfile",
                platform=ecr_assets.Platform.LINUX_AMD64,
            ),
            architecture=lambda_.Architecture.X86_64,
            timeout=Duration.minutes(5),
            memory_size=2048,
            ephemeral_storage_size=Size.mebibytes(1024),
            environment={
                **({"BROWSER_TARGET_URL": target_url} if target_url else {}),
            },
            log_retention=logs.RetentionDays.ONE_MONTH,
            description="Playwright station finder",
        )

        CfnOutput(
            self,
            "BrowserFunctionName",
            value=browser_handler.function_name,
            description="Browser automation Lambda name",
        )

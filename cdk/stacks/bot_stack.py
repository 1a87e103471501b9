"""CDK Stack for the Telegram webhook bot."""
from pathlib import Path

from aws_cdk import (
    CfnOutput,
    Duration,
    RemovalPolicy,
    Stack,
    aws_apigateway as apigw,
    aws_lambda as lambda_,
    aws_logs as logs,
    aws_secretsmanager as secretsmanager,
)
from constructs import Construct

# Path to source code and dependencies
SRC_DIR = Path(__file__).parent.parent.parent / "src"
LAYER_DIR = Path(__file__).parent.parent.parent / ".lambda-layer"


class TelegramBotStack(Stack):
    """Telegram webhook Lambda with credentials in Secrets Manager."""

    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # =============================================================
        # Telegram Secret
        # =============================================================
        # Values are filled in after deployment:
        # {"webhookSecret": "...", "botToken": "..."}
        telegram_secret = secretsmanager.Secret(
            self,
            "TelegramSecret",
            description="Telegram webhook secret and bot token",
            generate_secret_string=secretsmanager.SecretStringGenerator(
                secret_string_template='{"botToken": ""}',
                generate_string_key="webhookSecret",
                exclude_punctuation=True,
                password_length=48,
            ),
            removal_policy=RemovalPolicy.RETAIN,
        )

        app_env = self.node.try_get_context("app_env") or "production"

        # =============================================================
        # Lambda Layer for Dependencies
        # =============================================================
        # Built by scripts/build_layer.py (aiohttp is not in the Lambda runtime)
        deps_layer = lambda_.LayerVersion(
            self,
            "DependenciesLayer",
            code=lambda_.Code.from_asset(str(LAYER_DIR)),
            compatible_runtimes=[lambda_.Runtime.PYTHON_3_11],
            description="Python dependencies for the Telegram webhook",
        )

        # =============================================================
        # Telegram Handler Lambda
        # =============================================================
        telegram_handler = lambda_.Function(
            self,
            "TelegramHandler",
            runtime=lambda_.Runtime.PYTHON_3_11,
            handler="telegram_handler.handler.lambda_handler",
            code=lambda_.Code.from_asset(
                str(SRC_DIR),
                exclude=[
                    "**/__pycache__",
                    "**/*.pyc",
                    "browser_handler/*",
                ],
            ),
            layers=[deps_layer],
            timeout=Duration.seconds(30),
            memory_size=256,
            environment={
                "TELEGRAM_SECRET_ARN": telegram_secret.secret_arn,
                "APP_ENV": app_env,
            },
            log_retention=logs.RetentionDays.ONE_MONTH,
            description="Telegram webhook handler",
        )

        telegram_secret.grant_read(telegram_handler)

        # =============================================================
        # API Gateway
        # =============================================================
        api = apigw.RestApi(
            self,
            "BotApi",
            rest_api_name="Telegram Bot API",
            description="Webhook endpoint for the Telegram bot",
            deploy_options=apigw.StageOptions(
                stage_name="prod",
                # Disable API Gateway logging to avoid CloudWatch role requirement
                logging_level=apigw.MethodLoggingLevel.OFF,
                throttling_rate_limit=100,
                throttling_burst_limit=200,
            ),
        )

        webhook_resource = api.root.add_resource("webhook")
        webhook_resource.add_method(
            "POST",
            apigw.LambdaIntegration(telegram_handler),
        )

        # =============================================================
        # Outputs
        # =============================================================
        CfnOutput(
            self,
            "WebhookUrl",
            value=f"{api.url}webhook",
            description="Telegram Webhook URL",
        )

        CfnOutput(
            self,
            "TelegramSecretArn",
            value=telegram_secret.secret_arn,
            description="Secrets Manager ARN holding webhookSecret and botToken",
        )

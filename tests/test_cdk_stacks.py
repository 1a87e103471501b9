"""Synthesis tests for the webhook CDK stack."""
import shutil

import pytest

if shutil.which("node") is None:
    pytest.skip("CDK synthesis needs the Node.js runtime", allow_module_level=True)

cdk = pytest.importorskip("aws_cdk")
assertions = pytest.importorskip("aws_cdk.assertions")

from stacks import bot_stack  # noqa: E402


@pytest.fixture
def template(tmp_path, monkeypatch):
    layer_dir = tmp_path / ".lambda-layer"
    (layer_dir / "python").mkdir(parents=True)
    monkeypatch.setattr(bot_stack, "LAYER_DIR", layer_dir)

    app = cdk.App()
    stack = bot_stack.TelegramBotStack(app, "TestTelegramBotStack")
    return assertions.Template.from_stack(stack)


def test_webhook_function_ships_dependencies_layer(template):
    template.resource_count_is("AWS::Lambda::LayerVersion", 1)
    template.has_resource_properties(
        "AWS::Lambda::Function",
        {
            "Handler": "telegram_handler.handler.lambda_handler",
            "Runtime": "python3.11",
            "Layers": assertions.Match.any_value(),
        },
    )


def test_webhook_function_reads_secret_arn_in_production(template):
    template.resource_count_is("AWS::SecretsManager::Secret", 1)
    template.has_resource_properties(
        "AWS::Lambda::Function",
        {
            "Environment": {
                "Variables": {
                    "TELEGRAM_SECRET_ARN": assertions.Match.any_value(),
                    "APP_ENV": "production",
                }
            }
        },
    )

"""
AWS Lambda handler for amenibook.

Runs one full booking pass per invocation, e.g. from an EventBridge rate
rule or a manual invoke. Only one pass may run at a time, so deploy with
reserved concurrency of 1 and do not run the daemon against the same
database.

Expected event format (all keys optional):
{
    "config_secret": "amenibook/config"  // Secrets Manager secret with config overrides
}
"""

import json
import logging

import boto3
from botocore.exceptions import ClientError

from .app import create_app
from .config import ConfigError, load_config, merge_config

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

DEFAULT_SECRET_NAME = "amenibook/config"
REGION = "us-east-1"


def get_secret_config(secret_name: str = DEFAULT_SECRET_NAME) -> dict:
    """Retrieve config overrides (e.g. database_url) from AWS Secrets Manager."""
    client = boto3.client("secretsmanager", region_name=REGION)

    try:
        response = client.get_secret_value(SecretId=secret_name)
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceNotFoundException":
            logger.info(f"No secret named {secret_name}, using file config only")
            return {}
        raise

    overrides = json.loads(response["SecretString"])
    if not isinstance(overrides, dict):
        raise ConfigError(f"Secret {secret_name} must contain a JSON object")
    return overrides


def lambda_handler(event, context):
    """
    Main Lambda entry point.

    Returns:
        dict with statusCode and body
    """
    event = event or {}
    logger.info(f"Received event: {json.dumps(event)}")

    try:
        config = load_config()
        merge_config(config, get_secret_config(event.get("config_secret", DEFAULT_SECRET_NAME)))
    except (ClientError, ConfigError, ValueError) as e:
        logger.error(f"Failed to load configuration: {e}")
        return {
            "statusCode": 500,
            "body": json.dumps({"success": False, "error": str(e)}),
        }

    try:
        app = create_app(config)
        summary = app.scheduler.trigger()
    except Exception as e:
        logger.error(f"Booking pass failed: {e}", exc_info=True)
        return {
            "statusCode": 500,
            "body": json.dumps({"success": False, "error": str(e)}),
        }

    return {
        "statusCode": 200,
        "body": json.dumps({"success": True, **summary}),
    }

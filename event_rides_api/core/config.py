"""
Environment driven configuration.

``Settings`` reads every value from environment variables with a
default suitable for local development against DynamoDB Local.
Variables must be set before this module is imported.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Event Rides API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # DynamoDB connection.  The fake credentials are accepted by
    # DynamoDB Local; real deployments override them.
    dynamodb_endpoint_url: str = os.getenv(
        "DYNAMODB_ENDPOINT_URL", "http://dynamodb-local:8000"
    )
    aws_region: str = os.getenv("AWS_DEFAULT_REGION", "us-east-1")
    aws_access_key_id: str = os.getenv("AWS_ACCESS_KEY_ID", "fake")
    aws_secret_access_key: str = os.getenv("AWS_SECRET_ACCESS_KEY", "fake")
    table_name: str = os.getenv("EVENT_RIDES_TABLE", "EventRides")


settings = Settings()

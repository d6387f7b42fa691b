import logging

import boto3
from botocore.exceptions import NoCredentialsError

from event_rides_api.core.config import settings

logger = logging.getLogger(__name__)


def get_db_connection():
    try:
        dynamodb = boto3.resource(
            "dynamodb",
            endpoint_url=settings.dynamodb_endpoint_url,
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
        )
        return dynamodb
    except NoCredentialsError:
        logger.error("DynamoDB credentials not available.")
        return None

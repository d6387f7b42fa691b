import logging
import time

import boto3
from botocore.exceptions import ClientError

from event_rides_api.core.config import settings
from event_rides_api.core.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _resource():
    return boto3.resource(
        "dynamodb",
        endpoint_url=settings.dynamodb_endpoint_url,
        region_name=settings.aws_region,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
    )


def create_table_if_not_exists(table_name=settings.table_name, dynamodb=None):
    """Create the event rides table with its GSI if it doesn't exist"""
    dynamodb = dynamodb or _resource()

    try:
        # Check if table exists
        table = dynamodb.Table(table_name)
        table.table_status
        logger.info("Table %s already exists", table_name)
        return table
    except ClientError as e:
        if e.response["Error"]["Code"] != "ResourceNotFoundException":
            raise

    table = dynamodb.create_table(
        TableName=table_name,
        KeySchema=[
            {"AttributeName": "PK", "KeyType": "HASH"},
            {"AttributeName": "SK", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "PK", "AttributeType": "S"},
            {"AttributeName": "SK", "AttributeType": "S"},
            {"AttributeName": "GSI_RidesByEventDriver_PK", "AttributeType": "S"},
            {"AttributeName": "GSI_RidesByEventDriver_SK", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
        GlobalSecondaryIndexes=[
            {
                "IndexName": "GSI_RidesByEventDriver",
                "KeySchema": [
                    {"AttributeName": "GSI_RidesByEventDriver_PK", "KeyType": "HASH"},
                    {"AttributeName": "GSI_RidesByEventDriver_SK", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
    )

    logger.info("Creating table %s...", table_name)
    table.wait_until_exists()

    logger.info("Waiting for GSIs to be active...")
    while True:
        table.reload()
        gsi_statuses = [gsi["IndexStatus"] for gsi in table.global_secondary_indexes]
        if all(status == "ACTIVE" for status in gsi_statuses):
            break
        time.sleep(1)

    logger.info("Table %s created successfully", table_name)
    return table


def delete_table(table_name=settings.table_name, dynamodb=None):
    """Delete the event rides table"""
    dynamodb = dynamodb or _resource()

    try:
        table = dynamodb.Table(table_name)
        table.delete()
        table.wait_until_not_exists()
        logger.info("Table %s deleted successfully", table_name)
    except ClientError as e:
        if e.response["Error"]["Code"] != "ResourceNotFoundException":
            raise
        logger.info("Table %s does not exist", table_name)


if __name__ == "__main__":
    setup_logging(settings.log_level)
    create_table_if_not_exists()

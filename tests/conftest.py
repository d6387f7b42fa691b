import os

import boto3
import pytest
from moto import mock_aws

from scripts.init_dynamodb import create_table_if_not_exists

TEST_TABLE_NAME = "EventRides_Test"


@pytest.fixture(scope="session", autouse=True)
def aws_credentials():
    """Fake credentials so nothing can reach a real AWS account"""
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
    os.environ["AWS_ACCESS_KEY_ID"] = "fake"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "fake"


@pytest.fixture
def dynamodb_resource():
    """In-memory DynamoDB with a freshly created test table"""
    with mock_aws():
        resource = boto3.resource("dynamodb", region_name="us-east-1")
        create_table_if_not_exists(TEST_TABLE_NAME, dynamodb=resource)
        yield resource

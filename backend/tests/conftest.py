import boto3
import pytest
from moto import mock_aws

from backend.app.config import Settings
from backend.app.models import RatingRecord
from backend.app.services.ratings_store import RatingsStore

TABLE_NAME = "creator-ratings-test"
REGION = "us-east-1"


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mocked AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)


@pytest.fixture
def dynamodb_client(aws_credentials):
    with mock_aws():
        client = boto3.client("dynamodb", region_name=REGION)
        client.create_table(
            TableName=TABLE_NAME,
            KeySchema=[
                {"AttributeName": "channelId", "KeyType": "HASH"},
                {"AttributeName": "timestamp", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "channelId", "AttributeType": "S"},
                {"AttributeName": "timestamp", "AttributeType": "S"},
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        yield client


@pytest.fixture
def store(dynamodb_client):
    return RatingsStore(dynamodb_client, TABLE_NAME)


@pytest.fixture
def settings():
    return Settings(
        ratings_table_name=TABLE_NAME,
        youtube_api_key="test-key",
        aws_region=REGION,
        stage="test",
    )


@pytest.fixture
def add_rating(store):
    """Write a rating straight to the table, bypassing validation."""

    def _add(channel_id: str, submitted_at: str, score: int, **fields) -> RatingRecord:
        record = RatingRecord(channel_id=channel_id, submitted_at=submitted_at, score=score, **fields)
        store.put(record)
        return record

    return _add

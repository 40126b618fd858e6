"""Application fixtures: settings, notifier, and a TestClient wired to moto."""
import pytest
from fastapi.testclient import TestClient

from boxes_api.adapters.notifier import LocalNotifier
from boxes_api.config.settings import Settings
from boxes_api.main import create_app
from tests.consts import TEST_BUCKET_NAME, TEST_CHANNEL


@pytest.fixture
def settings(mocked_aws) -> Settings:
    return Settings(
        s3_bucket_name=TEST_BUCKET_NAME,
        deployment_mode="local-dev",
        notifier_backend="local",
        notification_channel=TEST_CHANNEL,
        download_chunk_size=4,
        transfer_timeout_seconds=2.0,
        max_file_size_bytes=1024,
    )


@pytest.fixture
def notifier() -> LocalNotifier:
    return LocalNotifier(TEST_CHANNEL)


@pytest.fixture
def client(settings, s3_client, notifier):
    app = create_app(settings=settings, s3_client=s3_client, notifier=notifier)
    with TestClient(app) as test_client:
        yield test_client

import pytest
from pydantic import ValidationError

from boxes_api.config.settings import Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("AWS_ENDPOINT_URL", raising=False)
    monkeypatch.delenv("S3_BUCKET_NAME", raising=False)
    settings = Settings()

    assert settings.box_count == 4
    assert settings.max_file_size_bytes == 100 * 1024 * 1024
    assert settings.presigned_url_expiry_seconds == 120
    assert settings.notifier_backend == "local"
    assert settings.notification_channel == "garden"
    assert settings.device_health_prefix == "device-health/"
    assert settings.device_stale_after_seconds == 600
    assert settings.aws_endpoint_url is None


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("S3_BUCKET_NAME", "from-env")
    monkeypatch.setenv("BOX_COUNT", "6")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings()

    assert settings.s3_bucket_name == "from-env"
    assert settings.box_count == 6
    assert settings.log_level == "DEBUG"


def test_aws_mock_mode_points_at_moto_server(monkeypatch):
    monkeypatch.delenv("AWS_ENDPOINT_URL", raising=False)
    settings = Settings(deployment_mode="aws-mock")
    assert settings.aws_endpoint_url == "http://localhost:5000"


def test_explicit_endpoint_is_kept():
    settings = Settings(deployment_mode="aws-mock", aws_endpoint_url="http://localstack:4566")
    assert settings.aws_endpoint_url == "http://localstack:4566"


def test_invalid_deployment_mode_is_rejected():
    with pytest.raises(ValidationError, match="Invalid deployment_mode"):
        Settings(deployment_mode="cloud-ish")


def test_invalid_notifier_backend_is_rejected():
    with pytest.raises(ValidationError, match="Invalid notifier_backend"):
        Settings(notifier_backend="carrier-pigeon")


def test_pusher_backend_requires_credentials(monkeypatch):
    for name in ("PUSHER_APP_ID", "PUSHER_KEY", "PUSHER_SECRET"):
        monkeypatch.delenv(name, raising=False)
    with pytest.raises(ValidationError, match="pusher notifier requires"):
        Settings(notifier_backend="pusher", pusher_app_id="123")


def test_sns_backend_requires_topic(monkeypatch):
    monkeypatch.delenv("SNS_TOPIC_ARN", raising=False)
    with pytest.raises(ValidationError, match="sns_topic_arn"):
        Settings(notifier_backend="sns")


def test_box_count_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(box_count=0)

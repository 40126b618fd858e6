from datetime import datetime, timedelta, timezone

import pytest

from boxes_api.schemas import DeviceHeartbeat
from boxes_api.services.devices import (
    device_health_key,
    is_stale,
    list_device_health,
    record_heartbeat,
    relative_time,
)
from tests.consts import TEST_BUCKET_NAME

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "age, expected",
    [
        (timedelta(seconds=5), "5s ago"),
        (timedelta(seconds=59), "59s ago"),
        (timedelta(minutes=1), "1m ago"),
        (timedelta(minutes=59, seconds=59), "59m ago"),
        (timedelta(hours=2), "2h ago"),
        (timedelta(days=3, hours=4), "3d ago"),
    ],
)
def test_relative_time(age, expected):
    assert relative_time(NOW - age, now=NOW) == expected


def test_naive_timestamps_are_treated_as_utc():
    naive = datetime(2024, 6, 1, 11, 59, 30)
    assert relative_time(naive, now=NOW) == "30s ago"


def test_is_stale():
    assert not is_stale(NOW - timedelta(minutes=10), 600, now=NOW)
    assert is_stale(NOW - timedelta(minutes=10, seconds=1), 600, now=NOW)


def test_record_and_list_heartbeats(settings, s3_client):
    record_heartbeat(
        settings,
        DeviceHeartbeat(device_id="fresh", connected=True, timestamp=NOW - timedelta(minutes=1)),
        s3_client=s3_client,
    )
    record_heartbeat(
        settings,
        DeviceHeartbeat(device_id="old", connected=True, timestamp=NOW - timedelta(hours=1)),
        s3_client=s3_client,
    )

    devices = {d.device_id: d for d in list_device_health(settings, s3_client=s3_client, now=NOW)}

    assert set(devices) == {"fresh", "old"}
    assert devices["fresh"].stale is False
    assert devices["old"].stale is True


def test_heartbeat_replaces_previous(settings, s3_client):
    for connected in (True, False):
        record_heartbeat(
            settings,
            DeviceHeartbeat(device_id="pi", connected=connected, timestamp=NOW),
            s3_client=s3_client,
        )

    [device] = list_device_health(settings, s3_client=s3_client, now=NOW)
    assert device.connected is False


def test_unreadable_heartbeat_is_skipped(settings, s3_client):
    s3_client.put_object(
        Bucket=TEST_BUCKET_NAME,
        Key=device_health_key(settings, "junk"),
        Body=b'{"deviceId": "junk"}',
    )

    assert list_device_health(settings, s3_client=s3_client, now=NOW) == []

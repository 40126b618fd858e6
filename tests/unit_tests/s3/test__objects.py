from boxes_api.s3.delete_objects import delete_s3_object
from boxes_api.s3.read_objects import (
    fetch_first_file_under_prefix,
    fetch_json_object,
    fetch_s3_object,
    fetch_s3_objects_under_prefix,
    object_exists_in_s3,
)
from boxes_api.s3.write_objects import put_json_object, upload_s3_object
from tests.consts import TEST_BUCKET_NAME


def test_object_exists_in_s3(s3_client):
    assert not object_exists_in_s3(TEST_BUCKET_NAME, "box1/a.txt", s3_client=s3_client)

    upload_s3_object(TEST_BUCKET_NAME, "box1/a.txt", b"hello", "text/plain", s3_client=s3_client)

    assert object_exists_in_s3(TEST_BUCKET_NAME, "box1/a.txt", s3_client=s3_client)


def test_upload_defaults_content_type(s3_client):
    upload_s3_object(TEST_BUCKET_NAME, "box2/blob", b"\x00\x01", s3_client=s3_client)

    response = fetch_s3_object(TEST_BUCKET_NAME, "box2/blob", s3_client=s3_client)

    assert response["ContentType"] == "application/octet-stream"
    assert response["Body"].read() == b"\x00\x01"


def test_listing_skips_folder_markers_and_empty_objects(s3_client):
    s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key="box1/", Body=b"")
    s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key="box1/empty.txt", Body=b"")
    s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key="box1/real.txt", Body=b"data")
    s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key="box10/other.txt", Body=b"data")

    files = fetch_s3_objects_under_prefix(TEST_BUCKET_NAME, "box1/", s3_client=s3_client)

    assert [obj["Key"] for obj in files] == ["box1/real.txt"]


def test_first_file_under_empty_prefix_is_none(s3_client):
    s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key="box3/", Body=b"")

    assert fetch_first_file_under_prefix(TEST_BUCKET_NAME, "box3/", s3_client=s3_client) is None


def test_json_round_trip(s3_client):
    put_json_object(TEST_BUCKET_NAME, "device-health/pi.json", {"deviceId": "pi"}, s3_client=s3_client)

    assert fetch_json_object(TEST_BUCKET_NAME, "device-health/pi.json", s3_client=s3_client) == {"deviceId": "pi"}
    head = s3_client.head_object(Bucket=TEST_BUCKET_NAME, Key="device-health/pi.json")
    assert head["ContentType"] == "application/json"


def test_delete_s3_object(s3_client):
    upload_s3_object(TEST_BUCKET_NAME, "box4/gone.txt", b"bye", s3_client=s3_client)

    delete_s3_object(TEST_BUCKET_NAME, "box4/gone.txt", s3_client=s3_client)

    assert not object_exists_in_s3(TEST_BUCKET_NAME, "box4/gone.txt", s3_client=s3_client)
    # deleting again is not an error
    delete_s3_object(TEST_BUCKET_NAME, "box4/gone.txt", s3_client=s3_client)

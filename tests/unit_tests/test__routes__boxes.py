from fastapi import status
from fastapi.testclient import TestClient

from boxes_api.adapters.notifier import BaseNotifier
from boxes_api.main import create_app
from boxes_api.s3.read_objects import object_exists_in_s3
from boxes_api.schemas import BoxEventType
from tests.consts import TEST_BUCKET_NAME

TEST_FILE_NAME = "hello.txt"
TEST_FILE_CONTENT = b"Hello, world!"
TEST_FILE_CONTENT_TYPE = "text/plain"


def put_in_box(s3_client, box: int, name: str = TEST_FILE_NAME, content: bytes = TEST_FILE_CONTENT):
    s3_client.put_object(
        Bucket=TEST_BUCKET_NAME,
        Key=f"box{box}/{name}",
        Body=content,
        ContentType=TEST_FILE_CONTENT_TYPE,
    )


def test_empty_box_status(client: TestClient):
    response = client.get("/api/boxes/1/files")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"empty": True}


def test_full_box_status(client: TestClient, s3_client):
    put_in_box(s3_client, 2)

    response = client.get("/api/boxes/2/files")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"empty": False, "name": TEST_FILE_NAME, "size": len(TEST_FILE_CONTENT)}


def test_folder_marker_does_not_fill_a_box(client: TestClient, s3_client):
    s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key="box3/", Body=b"")

    assert client.get("/api/boxes/3/files").json() == {"empty": True}


def test_unknown_box_is_not_found(client: TestClient):
    assert client.get("/api/boxes/0/files").status_code == status.HTTP_404_NOT_FOUND
    assert client.get("/api/boxes/5/files").status_code == status.HTTP_404_NOT_FOUND


def test_non_numeric_box_is_a_bad_request(client: TestClient):
    assert client.get("/api/boxes/one/files").status_code == status.HTTP_400_BAD_REQUEST


def test_presign_upload(client: TestClient):
    response = client.post(
        "/api/boxes/1/files",
        json={"fileName": "photo.jpg", "fileType": "image/jpeg"},
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["key"] == "box1/photo.jpg"
    assert data["fields"]["key"] == "box1/photo.jpg"
    assert data["fields"]["Content-Type"] == "image/jpeg"
    assert TEST_BUCKET_NAME in data["url"]


def test_presign_upload_missing_fields(client: TestClient):
    response = client.post("/api/boxes/1/files", json={"fileName": "photo.jpg"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "fileType" in response.json()["detail"]


def test_presign_upload_into_full_box_conflicts(client: TestClient, s3_client):
    put_in_box(s3_client, 4)

    response = client.post(
        "/api/boxes/4/files",
        json={"fileName": "another.txt", "fileType": TEST_FILE_CONTENT_TYPE},
    )

    assert response.status_code == status.HTTP_409_CONFLICT


def test_presign_upload_rejects_bad_file_name(client: TestClient):
    response = client.post("/api/boxes/1/files", json={"fileName": "..", "fileType": "text/plain"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_receive_streams_then_deletes_then_notifies(client: TestClient, s3_client, notifier):
    put_in_box(s3_client, 1)

    response = client.get(f"/api/boxes/1/files/{TEST_FILE_NAME}")

    assert response.status_code == status.HTTP_200_OK
    assert response.content == TEST_FILE_CONTENT
    assert response.headers["content-type"].startswith(TEST_FILE_CONTENT_TYPE)
    assert response.headers["content-disposition"] == f'attachment; filename="{TEST_FILE_NAME}"'

    assert not object_exists_in_s3(TEST_BUCKET_NAME, f"box1/{TEST_FILE_NAME}", s3_client=s3_client)
    [event] = notifier.published
    assert event.type == BoxEventType.FILE_DELETED
    assert event.payload() == {
        "boxNumber": "1",
        "fileName": TEST_FILE_NAME,
        "fileSize": len(TEST_FILE_CONTENT),
    }

    # the box is empty for everyone else now
    assert client.get("/api/boxes/1/files").json() == {"empty": True}


def test_receive_missing_file(client: TestClient, notifier):
    response = client.get("/api/boxes/1/files/nope.txt")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert list(notifier.published) == []


def test_receive_rejects_bad_file_name(client: TestClient, notifier):
    response = client.get("/api/boxes/1/files/%20%20")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"detail": "File name must not be empty"}
    assert list(notifier.published) == []


def test_download_url_keeps_the_file(client: TestClient, s3_client):
    put_in_box(s3_client, 2)

    response = client.get(f"/api/boxes/2/files/{TEST_FILE_NAME}/url")

    assert response.status_code == status.HTTP_200_OK
    assert f"box2/{TEST_FILE_NAME}" in response.json()["url"]
    assert object_exists_in_s3(TEST_BUCKET_NAME, f"box2/{TEST_FILE_NAME}", s3_client=s3_client)


def test_trigger_event(client: TestClient, notifier):
    response = client.post(
        "/api/boxes/3/events",
        json={"type": "file-uploaded", "fileName": "a.txt", "fileSize": 10},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True}
    [event] = notifier.published
    assert event.type == BoxEventType.FILE_UPLOADED
    assert event.payload() == {"boxNumber": "3", "fileName": "a.txt", "fileSize": 10}


def test_trigger_event_requires_type(client: TestClient, notifier):
    response = client.post("/api/boxes/3/events", json={"fileName": "a.txt"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert list(notifier.published) == []


def test_trigger_event_rejects_unknown_type(client: TestClient):
    response = client.post("/api/boxes/3/events", json={"type": "file-exploded"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST


class FailingNotifier(BaseNotifier):
    name = "failing"

    async def publish(self, event):
        raise RuntimeError("pusher unavailable")


def test_trigger_event_failure(settings, s3_client):
    app = create_app(settings=settings, s3_client=s3_client, notifier=FailingNotifier("garden"))
    with TestClient(app) as failing_client:
        response = failing_client.post("/api/boxes/1/events", json={"type": "file-deleted"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"detail": "Failed to trigger event"}


def test_legacy_presign_route(client: TestClient):
    response = client.post(
        "/api/files",
        json={"boxNumber": 2, "fileName": "old.txt", "fileType": "text/plain"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["key"] == "box2/old.txt"


def test_legacy_presign_route_unknown_box(client: TestClient):
    response = client.post(
        "/api/files",
        json={"boxNumber": 9, "fileName": "old.txt", "fileType": "text/plain"},
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND

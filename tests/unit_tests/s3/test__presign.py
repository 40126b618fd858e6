import base64
import json
from urllib.parse import parse_qs, urlparse

from boxes_api.s3.presign import generate_presigned_download_url, generate_presigned_upload
from tests.consts import TEST_BUCKET_NAME


def test_presigned_upload_policy(s3_client):
    presigned = generate_presigned_upload(
        bucket_name=TEST_BUCKET_NAME,
        object_key="box1/photo.jpg",
        content_type="image/jpeg",
        max_size_bytes=1000,
        expires_in=120,
        s3_client=s3_client,
    )

    assert TEST_BUCKET_NAME in presigned["url"]
    fields = presigned["fields"]
    assert fields["key"] == "box1/photo.jpg"
    assert fields["Content-Type"] == "image/jpeg"

    policy = json.loads(base64.b64decode(fields["policy"]))
    assert ["content-length-range", 0, 1000] in policy["conditions"]
    assert ["starts-with", "$Content-Type", ""] in policy["conditions"]


def test_presigned_download_url(s3_client):
    url = generate_presigned_download_url(TEST_BUCKET_NAME, "box2/notes.txt", 120, s3_client=s3_client)

    parsed = urlparse(url)
    assert parsed.path.endswith("box2/notes.txt")
    query = parse_qs(parsed.query)
    assert "X-Amz-Signature" in query or "Signature" in query

"""Functions for writing objects to an S3 bucket--the "C" and "U" in CRUD."""

import json
from typing import TYPE_CHECKING, Any, Dict, Optional

import boto3

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client


def upload_s3_object(
    bucket_name: str,
    object_key: str,
    file_content: bytes,
    content_type: Optional[str] = None,
    s3_client: Optional["S3Client"] = None,
) -> None:
    """
    Upload a file to an S3 bucket.

    :param bucket_name: The name of the S3 bucket.
    :param object_key: path to the object in the S3 bucket.
    :param file_content: The content of the file to upload.
    :param content_type: The MIME type of the file, e.g. "text/plain" for a text file.
    :param s3_client: An optional boto3 S3 client. If not provided, one will be created.
    """
    content_type = content_type or "application/octet-stream"
    s3_client = s3_client or boto3.client("s3")
    s3_client.put_object(
        Bucket=bucket_name,
        Key=object_key,
        Body=file_content,
        ContentType=content_type,
    )


def put_json_object(
    bucket_name: str,
    object_key: str,
    payload: Dict[str, Any],
    s3_client: Optional["S3Client"] = None,
) -> None:
    """Serialize ``payload`` as JSON and store it at ``object_key``."""
    upload_s3_object(
        bucket_name=bucket_name,
        object_key=object_key,
        file_content=json.dumps(payload).encode("utf-8"),
        content_type="application/json",
        s3_client=s3_client,
    )

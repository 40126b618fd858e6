"""Presigned URLs that let browsers and devices talk to S3 directly."""

from typing import TYPE_CHECKING, Any, Dict, Optional

import boto3

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client


def generate_presigned_upload(
    bucket_name: str,
    object_key: str,
    content_type: str,
    max_size_bytes: int,
    expires_in: int,
    s3_client: Optional["S3Client"] = None,
) -> Dict[str, Any]:
    """
    Create a presigned POST for uploading a single object.

    The policy pins the key and caps the body at ``max_size_bytes``. Any
    content type is accepted; the one given is set as a form field.

    :return: ``{"url": ..., "fields": {...}}`` to be sent as a multipart form.
    """
    s3_client = s3_client or boto3.client("s3")
    return s3_client.generate_presigned_post(
        Bucket=bucket_name,
        Key=object_key,
        Fields={"Content-Type": content_type},
        Conditions=[
            ["content-length-range", 0, max_size_bytes],
            ["starts-with", "$Content-Type", ""],
        ],
        ExpiresIn=expires_in,
    )


def generate_presigned_download_url(
    bucket_name: str,
    object_key: str,
    expires_in: int,
    s3_client: Optional["S3Client"] = None,
) -> str:
    """Create a presigned GET URL for an object."""
    s3_client = s3_client or boto3.client("s3")
    return s3_client.generate_presigned_url(
        "get_object",
        Params={"Bucket": bucket_name, "Key": object_key},
        ExpiresIn=expires_in,
    )

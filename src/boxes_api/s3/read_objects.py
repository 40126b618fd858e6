"""Functions for reading objects from an S3 bucket--the "R" in CRUD."""

import json
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import boto3
from botocore.exceptions import ClientError

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client
    from mypy_boto3_s3.type_defs import GetObjectOutputTypeDef, ObjectTypeDef


def object_exists_in_s3(
    bucket_name: str,
    object_key: str,
    s3_client: Optional["S3Client"] = None,
) -> bool:
    """
    Check if an object exists in the S3 bucket using head_object.

    :param bucket_name: Name of the S3 bucket.
    :param object_key: Key of the object to check.
    :param s3_client: Optional S3 client to use. If not provided, a new client will be created.

    :return: True if the object exists, False otherwise.
    """
    s3_client = s3_client or boto3.client("s3")
    try:
        s3_client.head_object(Bucket=bucket_name, Key=object_key)
        return True
    except ClientError as err:
        error_code = err.response["Error"]["Code"]
        if error_code in ("404", "NoSuchKey", "NotFound"):
            return False
        raise


def fetch_s3_object(
    bucket_name: str,
    object_key: str,
    s3_client: Optional["S3Client"] = None,
) -> "GetObjectOutputTypeDef":
    """
    Fetch an object from S3. The returned ``Body`` is a streaming body.

    :param bucket_name: Name of the S3 bucket.
    :param object_key: Key of the object to fetch.
    :param s3_client: Optional S3 client to use.
    """
    s3_client = s3_client or boto3.client("s3")
    return s3_client.get_object(Bucket=bucket_name, Key=object_key)


def _is_real_file(obj: "ObjectTypeDef") -> bool:
    # Console "folders" are zero-byte keys ending in a slash.
    return not obj.get("Key", "").endswith("/") and obj.get("Size", 0) > 0


def fetch_s3_objects_under_prefix(
    bucket_name: str,
    prefix: str,
    s3_client: Optional["S3Client"] = None,
) -> List["ObjectTypeDef"]:
    """
    List every real file under a prefix, skipping folder markers and empty objects.

    :param bucket_name: Name of the S3 bucket.
    :param prefix: Key prefix to list.
    :param s3_client: Optional S3 client to use.
    """
    s3_client = s3_client or boto3.client("s3")
    paginator = s3_client.get_paginator("list_objects_v2")

    files = []
    for page in paginator.paginate(Bucket=bucket_name, Prefix=prefix):
        files.extend(obj for obj in page.get("Contents", []) if _is_real_file(obj))
    return files


def fetch_first_file_under_prefix(
    bucket_name: str,
    prefix: str,
    s3_client: Optional["S3Client"] = None,
) -> Optional["ObjectTypeDef"]:
    """Return the first real file under ``prefix`` or None when there is none."""
    files = fetch_s3_objects_under_prefix(bucket_name, prefix, s3_client=s3_client)
    return files[0] if files else None


def fetch_json_object(
    bucket_name: str,
    object_key: str,
    s3_client: Optional["S3Client"] = None,
) -> Dict[str, Any]:
    """Fetch and decode a JSON document stored in S3."""
    response = fetch_s3_object(bucket_name, object_key, s3_client=s3_client)
    body = response["Body"].read().decode("utf-8")
    return json.loads(body or "{}")

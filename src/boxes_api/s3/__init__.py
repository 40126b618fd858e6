"""Thin wrappers around the boto3 S3 client."""

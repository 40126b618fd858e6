"""AWS client construction driven by the application settings."""
import logging
from typing import Any, Optional

import boto3

from boxes_api.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_aws_client(service_name: str, settings: Optional[Settings] = None) -> Any:
    """Create a boto3 client for `service_name` configured from settings.

    Credentials are only passed when set, so the default boto3 credential
    chain applies otherwise. The endpoint override is honored in every mode
    to allow pointing at moto or localstack.
    """
    settings = settings or get_settings()

    client_kwargs = {
        'region_name': settings.aws_region
    }
    if settings.aws_access_key_id:
        client_kwargs['aws_access_key_id'] = settings.aws_access_key_id
    if settings.aws_secret_access_key:
        client_kwargs['aws_secret_access_key'] = settings.aws_secret_access_key
    if settings.aws_endpoint_url:
        client_kwargs['endpoint_url'] = settings.aws_endpoint_url

    try:
        client = boto3.client(service_name, **client_kwargs)
        logger.debug(f"Created {service_name} client (mode={settings.deployment_mode})")
        return client
    except Exception as e:
        logger.error(f"Error creating {service_name} client: {str(e)}")
        raise

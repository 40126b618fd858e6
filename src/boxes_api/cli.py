# cli.py
import logging
import sys

import click
import requests

from boxes_api.client import BoxesClient, BoxesClientError
from boxes_api.config.settings import configure_logging, get_settings
from boxes_api.services.boxes import describe_box

# Configure logging
logger = logging.getLogger(__name__)


@click.group()
@click.option("--api-url", envvar="BOXES_API_URL", default="http://localhost:8000",
              help="Base URL of a running Boxes API")
@click.pass_context
def cli(ctx, api_url):
    """CLI commands for the Boxes API"""
    settings = get_settings()
    configure_logging(settings)
    ctx.obj = BoxesClient(
        base_url=api_url,
        box_count=settings.box_count,
        max_file_size_bytes=settings.max_file_size_bytes,
    )


@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind")
@click.option("--port", default=8000, type=int, help="Port to listen on")
def serve(host, port):
    """Run the API with uvicorn"""
    import uvicorn

    from boxes_api.main import create_app

    uvicorn.run(create_app(get_settings()), host=host, port=port)


@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()

    print("Current Configuration:")
    print(f"  Deployment Mode: {settings.deployment_mode}")
    print(f"  AWS Region: {settings.aws_region}")
    print(f"  AWS Endpoint: {settings.aws_endpoint_url}")
    print(f"  S3 Bucket: {settings.s3_bucket_name}")
    print(f"  Boxes: {settings.box_count}")
    print(f"  Max File Size: {settings.max_file_size_bytes} bytes")
    print(f"  Notifier: {settings.notifier_backend} (channel {settings.notification_channel})")
    print(f"  Transfer Timeout: {settings.transfer_timeout_seconds}s")


@cli.command()
@click.pass_obj
def status(client: BoxesClient):
    """Show what every box holds"""
    try:
        for box, box_status in client.statuses().items():
            print(describe_box(box, box_status))
    except (BoxesClientError, requests.exceptions.RequestException) as e:
        print(f"❌ {e}")
        sys.exit(1)


@cli.command()
@click.argument("box", type=int)
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--content-type", default=None, help="MIME type (guessed from the name by default)")
@click.pass_obj
def offer(client: BoxesClient, box, path, content_type):
    """Put the file at PATH into BOX"""
    try:
        key = client.offer(box, path, content_type=content_type)
    except (BoxesClientError, requests.exceptions.RequestException) as e:
        print(f"❌ {e}")
        sys.exit(1)
    print(f"✅ Offered {key}")


@cli.command()
@click.argument("box", type=int)
@click.option("--dest", type=click.Path(file_okay=False), default=".", help="Directory to write the file to")
@click.pass_obj
def receive(client: BoxesClient, box, dest):
    """Take the file out of BOX"""
    try:
        path = client.receive(box, dest)
    except (BoxesClientError, requests.exceptions.RequestException) as e:
        print(f"❌ {e}")
        sys.exit(1)
    print(f"✅ Received {path}")


@cli.command()
@click.argument("device_id")
@click.option("--connected/--disconnected", default=True, help="Reported connection state")
@click.pass_obj
def heartbeat(client: BoxesClient, device_id, connected):
    """Report a device heartbeat"""
    try:
        client.heartbeat(device_id, connected=connected)
    except (BoxesClientError, requests.exceptions.RequestException) as e:
        print(f"❌ {e}")
        sys.exit(1)
    print(f"✅ Heartbeat sent for {device_id}")


if __name__ == "__main__":
    cli()

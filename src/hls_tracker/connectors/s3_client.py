"""S3 client connector for tracker records, transient bands and events."""

import os
from typing import Any

import boto3
from botocore.config import Config
from dagster import ConfigurableResource

from hls_tracker.connectors.settings import SettingsResource

# Presigned band URLs are opened by GDAL, which needs SigV4 and path-style URLs on MinIO
_PRESIGN_CONFIG = Config(signature_version="s3v4", s3={"addressing_style": "path"})


def _credentials() -> dict[str, str | None]:
    return {
        "aws_access_key_id": os.environ.get("AWS_ACCESS_KEY_ID") or os.environ.get("MINIO_ROOT_USER"),
        "aws_secret_access_key": os.environ.get("AWS_SECRET_ACCESS_KEY") or os.environ.get("MINIO_ROOT_PASSWORD"),
    }


class S3Resource(ConfigurableResource[Any]):
    """S3 resource for creating boto3 S3 clients."""

    settings: SettingsResource

    def create_client(self) -> Any:
        """Create S3 client able to presign GET URLs for the band reader.

        :returns: Configured S3 client
        """
        return boto3.client(
            "s3",
            endpoint_url=self.settings.aws_s3_endpoint,
            region_name=self.settings.aws_region,
            use_ssl=self.settings.aws_s3_use_ssl,
            config=_PRESIGN_CONFIG,
            **_credentials(),
        )

    def get_client(self) -> Any:
        """Get S3 client instance.

        :returns: Configured S3 client
        """
        return self.create_client()

"""Settings resource for managing configuration from environment variables."""

import os
from typing import Any, Union, get_args, get_origin, get_type_hints

from dagster import ConfigurableResource, EnvVar

from hls_tracker.config.constants import (
    DEFAULT_BAND_URL_EXPIRY_SECONDS,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_OPENAI_MODEL,
    DEFAULT_STAC_API_URL,
)


class SettingsResource(ConfigurableResource[Any]):
    """Settings resource using EnvVar for runtime resolution in Dagster.

    Secrets (Earthdata token, OpenAI key) live here and are handed to the
    resources that need them; nothing reads them from the environment later.
    """

    aws_region: str = EnvVar("AWS_REGION")
    aws_s3_endpoint: str = EnvVar("AWS_S3_ENDPOINT")
    aws_s3_pipeline_bucket_name: str = EnvVar("AWS_S3_PIPELINE_BUCKET_NAME")
    aws_s3_use_ssl: bool = False
    stac_api_url: str = DEFAULT_STAC_API_URL
    earthdata_token: str = EnvVar("EARTHDATA_TOKEN")
    openai_api_key: str = EnvVar("OPENAI_API_KEY")
    openai_model: str = DEFAULT_OPENAI_MODEL
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    band_url_expiry_seconds: int = DEFAULT_BAND_URL_EXPIRY_SECONDS

    @staticmethod
    def create(swallow_errors: bool = False) -> "SettingsResource":
        """Create SettingsResource from environment variables.

        :param swallow_errors: If True, ignore validation errors
        :returns: SettingsResource instance
        """
        env_values: dict[str, Any] = {}
        for attr_name, attr_type in get_type_hints(SettingsResource).items():
            raw = os.environ.get(attr_name.upper())
            if not raw:
                continue
            if attr_type is bool:
                env_values[attr_name] = raw.strip().lower() in ("true", "1", "yes", "y", "on")
            elif attr_type is int:
                env_values[attr_name] = int(raw)
            elif attr_type is float:
                env_values[attr_name] = float(raw)
            else:
                env_values[attr_name] = raw

        settings = SettingsResource(**env_values)
        try:
            settings.validate_settings()
        except (TypeError, ValueError):
            if not swallow_errors:
                raise
        return settings

    def validate_settings(self) -> None:
        """Validate all required settings are present."""
        missing_vars = []
        for attr_name, attr_type in get_type_hints(self.__class__).items():
            attr_value = getattr(self, attr_name, None)
            if isinstance(attr_value, EnvVar):
                is_optional = get_origin(attr_type) is Union and type(None) in get_args(attr_type)
                if not is_optional and attr_value.get_value() is None:
                    missing_vars.append(attr_value.env_var_name)
        if missing_vars:
            raise ValueError(f"Missing mandatory environment variables: {', '.join(missing_vars)}")

"""Configuration settings for the product service Lambdas."""

import json
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class Settings:
    """Configuration settings, read once per process."""

    # AWS Settings
    aws_region: str = "us-east-1"
    localstack_endpoint: Optional[str] = None
    products_table_name: str = "Products"
    stock_table_name: str = "Stock"

    # Processing Settings
    batch_max_workers: int = 1

    # Logging
    log_level: str = "INFO"

    # Authorizer credentials, username -> password
    basic_auth_credentials: Mapping[str, str] = field(default_factory=dict)


def _parse_int(environ: Mapping[str, str], key: str, default: int, minimum: int) -> int:
    raw = environ.get(key)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(
            message=f"{key} must be an integer, got {raw!r}",
            config_key=key,
        )
    if value < minimum:
        raise ConfigurationError(
            message=f"{key} must be >= {minimum}, got {value}",
            config_key=key,
        )
    return value


def _parse_credentials(environ: Mapping[str, str], key: str) -> dict:
    raw = environ.get(key)
    if not raw:
        return {}
    try:
        credentials = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            message=f"{key} is not valid JSON: {e}",
            config_key=key,
        )
    if not isinstance(credentials, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in credentials.items()
    ):
        raise ConfigurationError(
            message=f"{key} must be a JSON object mapping usernames to passwords",
            config_key=key,
        )
    return credentials


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Raises:
        ConfigurationError: If a variable is present but malformed
    """
    env = os.environ if environ is None else environ
    return Settings(
        aws_region=env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION") or "us-east-1",
        localstack_endpoint=env.get("LOCALSTACK_ENDPOINT") or None,
        products_table_name=env.get("PRODUCTS_TABLE_NAME") or "Products",
        stock_table_name=env.get("STOCK_TABLE_NAME") or "Stock",
        batch_max_workers=_parse_int(env, "BATCH_MAX_WORKERS", default=1, minimum=1),
        log_level=env.get("LOG_LEVEL") or "INFO",
        basic_auth_credentials=_parse_credentials(env, "BASIC_AUTH_CREDENTIALS"),
    )

"""AWS client construction shared by the DynamoDB store adapters."""

import boto3
from botocore.config import Config

from .config import Settings, load_settings

boto_config = Config(
    retries={"max_attempts": 3, "mode": "adaptive"},
    connect_timeout=5,
    read_timeout=10,
)


class AWSClientFactory:
    """Factory for creating AWS resources with proper configuration."""

    _dynamodb_resource = None

    @classmethod
    def get_dynamodb_resource(cls, settings: Settings = None):
        """Get or create the DynamoDB service resource."""
        if cls._dynamodb_resource is None:
            settings = settings or load_settings()
            kwargs = {"config": boto_config, "region_name": settings.aws_region}
            if settings.localstack_endpoint:
                kwargs["endpoint_url"] = settings.localstack_endpoint
            cls._dynamodb_resource = boto3.resource("dynamodb", **kwargs)
        return cls._dynamodb_resource

    @classmethod
    def get_table(cls, table_name: str, settings: Settings = None):
        """Return a handle on a DynamoDB table."""
        return cls.get_dynamodb_resource(settings).Table(table_name)

    @classmethod
    def reset(cls):
        """Reset clients (useful for testing)."""
        cls._dynamodb_resource = None

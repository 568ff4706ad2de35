"""Tests for settings loading."""

import pytest
from product_service.config import Settings, load_settings
from product_service.exceptions import ConfigurationError


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults(self):
        """Test defaults when nothing is set."""
        settings = load_settings({})

        assert settings == Settings()
        assert settings.products_table_name == "Products"
        assert settings.stock_table_name == "Stock"
        assert settings.batch_max_workers == 1
        assert settings.basic_auth_credentials == {}

    def test_reads_environment(self):
        """Test values are read from the given environment."""
        settings = load_settings({
            "AWS_REGION": "eu-west-1",
            "LOCALSTACK_ENDPOINT": "http://localhost:4566",
            "PRODUCTS_TABLE_NAME": "products-dev",
            "STOCK_TABLE_NAME": "stock-dev",
            "BATCH_MAX_WORKERS": "8",
            "LOG_LEVEL": "DEBUG",
            "BASIC_AUTH_CREDENTIALS": '{"alice": "TEST_PASSWORD"}',
        })

        assert settings.aws_region == "eu-west-1"
        assert settings.localstack_endpoint == "http://localhost:4566"
        assert settings.products_table_name == "products-dev"
        assert settings.stock_table_name == "stock-dev"
        assert settings.batch_max_workers == 8
        assert settings.log_level == "DEBUG"
        assert settings.basic_auth_credentials == {"alice": "TEST_PASSWORD"}

    def test_region_falls_back_to_default_region(self):
        """Test AWS_DEFAULT_REGION is used when AWS_REGION is absent."""
        assert load_settings({"AWS_DEFAULT_REGION": "ap-south-1"}).aws_region == "ap-south-1"

    @pytest.mark.parametrize("value", ["many", "0", "-3"])
    def test_invalid_worker_count(self, value):
        """Test malformed worker counts are rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings({"BATCH_MAX_WORKERS": value})
        assert exc_info.value.config_key == "BATCH_MAX_WORKERS"

    @pytest.mark.parametrize("value", ["not json", '["alice"]', '{"alice": 1}'])
    def test_invalid_credentials(self, value):
        """Test malformed credential mappings are rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings({"BASIC_AUTH_CREDENTIALS": value})
        assert exc_info.value.config_key == "BASIC_AUTH_CREDENTIALS"

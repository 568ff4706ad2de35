"""Tests for the Lambda handlers."""

import base64
from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest
from product_service import handlers
from product_service.auth import BasicAuthorizer
from product_service.config import Settings
from product_service.exceptions import (
    AuthorizationError,
    BadRequestError,
    ConfigurationError,
    NotFoundError,
)
from product_service.handlers import ServiceFactory
from product_service.models import Product, Stock
from product_service.stores import DynamoProductStore, DynamoStockStore


@pytest.fixture(autouse=True)
def reset_factory():
    yield
    ServiceFactory.reset()


@pytest.fixture
def configured(service):
    ServiceFactory.configure(settings=Settings(), service=service)
    return service


class TestCatalogBatchProcess:
    """Tests for catalog_batch_process."""

    def test_processes_sqs_event(self, configured, sample_sqs_event, product_store):
        """Test records are turned into a batch report."""
        context = SimpleNamespace(aws_request_id="req-123")

        response = handlers.catalog_batch_process(sample_sqs_event, context)

        assert response["statusCode"] == 200
        body = response["body"]
        assert body["processedCount"] == 1
        assert body["errorCount"] == 2
        assert body["results"][0]["title"] == "Widget"
        assert {e["errorType"] for e in body["errors"]} == {"ValidationError", "ParseError"}
        assert body["correlationId"] == "req-123"
        assert body["batchId"]
        assert "durationMs" in body
        assert len(product_store) == 1

    def test_empty_records(self, configured):
        """Test an empty batch is a valid invocation."""
        response = handlers.catalog_batch_process({"Records": []}, None)

        assert response["body"]["processedCount"] == 0
        assert response["body"]["errorCount"] == 0

    def test_non_dict_record_is_item_failure(self, configured):
        """Test a malformed record fails only itself."""
        response = handlers.catalog_batch_process({"Records": ["oops"]}, None)

        assert response["body"]["errorCount"] == 1
        assert response["body"]["errors"][0]["messageId"] == "record-0"

    @pytest.mark.parametrize("event", [{}, {"Records": None}, {"Records": "x"}, None])
    def test_missing_records_raises(self, configured, event):
        """Test an event without Records fails the whole invocation."""
        with pytest.raises(ConfigurationError):
            handlers.catalog_batch_process(event, None)

    def test_uses_configured_worker_count(self, service, sample_sqs_event):
        """Test the pipeline is sized from settings."""
        ServiceFactory.configure(settings=Settings(batch_max_workers=4), service=service)

        response = handlers.catalog_batch_process(sample_sqs_event, None)

        assert ServiceFactory.get_pipeline().max_workers == 4
        assert response["body"]["processedCount"] == 1


class TestLookupHandlers:
    """Tests for the read-only HTTP handlers."""

    def test_get_product_by_id(self, configured, product_store, stock_store):
        """Test a stored product is returned with its count."""
        product_store.put(Product(id="p1", title="Widget", description="", price=9.99))
        stock_store.put(Stock(product_id="p1", count=2))

        result = handlers.get_product_by_id({"id": "p1"})

        assert result == {"id": "p1", "title": "Widget", "description": "", "price": 9.99, "count": 2}

    def test_get_product_by_id_not_found(self, configured):
        """Test a missing product raises with a Not Found message."""
        with pytest.raises(NotFoundError, match="Not Found"):
            handlers.get_product_by_id({"id": "missing"})

    @pytest.mark.parametrize("event", [{}, {"id": ""}, None])
    def test_get_product_by_id_without_id(self, event):
        """Test a missing id is Not Found without a store lookup."""
        service = Mock()
        ServiceFactory.configure(settings=Settings(), service=service)

        with pytest.raises(NotFoundError, match="Not Found"):
            handlers.get_product_by_id(event)
        service.get_product_by_id.assert_not_called()

    def test_get_products(self, configured, product_store):
        """Test listing returns every product."""
        product_store.put(Product(id="p1", title="A", description="", price=1))
        product_store.put(Product(id="p2", title="B", description="", price=2))

        result = handlers.get_products({})

        assert sorted(p["id"] for p in result) == ["p1", "p2"]


class TestCreateProduct:
    """Tests for the create_product handler."""

    def test_creates_product(self, configured, stock_store):
        """Test a mapped POST body creates a product."""
        result = handlers.create_product({"title": "Lamp", "description": "Bright", "price": "12.5"})

        assert result["title"] == "Lamp"
        assert result["price"] == 12.5
        assert stock_store.get(result["id"]).count == 0

    def test_invalid_body_is_bad_request(self, configured, product_store):
        """Test validation failures are reported as Bad Request."""
        with pytest.raises(BadRequestError, match="^Bad Request"):
            handlers.create_product({"title": "", "description": "", "price": "5"})
        assert len(product_store) == 0

    def test_wrong_typed_price_is_bad_request(self, configured, product_store):
        """Test a non-numeric price string is reported as Bad Request."""
        with pytest.raises(BadRequestError, match="price"):
            handlers.create_product({"title": "Lamp", "description": "", "price": "abc"})
        assert len(product_store) == 0

    def test_unparsable_body_is_bad_request(self, configured):
        """Test a non-numeric price is reported as Bad Request."""
        with pytest.raises(BadRequestError):
            handlers.create_product({"title": "Lamp", "description": "", "price": ""})


class TestBasicAuthorizerHandler:
    """Tests for the basic_authorizer handler."""

    @pytest.fixture(autouse=True)
    def authorizer(self):
        ServiceFactory.configure(
            settings=Settings(),
            authorizer=BasicAuthorizer({"alice": "TEST_PASSWORD"}),
        )

    def _event(self, token):
        return {
            "type": "TOKEN",
            "authorizationToken": token,
            "methodArn": "arn:aws:execute-api:us-east-1:123456789012:api/dev/GET/products",
        }

    def test_allow(self):
        """Test valid credentials produce an Allow policy."""
        token = "Basic " + base64.b64encode(b"alice:TEST_PASSWORD").decode("ascii")

        policy = handlers.basic_authorizer(self._event(token))

        assert policy["principalId"] == "alice"
        assert policy["policyDocument"]["Statement"][0]["Effect"] == "Allow"
        assert policy["context"] == {"username": "alice"}

    def test_deny_wrong_password(self):
        """Test wrong credentials produce a Deny policy."""
        token = "Basic " + base64.b64encode(b"alice:nope").decode("ascii")

        policy = handlers.basic_authorizer(self._event(token))

        assert policy["policyDocument"]["Statement"][0]["Effect"] == "Deny"

    def test_deny_malformed(self):
        """Test a malformed token produces a Deny policy."""
        policy = handlers.basic_authorizer(self._event("garbage"))

        assert policy["principalId"] == "anonymous"
        assert policy["policyDocument"]["Statement"][0]["Effect"] == "Deny"

    def test_missing_token_raises(self):
        """Test a missing token raises Unauthorized."""
        with pytest.raises(AuthorizationError, match="Unauthorized"):
            handlers.basic_authorizer({"methodArn": "arn"})

    def test_credentials_from_environment(self, monkeypatch):
        """Test the authorizer is built from BASIC_AUTH_CREDENTIALS."""
        ServiceFactory.reset()
        monkeypatch.setenv("BASIC_AUTH_CREDENTIALS", '{"carol": "TEST_PASSWORD"}')
        token = "Basic " + base64.b64encode(b"carol:TEST_PASSWORD").decode("ascii")

        policy = handlers.basic_authorizer(self._event(token))

        assert policy["policyDocument"]["Statement"][0]["Effect"] == "Allow"


class TestServiceFactory:
    """Tests for ServiceFactory wiring."""

    def test_builds_dynamo_stores_from_settings(self):
        """Test the default service uses the configured DynamoDB tables."""
        ServiceFactory.configure(
            settings=Settings(products_table_name="prod-table", stock_table_name="stock-table")
        )
        with patch.object(handlers.AWSClientFactory, "get_table", side_effect=lambda name, _: Mock(name=name)) as get_table:
            service = ServiceFactory.get_service()

        assert isinstance(service.product_store, DynamoProductStore)
        assert isinstance(service.stock_store, DynamoStockStore)
        assert [c.args[0] for c in get_table.call_args_list] == ["prod-table", "stock-table"]

    def test_service_is_cached(self, service):
        """Test the service is built once per container."""
        ServiceFactory.configure(settings=Settings(), service=service)
        assert ServiceFactory.get_service() is ServiceFactory.get_service()

import pytest

from dynamodb_cache.cache.errors import CacheStoreError, SchemaMismatchError
from dynamodb_cache.cache.options import CacheOptions
from dynamodb_cache.cache.schema import SchemaRejectReason
from dynamodb_cache.configuration.cache import CacheSettings, TableCreationPolicy
from dynamodb_cache.operations.result import OperationResult

pytestmark = pytest.mark.unit


class TestCacheOptions:
    def test_defaults(self):
        options = CacheOptions(table_name="cache")

        assert options.creation_policy is TableCreationPolicy.CREATE_IF_MISSING
        assert options.partition_key_attribute == "id"
        assert options.expiration_attribute == "expires_at"
        assert options.default_absolute_expiration_seconds is None
        assert options.default_sliding_expiration_seconds is None
        assert options.consistent_reads is True
        assert options.enable_ttl_on_create is True

    @pytest.mark.parametrize(
        "overrides",
        [
            {"table_name": ""},
            {"table_name": "cache", "partition_key_attribute": ""},
            {"table_name": "cache", "expiration_attribute": ""},
            {"table_name": "cache", "expiration_attribute": "id"},
            {"table_name": "cache", "default_absolute_expiration_seconds": 0},
            {"table_name": "cache", "default_sliding_expiration_seconds": -1},
            {"table_name": "cache", "table_max_poll_attempts": 0},
        ],
    )
    def test_invalid_options_rejected(self, overrides):
        with pytest.raises(ValueError):
            CacheOptions(**overrides)

    def test_from_settings(self, monkeypatch):
        monkeypatch.setenv("DYNAMODB_CACHE_TABLE_NAME", "sessions")
        monkeypatch.setenv("DYNAMODB_CACHE_CREATION_POLICY", "require_existing")
        monkeypatch.setenv("DYNAMODB_CACHE_PARTITION_KEY", "pk")
        monkeypatch.setenv("DYNAMODB_CACHE_KEY_PREFIX", "web:")
        monkeypatch.setenv("DYNAMODB_CACHE_DEFAULT_SLIDING_EXPIRATION_SECONDS", "1200")
        monkeypatch.setenv("DYNAMODB_CACHE_MAX_POLL_ATTEMPTS", "10")
        monkeypatch.setenv("DYNAMODB_CACHE_ENABLE_TTL", "false")

        options = CacheOptions.from_settings(CacheSettings())

        assert options.table_name == "sessions"
        assert options.creation_policy is TableCreationPolicy.REQUIRE_EXISTING
        assert options.partition_key_attribute == "pk"
        assert options.partition_key_prefix == "web:"
        assert options.default_sliding_expiration_seconds == 1200
        assert options.table_max_poll_attempts == 10
        assert options.enable_ttl_on_create is False

    def test_from_settings_requires_table_name(self, monkeypatch):
        monkeypatch.delenv("DYNAMODB_CACHE_TABLE_NAME", raising=False)

        with pytest.raises(ValueError):
            CacheOptions.from_settings(CacheSettings())


class TestCacheErrors:
    def test_schema_mismatch_message(self):
        error = SchemaMismatchError(
            "cache", SchemaRejectReason.INVALID_KEY_NAME, "partition key is 'pk'"
        )

        assert error.table_name == "cache"
        assert error.reason is SchemaRejectReason.INVALID_KEY_NAME
        assert str(error) == (
            "Table 'cache' rejected (invalid_key_name): partition key is 'pk'"
        )

    def test_store_error_exposes_result(self):
        result = OperationResult.transient_error(
            "slow down", error_code="ThrottlingException", retry_after=1
        )

        error = CacheStoreError("get_item", result)

        assert error.is_retryable
        assert error.error_code == "ThrottlingException"
        assert error.retry_after == 1
        assert str(error) == "get_item failed [ThrottlingException]: slow down"

    def test_permanent_store_error_not_retryable(self):
        error = CacheStoreError(
            "put_item", OperationResult.permanent_error("validation failed")
        )

        assert not error.is_retryable
        assert str(error) == "put_item failed: validation failed"

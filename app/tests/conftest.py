"""Shared fixtures for distributed cache tests.

Provides an in-memory stand-in for the low-level boto3 DynamoDB client, a
manually advanced clock, and factories for options, clients and engines.
"""

import copy
import threading
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from botocore.exceptions import ClientError

from dynamodb_cache.cache.engine import DynamoDBDistributedCache
from dynamodb_cache.cache.options import CacheOptions
from dynamodb_cache.clients.aws import client as aws_client
from dynamodb_cache.clients.aws.dynamodb import DynamoDBClient
from dynamodb_cache.clients.aws.session_provider import SessionProvider
from dynamodb_cache.logging import configure_logging

TABLE_ARN_TEMPLATE = "arn:aws:dynamodb:us-east-1:123456789012:table/{}"


def client_error(code: str, message: str = "injected failure", method: str = "Op"):
    """Build a botocore ClientError the way the service returns it."""
    return ClientError({"Error": {"Code": code, "Message": message}}, method)


class FakeClient:
    """Fake boto3 client answering API methods from a response map.

    Responses may be constants, callables receiving the call kwargs, or
    exceptions (raised on call).
    """

    def __init__(self, api_responses: Optional[Dict[str, Any]] = None):
        self._api_responses = api_responses or {}

    def __getattr__(self, name: str):
        if name.startswith("_") or name not in self._api_responses:
            raise AttributeError(name)
        resp = self._api_responses[name]

        def _call(*_args, **kwargs):
            if isinstance(resp, Exception):
                raise resp
            if callable(resp):
                return resp(**kwargs)
            return resp

        return _call


class FakeDynamoDB:
    """In-memory DynamoDB low-level client.

    Supports the calls the cache issues, including the condition and update
    expression shapes it uses. Newly created tables report CREATING for
    ``creating_polls`` describe calls before turning ACTIVE.

    Attributes:
        tables: Table name -> {"description", "items", "pending_polls", "ttl"}
        calls: (method, params) for every call received
        before_call: Optional hook run (outside the lock) before each call
    """

    def __init__(self, creating_polls: int = 1):
        self.tables: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.creating_polls = creating_polls
        self.before_call: Optional[Callable[[str, Dict[str, Any]], None]] = None
        self._failures: Dict[str, List[Tuple[str, str]]] = {}
        self._lock = threading.RLock()

    # Test helpers

    def add_table(
        self,
        name: str,
        key_schema: Optional[List[Dict[str, str]]] = None,
        attribute_definitions: Optional[List[Dict[str, str]]] = None,
        status: str = "ACTIVE",
    ) -> None:
        if key_schema is None:
            key_schema = [{"AttributeName": "id", "KeyType": "HASH"}]
        if attribute_definitions is None:
            attribute_definitions = [{"AttributeName": "id", "AttributeType": "S"}]
        self.tables[name] = {
            "description": {
                "TableName": name,
                "TableArn": TABLE_ARN_TEMPLATE.format(name),
                "TableStatus": status,
                "KeySchema": key_schema,
                "AttributeDefinitions": attribute_definitions,
            },
            "items": {},
            "pending_polls": 0 if status == "ACTIVE" else self.creating_polls,
            "ttl": None,
        }

    def fail(
        self, method: str, code: str, message: str = "injected failure", times: int = 1
    ) -> None:
        """Make the next ``times`` calls to ``method`` raise ``code``."""
        self._failures.setdefault(method, []).extend([(code, message)] * times)

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def items(self, table_name: str) -> Dict[str, Dict[str, Any]]:
        return self.tables[table_name]["items"]

    # Low-level client API

    def describe_table(self, TableName: str) -> Dict[str, Any]:
        self._record("describe_table", {"TableName": TableName})
        with self._lock:
            table = self._table(TableName, "DescribeTable")
            description = table["description"]
            if table["pending_polls"] > 0:
                table["pending_polls"] -= 1
            else:
                description["TableStatus"] = "ACTIVE"
            return {"Table": copy.deepcopy(description)}

    def create_table(self, **params) -> Dict[str, Any]:
        self._record("create_table", params)
        name = params["TableName"]
        with self._lock:
            if name in self.tables:
                raise client_error(
                    "ResourceInUseException",
                    f"Table already exists: {name}",
                    "CreateTable",
                )
            self.add_table(
                name,
                key_schema=params["KeySchema"],
                attribute_definitions=params["AttributeDefinitions"],
                status="CREATING",
            )
            self.tables[name]["description"]["BillingModeSummary"] = {
                "BillingMode": params.get("BillingMode")
            }
            return {
                "TableDescription": copy.deepcopy(self.tables[name]["description"])
            }

    def update_time_to_live(
        self, TableName: str, TimeToLiveSpecification: Dict[str, Any]
    ) -> Dict[str, Any]:
        self._record(
            "update_time_to_live",
            {"TableName": TableName, "TimeToLiveSpecification": TimeToLiveSpecification},
        )
        with self._lock:
            self._table(TableName, "UpdateTimeToLive")["ttl"] = dict(
                TimeToLiveSpecification
            )
        return {"TimeToLiveSpecification": TimeToLiveSpecification}

    def get_item(self, TableName: str, Key: Dict[str, Any], **params) -> Dict[str, Any]:
        self._record("get_item", {"TableName": TableName, "Key": Key, **params})
        with self._lock:
            table = self._table(TableName, "GetItem")
            item = table["items"].get(self._item_key(table, Key))
            if item is None:
                return {}
            projection = params.get("ProjectionExpression")
            if projection:
                names = params.get("ExpressionAttributeNames") or {}
                wanted = [
                    names.get(part.strip(), part.strip())
                    for part in projection.split(",")
                ]
                item = {name: item[name] for name in wanted if name in item}
            return {"Item": copy.deepcopy(item)}

    def put_item(self, TableName: str, Item: Dict[str, Any], **params) -> Dict[str, Any]:
        self._record("put_item", {"TableName": TableName, "Item": Item, **params})
        with self._lock:
            table = self._table(TableName, "PutItem")
            table["items"][self._item_key(table, Item)] = copy.deepcopy(Item)
        return {}

    def update_item(
        self, TableName: str, Key: Dict[str, Any], **params
    ) -> Dict[str, Any]:
        self._record("update_item", {"TableName": TableName, "Key": Key, **params})
        names = params.get("ExpressionAttributeNames") or {}
        values = params.get("ExpressionAttributeValues") or {}
        with self._lock:
            table = self._table(TableName, "UpdateItem")
            key = self._item_key(table, Key)
            item = table["items"].get(key)
            condition = params.get("ConditionExpression")
            if condition and not _condition_holds(item, condition, names, values):
                raise client_error(
                    "ConditionalCheckFailedException",
                    "The conditional request failed",
                    "UpdateItem",
                )
            if item is None:
                item = copy.deepcopy(Key)
                table["items"][key] = item
            expression = params["UpdateExpression"].strip()
            if not expression.upper().startswith("SET "):
                raise ValueError(f"unsupported update expression: {expression}")
            for assignment in expression[4:].split(","):
                target, source = (part.strip() for part in assignment.split("=", 1))
                item[names.get(target, target)] = copy.deepcopy(values[source])
        return {}

    def delete_item(
        self, TableName: str, Key: Dict[str, Any], **params
    ) -> Dict[str, Any]:
        self._record("delete_item", {"TableName": TableName, "Key": Key, **params})
        names = params.get("ExpressionAttributeNames") or {}
        values = params.get("ExpressionAttributeValues") or {}
        with self._lock:
            table = self._table(TableName, "DeleteItem")
            key = self._item_key(table, Key)
            condition = params.get("ConditionExpression")
            if condition and not _condition_holds(
                table["items"].get(key), condition, names, values
            ):
                raise client_error(
                    "ConditionalCheckFailedException",
                    "The conditional request failed",
                    "DeleteItem",
                )
            table["items"].pop(key, None)
        return {}

    # Internals

    def _record(self, method: str, params: Dict[str, Any]) -> None:
        with self._lock:
            self.calls.append((method, copy.deepcopy(params)))
            pending = self._failures.get(method)
            failure = pending.pop(0) if pending else None
        if self.before_call is not None:
            self.before_call(method, params)
        if failure is not None:
            raise client_error(failure[0], failure[1], method)

    def _table(self, name: str, operation: str) -> Dict[str, Any]:
        table = self.tables.get(name)
        if table is None:
            raise client_error(
                "ResourceNotFoundException",
                "Requested resource not found",
                operation,
            )
        return table

    @staticmethod
    def _item_key(table: Dict[str, Any], attributes: Dict[str, Any]) -> str:
        hash_key = table["description"]["KeySchema"][0]["AttributeName"]
        if hash_key not in attributes:
            raise client_error(
                "ValidationException",
                "The provided key element does not match the schema",
            )
        return attributes[hash_key]["S"]


def _same_value(actual: Dict[str, Any], expected: Dict[str, Any]) -> bool:
    if "N" in actual and "N" in expected:
        return Decimal(actual["N"]) == Decimal(expected["N"])
    return actual == expected


def _condition_holds(
    item: Optional[Dict[str, Any]],
    condition: str,
    names: Dict[str, str],
    values: Dict[str, Any],
) -> bool:
    for clause in condition.split(" AND "):
        clause = clause.strip()
        if clause.startswith("attribute_exists(") and clause.endswith(")"):
            attribute = clause[len("attribute_exists(") : -1].strip()
            if item is None or names.get(attribute, attribute) not in item:
                return False
        elif clause.startswith("attribute_not_exists(") and clause.endswith(")"):
            attribute = clause[len("attribute_not_exists(") : -1].strip()
            if item is not None and names.get(attribute, attribute) in item:
                return False
        elif "=" in clause:
            left, right = (part.strip() for part in clause.split("=", 1))
            actual = (item or {}).get(names.get(left, left))
            if actual is None or not _same_value(actual, values[right]):
                return False
        else:
            raise ValueError(f"unsupported condition: {clause}")
    return True


class ManualClock:
    """Clock returning a settable epoch-seconds value."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(scope="session", autouse=True)
def quiet_logging():
    """Apply the test logging configuration once per session."""
    configure_logging()


@pytest.fixture
def make_fake_client():
    """Factory fixture for fake boto3 clients with canned responses.

    Usage:
        def test_something(make_fake_client, monkeypatch):
            client = make_fake_client(api_responses={"get_item": {}})
            monkeypatch.setattr(aws_client, "get_boto3_client", lambda *a, **k: client)
    """

    def _factory(api_responses: Optional[Dict[str, Any]] = None) -> FakeClient:
        return FakeClient(api_responses=api_responses)

    return _factory


@pytest.fixture
def fake_dynamodb():
    """In-memory DynamoDB with no tables."""
    return FakeDynamoDB()


@pytest.fixture
def manual_clock():
    return ManualClock()


@pytest.fixture
def boto3_client_calls(monkeypatch, fake_dynamodb):
    """Route every boto3 client creation to ``fake_dynamodb``.

    Returns the list of kwargs each client was built with.
    """
    built: List[Dict[str, Any]] = []

    def _get_boto3_client(
        service_name, session_config=None, client_config=None, role_arn=None, **_
    ):
        built.append(
            {
                "service_name": service_name,
                "session_config": session_config,
                "client_config": client_config,
                "role_arn": role_arn,
            }
        )
        return fake_dynamodb

    monkeypatch.setattr(aws_client, "get_boto3_client", _get_boto3_client)
    return built


@pytest.fixture
def dynamodb_client(boto3_client_calls):
    """DynamoDBClient backed by the in-memory fake."""
    return DynamoDBClient(session_provider=SessionProvider(region="us-east-1"))


@pytest.fixture
def make_options():
    """Factory for CacheOptions with fast table polling."""

    def _factory(**overrides) -> CacheOptions:
        params: Dict[str, Any] = {
            "table_name": "cache",
            "table_poll_interval_seconds": 0.0,
            "table_max_poll_attempts": 5,
        }
        params.update(overrides)
        return CacheOptions(**params)

    return _factory


@pytest.fixture
def make_cache(dynamodb_client, make_options, manual_clock):
    """Factory for engines over the fake store and the manual clock."""

    def _factory(**overrides) -> DynamoDBDistributedCache:
        return DynamoDBDistributedCache(
            dynamodb_client, make_options(**overrides), clock=manual_clock
        )

    return _factory

import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.append(PROJECT_ROOT)

from app import create_app  # noqa: E402
from settings import TestConfig  # noqa: E402
from store import MemoryStore  # noqa: E402


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def app(store):
    return create_app(TestConfig, store=store)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def donor_payload():
    return {
        "name": "Rahul Sharma",
        "bloodType": "O+",
        "phone": "9876543210",
        "email": "rahul@example.com",
        "address": "123 Main Street, Mumbai",
    }


@pytest.fixture
def request_payload():
    return {
        "patientName": "Anita Desai",
        "bloodType": "A-",
        "unitsNeeded": 2,
        "priority": "High",
        "hospital": "City General",
    }


@pytest.fixture
def create_donor(client, donor_payload):
    def _create(**overrides):
        resp = client.post("/api/donors", json={**donor_payload, **overrides})
        assert resp.status_code == 201
        return resp.get_json()["donor"]

    return _create


@pytest.fixture
def create_request(client, request_payload):
    def _create(**overrides):
        resp = client.post("/api/requests", json={**request_payload, **overrides})
        assert resp.status_code == 201
        return resp.get_json()["request"]

    return _create


class FakeTable:
    """Minimal stand-in for a boto3 DynamoDB Table resource keyed on '_id'."""

    def __init__(self, page_size=None):
        self.items = {}
        self.page_size = page_size
        self.fail_with = None

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    def put_item(self, Item):
        self._maybe_fail()
        self.items[Item["_id"]] = dict(Item)
        return {}

    def get_item(self, Key):
        self._maybe_fail()
        item = self.items.get(Key["_id"])
        return {"Item": dict(item)} if item is not None else {}

    def delete_item(self, Key, ReturnValues="NONE"):
        self._maybe_fail()
        item = self.items.pop(Key["_id"], None)
        if item is not None and ReturnValues == "ALL_OLD":
            return {"Attributes": item}
        return {}

    def scan(self, ExclusiveStartKey=None):
        self._maybe_fail()
        keys = sorted(self.items)
        if ExclusiveStartKey is not None:
            keys = [k for k in keys if k > ExclusiveStartKey["_id"]]
        if self.page_size is None or len(keys) <= self.page_size:
            return {"Items": [dict(self.items[k]) for k in keys]}
        page = keys[: self.page_size]
        return {
            "Items": [dict(self.items[k]) for k in page],
            "LastEvaluatedKey": {"_id": page[-1]},
        }


@pytest.fixture
def fake_tables():
    return {
        "donors": FakeTable(page_size=2),
        "inventory": FakeTable(),
        "requests": FakeTable(),
    }

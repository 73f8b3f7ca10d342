import itertools

import pytest
from fastapi.testclient import TestClient

import main


def _reset_store():
    main.members_db.clear()
    main.expenses_db.clear()
    main.member_ids = itertools.count(1)
    main.expense_ids = itertools.count(1)


@pytest.fixture(autouse=True)
def clear_store():
    _reset_store()
    yield
    _reset_store()


@pytest.fixture
def client():
    return TestClient(main.app)


@pytest.fixture
def workspace(client):
    """Alice, Bob and Charlie registered in that order"""
    for name in ("Alice", "Bob", "Charlie"):
        response = client.post("/members/", json={"name": name})
        assert response.status_code == 200
    return client

from __future__ import annotations

from pathlib import Path
import sys

import mongomock
import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def mongo_client():
    """
    In-memory stand-in for a MongoDB deployment, wiped around every test.
    """
    client = mongomock.MongoClient()
    client.drop_database("deta")
    yield client
    client.drop_database("deta")


@pytest.fixture
def deta(mongo_client):
    from deta_mongo import Deta

    d = Deta(client_factory=lambda: mongo_client, idle_timeout=None)
    yield d
    d.close()


@pytest.fixture
def people(deta):
    return deta.Base("people")

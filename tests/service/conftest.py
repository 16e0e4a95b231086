import json
from pathlib import Path

import pytest

from franchise_service.stores import StoreFactory
from franchise_service.stores.memory import InMemoryStore

DATA_DIR = Path(__file__).resolve().parents[2] / "data"


def load_json(relative_path: str):
    with open(DATA_DIR / relative_path, "r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def demo_brand():
    return load_json("brands/demo-brand.json")


@pytest.fixture
def postnet_payload():
    return load_json("inputs/postnet.json")


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture(autouse=True)
def fresh_store_factory():
    StoreFactory.reset()
    yield
    StoreFactory.reset()

from __future__ import annotations

import copy
import json
from typing import Any

import pytest

from gavagai.models import Ontology, Utterance
from gavagai.registry import AdapterRegistry, default_registry

VALID_PAYLOAD: dict[str, Any] = {
    "propositions": [
        {
            "operation": "InsertTransaction",
            "needs_review": False,
            "record": {
                "originalRaw": "STARBUCKS 12.50",
                "date": "2024-01-15",
                "description": "Starbucks",
            },
            "items": [
                {"accountId": "expense:food:coffee", "amount": "12.50", "type": "debit"},
            ],
        }
    ],
    "alternative_propositions": [],
    "unresolved": [],
    "new_entities": [],
    "errors": [],
    "meta": {"inferredIntent": "action"},
}


@pytest.fixture
def payload() -> dict[str, Any]:
    return copy.deepcopy(VALID_PAYLOAD)


@pytest.fixture
def payload_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload)


@pytest.fixture
def ontology() -> Ontology:
    return Ontology(
        schema={"Transaction": {"fields": ["date", "description", "counterparty"]}},
        verbs={
            "InsertTransaction": {"description": "Create a new transaction"},
            "UpdateEntry": {"description": "Update an existing entry"},
        },
        nouns={"accounts": [{"id": "expense:food:coffee", "aliases": ["coffee", "starbucks"]}]},
    )


@pytest.fixture
def utterance() -> Utterance:
    return Utterance(source="test", raw="STARBUCKS 12.50")


@pytest.fixture
def registry() -> AdapterRegistry:
    return AdapterRegistry()


@pytest.fixture(autouse=True)
def clean_default_registry():
    yield
    default_registry().clear()

import pytest
from pydantic import ValidationError

from gavagai.models import Ambiguity, GavagaiResponse, Ontology, check_response

REQUIRED_ARRAYS = ["propositions", "alternative_propositions", "unresolved", "new_entities", "errors"]


@pytest.mark.parametrize("key", REQUIRED_ARRAYS)
def test_missing_required_array_is_rejected(payload, key) -> None:
    del payload[key]
    with pytest.raises(ValidationError):
        GavagaiResponse.model_validate(payload)


def test_missing_meta_is_rejected(payload) -> None:
    del payload["meta"]
    response, errors = check_response(payload)
    assert response is None
    assert [e.path for e in errors] == ["meta"]


def test_ambiguity_alternatives_default_to_empty() -> None:
    assert Ambiguity.model_validate({"field": "amount", "reason": "unclear"}).alternatives == []


@pytest.mark.parametrize("answer", [None, "42 coffees"])
def test_answer_may_be_null_or_string(payload, answer) -> None:
    payload["answer"] = answer
    assert GavagaiResponse.model_validate(payload).answer == answer


def test_answer_may_be_absent(payload) -> None:
    assert GavagaiResponse.model_validate(payload).answer is None


def test_inferred_intent_is_a_closed_set(payload) -> None:
    payload["meta"]["inferredIntent"] = "command"
    response, errors = check_response(payload)
    assert response is None
    assert errors[0].path == "meta.inferredIntent"


def test_record_keeps_domain_fields(payload) -> None:
    response = GavagaiResponse.model_validate(payload)
    record = response.propositions[0].record.model_dump()
    assert record == {"originalRaw": "STARBUCKS 12.50", "date": "2024-01-15", "description": "Starbucks"}


def test_error_context_keeps_unknown_keys(payload) -> None:
    payload["errors"] = [{"code": "INVALID_DATE", "message": "bad date", "context": {"given": "31/02", "n": 1}}]
    response = GavagaiResponse.model_validate(payload)
    assert response.errors[0].context == {"given": "31/02", "n": 1}


def test_needs_review_is_not_coerced(payload) -> None:
    payload["propositions"][0]["needs_review"] = "false"
    response, errors = check_response(payload)
    assert response is None
    assert errors[0].path == "propositions.0.needs_review"


def test_record_requires_original_raw_string(payload) -> None:
    payload["propositions"][0]["record"] = {"date": "2024-01-15"}
    _, errors = check_response(payload)
    assert [e.path for e in errors] == ["propositions.0.record.originalRaw"]


def test_check_response_never_raises_on_garbage() -> None:
    response, errors = check_response(["not", "an", "object"])
    assert response is None
    assert errors


def test_ontology_schema_alias() -> None:
    ontology = Ontology.model_validate({"schema": {"A": {}}, "verbs": {"Do": "do it"}, "nouns": {}})
    assert ontology.schema_ == {"A": {}}
    assert ontology.verb_names == ["Do"]
    assert ontology.model_dump(by_alias=True)["schema"] == {"A": {}}

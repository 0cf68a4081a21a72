from collections.abc import Mapping
from typing import Any, List, Union

from pydantic import BaseModel

from .errors import ErrorCode
from .models import ConstraintError, GavagaiResponse, Ontology, ValidationResult, check_response

ResponseLike = Union[GavagaiResponse, Mapping[str, Any]]


def _as_dict(response: ResponseLike) -> dict[str, Any]:
    if isinstance(response, BaseModel):
        return response.model_dump()
    return dict(response)


def _all_propositions(payload: Mapping[str, Any]) -> List[Any]:
    propositions: List[Any] = []
    for key in ("propositions", "alternative_propositions"):
        entries = payload.get(key)
        if isinstance(entries, list):
            propositions.extend(entries)
    return propositions


def _operation_errors(propositions: List[Any], ontology: Ontology) -> List[ConstraintError]:
    verbs = ontology.verb_names
    errors: List[ConstraintError] = []
    for prop in propositions:
        operation = prop.get("operation") if isinstance(prop, Mapping) else None
        if operation not in verbs:
            errors.append(
                ConstraintError(
                    code=ErrorCode.UNKNOWN_OPERATION.value,
                    message=f'Operation "{operation}" is not defined in ontology verbs',
                    context={"operation": operation, "allowedVerbs": verbs},
                )
            )
    return errors


def _original_raw_errors(propositions: List[Any]) -> List[ConstraintError]:
    errors: List[ConstraintError] = []
    for index, prop in enumerate(propositions):
        record = prop.get("record") if isinstance(prop, Mapping) else None
        original_raw = record.get("originalRaw") if isinstance(record, Mapping) else None
        if not original_raw:
            errors.append(
                ConstraintError(
                    code=ErrorCode.VALIDATION_FAILED.value,
                    message=f"Proposition at index {index} is missing originalRaw in record",
                    context={"propositionIndex": index},
                )
            )
    return errors


def validate(response: ResponseLike, ontology: Ontology) -> ValidationResult:
    """Check a response against the schema and against the ontology.

    Schema and constraint checks are independent: constraint errors are
    reported even for a response that fails the schema, so one call gives
    the full picture.
    """
    payload = _as_dict(response)

    _, schema_errors = check_response(payload)

    propositions = _all_propositions(payload)
    constraint_errors = _operation_errors(propositions, ontology)
    constraint_errors.extend(_original_raw_errors(propositions))

    return ValidationResult(
        valid=not schema_errors and not constraint_errors,
        schemaErrors=schema_errors,
        constraintErrors=constraint_errors,
    )

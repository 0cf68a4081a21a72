import json
from typing import Optional

from pydantic import ValidationError

from .errors import ResponseParseError
from .models import GavagaiResponse, schema_errors_from


def parse_response(raw: str) -> GavagaiResponse:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, RecursionError) as e:
        raise ResponseParseError(raw_text=raw, error=str(e), kind="json_decode") from e

    try:
        return GavagaiResponse.model_validate(data)
    except ValidationError as e:
        raise ResponseParseError(
            raw_text=raw,
            error=str(e),
            kind="schema_validation",
            schema_errors=schema_errors_from(e),
        ) from e
    except RecursionError as e:
        raise ResponseParseError(raw_text=raw, error=str(e), kind="schema_validation") from e


def safe_parse_response(raw: str) -> Optional[GavagaiResponse]:
    try:
        return parse_response(raw)
    except ResponseParseError:
        return None

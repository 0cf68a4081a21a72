import json
import secrets
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel

from .errors import UnparseableResponse
from .interpret import InterpretationResult
from .models import ValidationResult


def make_run_id() -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    return f"{stamp}-{secrets.token_hex(4)}"


def _runs_path(runs_dir: str) -> Path:
    path = Path(runs_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def _write(path: Path, content: str) -> str:
    # Readers never see a half-written artifact.
    partial = path.with_name(f".{path.name}.partial")
    partial.write_text(content, encoding="utf-8")
    partial.replace(path)
    return str(path)


def _canonical_json(value: BaseModel | dict[str, Any]) -> str:
    data = value.model_dump(by_alias=True) if isinstance(value, BaseModel) else value
    return json.dumps(data, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def save_run(
    result: InterpretationResult,
    validation: Optional[ValidationResult] = None,
    runs_dir: str = "runs",
) -> dict[str, str]:
    """Write one interpretation run: prompt pair, raw reply, parsed response and validation."""
    path = _runs_path(runs_dir)
    run_id = make_run_id()

    paths = {
        "prompt_path": _write(
            path / f"prompt_{run_id}.json",
            _canonical_json({"system": result.prompt.system, "user": result.prompt.user}),
        ),
        "raw_path": _write(path / f"raw_{run_id}.txt", result.raw),
        "response_path": _write(path / f"response_{run_id}.json", _canonical_json(result.response)),
    }
    if validation is not None:
        paths["validation_path"] = _write(path / f"validation_{run_id}.json", _canonical_json(validation))
    return paths


def save_failed_run(error: UnparseableResponse, runs_dir: str = "runs") -> str:
    path = _runs_path(runs_dir)
    context = error.context or {}

    lines = [
        error.code,
        f"kind: {context.get('kind')}",
        f"message: {error.message}",
    ]
    lines.extend(f"schema: {item['path']}: {item['message']}" for item in context.get("schemaErrors", []))
    contents = "\n".join(lines) + f"\n\n---- RAW REPLY ----\n{error.raw_response}"
    return _write(path / f"failed_{make_run_id()}.txt", contents)

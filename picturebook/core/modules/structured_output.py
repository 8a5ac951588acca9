"""
Parse model output into validated records, with one repair attempt.

Signatures return JSON as text. The text is parsed and validated against the
target pydantic model; on failure the model is shown the exact error and asked
to fix its output once. If the repaired output still fails, the original error
is raised.
"""

import json
import re
from typing import Any, Optional, TypeVar

import dspy
from pydantic import BaseModel, ValidationError

from picturebook.config import book_logger
from ..signatures.repair import RepairJsonSignature

M = TypeVar("M", bound=BaseModel)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def extract_json_text(text: str) -> str:
    """Strip markdown fences and chatter around the outermost JSON object."""
    text = text.strip()
    fenced = _FENCE_RE.search(text)
    if fenced:
        text = fenced.group(1).strip()
    match = _OBJECT_RE.search(text)
    return match.group(0) if match else text


def parse_model(model: type[M], text: str) -> M:
    """
    Parse JSON text into `model`.

    Raises:
        json.JSONDecodeError: text is not JSON
        ValidationError: JSON does not match the model
    """
    data = json.loads(extract_json_text(text))
    return model.model_validate(data)


def to_prompt_json(value: Any) -> str:
    """Serialize records (or lists of records) for a prompt, as they appear on disk."""
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", by_alias=True, exclude_none=True)
    elif isinstance(value, (list, tuple)):
        value = [
            item.model_dump(mode="json", by_alias=True, exclude_none=True)
            if isinstance(item, BaseModel) else item
            for item in value
        ]
    return json.dumps(value, indent=2, ensure_ascii=False)


class StructuredOutput(dspy.Module):
    """Validates raw model output, repairing it once if needed."""

    def __init__(self, schema_notes: Optional[str] = None):
        super().__init__()
        self.repair = dspy.Predict(RepairJsonSignature)
        self.schema_notes = schema_notes

    def forward(self, model: type[M], text: str, target: Optional[str] = None) -> M:
        target = target or model.__name__
        try:
            return parse_model(model, text)
        except (json.JSONDecodeError, ValidationError) as e:
            original = e

        book_logger.repair_attempt(target, _short_error(original))
        try:
            result = self.repair(
                target=target,
                invalid_json=text,
                error=str(original),
                schema_notes=self.schema_notes or "none",
            )
            return parse_model(model, result.repaired_json)
        except (json.JSONDecodeError, ValidationError):
            raise original
        except Exception as e:
            # The repair call itself failed; report the output that needed repair
            raise original from e


def _short_error(error: Exception) -> str:
    if isinstance(error, ValidationError):
        return f"{error.error_count()} validation error(s)"
    return str(error)

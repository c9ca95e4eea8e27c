"""
Condition specification parsing.

A condition specification is JSON text holding a list of predicates:

    [{"type": "mode", "name": "color", "value": "green"}]

Empty text (or JSON null) means "no conditions" and is always satisfied.
"""

import json
from typing import List, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ontology_kernel.errors import InvalidConditionFormat
from ontology_kernel.models.transition import Condition, ScalarValue

_CONDITION_LIST = TypeAdapter(List[Condition])


def parse_conditions(text: Optional[str]) -> List[Condition]:
    """
    Parse condition specification text into predicates.

    Raises InvalidConditionFormat when the text is not JSON, not a list, or
    holds an entry without string `type`/`name` and a scalar `value`.
    Unknown `type` tags are accepted here and rejected during evaluation.
    """
    if text is None or not text.strip():
        return []

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidConditionFormat(f"not valid JSON ({exc.msg})") from exc

    if data is None:
        return []
    if not isinstance(data, list):
        raise InvalidConditionFormat(
            f"expected a list of conditions, got {type(data).__name__}"
        )

    try:
        return _CONDITION_LIST.validate_python(data)
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise InvalidConditionFormat(problems) from exc


def serialize_conditions(conditions: List[Condition]) -> str:
    """Render predicates back to specification text."""
    if not conditions:
        return ""
    return _CONDITION_LIST.dump_json(conditions).decode()


def scalar_to_text(value: ScalarValue) -> str:
    """
    Text representation used for every comparison against stored mode values.

    Booleans render lowercase, integral floats drop their fraction (3.0 -> "3").
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)

"""Argument checks shared by the usage services."""

import math
from typing import Any, Optional, Sequence

from usageflow.common.core.exceptions import InvalidParamsError


def require_identifiers(**values: Any) -> None:
    """Raise InvalidParamsError naming every argument that is not a non-empty string."""
    missing = [
        name for name, value in values.items() if not isinstance(value, str) or not value
    ]
    if missing:
        raise InvalidParamsError(
            f"Missing required parameters: {', '.join(missing)}",
            details={"missing": missing},
        )


def require_number(name: str, value: Any) -> None:
    # bool is an int subclass but never a credit amount
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or (isinstance(value, float) and not math.isfinite(value))
    ):
        raise InvalidParamsError(
            f"{name} must be a number",
            details={name: repr(value)},
        )


def require_metadata(metadata: Optional[Any]) -> dict:
    if metadata is None:
        return {}
    if not isinstance(metadata, dict):
        raise InvalidParamsError(
            "metadata must be a mapping",
            details={"metadata": repr(metadata)},
        )
    return dict(metadata)


def require_non_empty_list(name: str, values: Optional[Sequence[Any]]) -> list:
    if not values or isinstance(values, str):
        raise InvalidParamsError(
            f"Missing required parameters: {name}",
            details={"missing": [name]},
        )
    values = list(values)
    require_identifiers(**{f"{name}[{i}]": value for i, value in enumerate(values)})
    return values

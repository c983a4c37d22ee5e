"""
Parameter type inference.

Classifies literals extracted from a SQL template and turns them into typed
statement parameters:

- ``"42"`` -> integer, ``"3.14"`` -> double, ``"abc"`` -> string
- ``""`` and ``"null"`` (any case) are not bound at all; ``''`` / ``NULL`` is
  spliced into the query text in place of their placeholder.

A literal is numeric only if converting it and formatting it back yields the
exact same text, so ``"007"`` or ``"1e3"`` stay strings.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from sqlint.engines.sql.extractor import ExtractedValue


class ParamTypeError(ValueError):
    """Raised when a placeholder can't be found where a literal has to be spliced."""

    pass


class ParamType(str, Enum):
    """Bind type tags (one character each, as used in a type string)."""

    INTEGER = "i"
    DOUBLE = "d"
    STRING = "s"


class TypedParameter(NamedTuple):
    type: ParamType
    value: int | float | str


def _as_integer(text: str) -> int | None:
    try:
        value = int(text)
    except ValueError:
        return None
    return value if str(value) == text else None


def _as_double(text: str) -> float | None:
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value) or str(value) != text:
        return None
    return value


def inline_literal(text: str) -> str | None:
    """SQL literal to splice for an empty or NULL value, else ``None``."""
    if text == "":
        return "''"
    if text.lower() == "null":
        return "NULL"
    return None


def infer_parameter(text: str) -> TypedParameter | None:
    """
    Classify one extracted literal.

    Returns ``None`` for values that must be spliced instead of bound
    (see ``inline_literal``).
    """
    as_int = _as_integer(text)
    if as_int is not None:
        return TypedParameter(ParamType.INTEGER, as_int)
    as_double = _as_double(text)
    if as_double is not None:
        return TypedParameter(ParamType.DOUBLE, as_double)
    if inline_literal(text) is not None:
        return None
    return TypedParameter(ParamType.STRING, text)


def type_values(
    query: str,
    values: Sequence[ExtractedValue],
    placeholder: str = "?",
) -> tuple[str, list[TypedParameter]]:
    """
    Turn extracted values into bound parameters, splicing empty/NULL literals.

    *values* must be in the order ``extract`` produced them; splice positions
    are corrected by the cumulative length change of earlier splices.
    """
    params: list[TypedParameter] = []
    shift = 0
    for value in values:
        param = infer_parameter(value.text)
        if param is not None:
            params.append(param)
            continue

        literal = inline_literal(value.text)
        at = value.position + shift
        if query[at : at + len(placeholder)] != placeholder:
            raise ParamTypeError(
                f"No placeholder {placeholder!r} at index {at} for value {value.text!r}"
            )
        query = query[:at] + literal + query[at + len(placeholder) :]
        shift += len(literal) - len(placeholder)
    return query, params


def type_string(params: Sequence[TypedParameter]) -> str:
    """``[int, str, float]`` parameters -> ``"isd"``."""
    return "".join(p.type.value for p in params)

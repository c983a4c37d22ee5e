"""
Token extraction for SQL templates.

Values embedded in a query between a pair of delimiter tokens (``<%`` and ``%>``
by default) are cut out of the text and replaced by a placeholder::

    >>> extract("SELECT * FROM t WHERE id = <%5%>", ("<%", "%>"), "?")
    ('SELECT * FROM t WHERE id = ?', [ExtractedValue(offset=29, text='5', position=27)])

This is plain delimiter scanning, not SQL parsing: delimiters inside quoted
strings are extracted like any other.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import NamedTuple

from sqlint.core.errors import UnmatchedDelimiterError


class ExtractedValue(NamedTuple):
    """One extracted literal.

    ``offset`` is where the literal started in the text at the time it was
    extracted; ``position`` is where its placeholder sits in the rewritten text.
    """

    offset: int
    text: str
    position: int


def _check_unmatched(
    delimiters: Sequence[str],
    opening_index: int,
    closing_index: int,
) -> None:
    opening, closing = delimiters[0], delimiters[1]

    def missing_closing() -> None:
        if opening_index != -1 and (
            closing_index == -1 or closing_index < opening_index + len(opening)
        ):
            raise UnmatchedDelimiterError(opening, opening_index)

    def missing_opening() -> None:
        if closing_index != -1 and (opening_index == -1 or opening_index >= closing_index):
            raise UnmatchedDelimiterError(closing, closing_index)

    # Report whichever delimiter comes first in the text.
    first_opening = opening_index if opening_index != -1 else sys.maxsize
    first_closing = closing_index if closing_index != -1 else sys.maxsize
    if first_opening <= first_closing:
        missing_closing()
        missing_opening()
    else:
        missing_opening()
        missing_closing()


def extract(
    text: str,
    delimiters: Sequence[str],
    placeholder: str = "",
    *,
    throws: bool = False,
    iterations: int | None = None,
) -> tuple[str, list[ExtractedValue]]:
    """
    Cut every delimited value out of *text*.

    Returns the rewritten text and the extracted values in order of appearance.

    - throws: raise ``UnmatchedDelimiterError`` on an unmatched token; otherwise
      stop and return what was extracted so far.
    - iterations: maximum number of values to extract; ``None`` or a negative
      number means no limit.
    """
    if iterations is not None and iterations < 0:
        iterations = None
    opening, closing = delimiters[0], delimiters[1]
    values: list[ExtractedValue] = []

    while iterations is None or len(values) < iterations:
        opening_index = text.find(opening)
        closing_index = text.find(closing)

        try:
            _check_unmatched(delimiters, opening_index, closing_index)
        except UnmatchedDelimiterError:
            if throws:
                raise
            break

        if opening_index == -1:
            break

        start = opening_index + len(opening)
        values.append(ExtractedValue(start, text[start:closing_index], opening_index))
        text = text[:opening_index] + placeholder + text[closing_index + len(closing) :]

    return text, values


def substitute(text: str, values: Sequence[ExtractedValue], placeholder: str) -> str:
    """Put extracted values back in place of their placeholders (inverse of ``extract``)."""
    for value in reversed(values):
        at = value.position
        text = text[:at] + value.text + text[at + len(placeholder) :]
    return text

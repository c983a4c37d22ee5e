"""
Lexical clean-up of SQL text.

``trim`` strips comments (``-- ``, ``#``, ``/* */``) and collapses whitespace;
``split_statements`` cuts a script at ``;``. Both leave quoted spans
(``'...'``, ``"..."``, backticks) untouched and, when given the delimiter
tokens, the values embedded between them as well.
"""

from collections.abc import Sequence

_QUOTES = ("'", '"', "`")


def _quoted_end(sql: str, i: int) -> int:
    """Index just past the quoted span starting at *i* (end of text if unterminated).

    Handles doubled quotes (``'it''s'``) and backslash escapes outside backticks.
    """
    quote = sql[i]
    length = len(sql)
    i += 1
    while i < length:
        c = sql[i]
        if c == quote:
            if i + 1 < length and sql[i + 1] == quote:
                i += 2
                continue
            return i + 1
        if c == "\\" and quote != "`" and i + 1 < length:
            i += 2
            continue
        i += 1
    return length


def _verbatim_end(sql: str, i: int, tokens: Sequence[str] | None) -> int:
    """Index past a ``<%...%>`` span starting at *i*, or -1 if there is none."""
    if not tokens or not sql.startswith(tokens[0], i):
        return -1
    end = sql.find(tokens[1], i + len(tokens[0]))
    if end == -1:
        return -1
    return end + len(tokens[1])


def _comment_end(sql: str, i: int) -> int:
    """Index past the comment starting at *i*, or -1 if no comment starts there."""
    length = len(sql)
    if sql.startswith("--", i) and (i + 2 >= length or sql[i + 2].isspace()):
        end = sql.find("\n", i)
        return length if end == -1 else end + 1
    if sql[i] == "#":
        end = sql.find("\n", i)
        return length if end == -1 else end + 1
    if sql.startswith("/*", i):
        end = sql.find("*/", i + 2)
        return length if end == -1 else end + 2
    return -1


def trim(sql: str, tokens: Sequence[str] | None = None) -> str:
    """
    Strip comments and excess whitespace.

    Whitespace runs become one space, commas are followed by exactly one space
    and there is no space right inside parentheses.
    """
    out: list[str] = []
    pending_space = False
    i = 0
    length = len(sql)

    def emit(chunk: str) -> None:
        nonlocal pending_space
        if pending_space and out and not out[-1].endswith("(") and not chunk.startswith(")"):
            out.append(" ")
        pending_space = False
        out.append(chunk)

    while i < length:
        ch = sql[i]

        end = _verbatim_end(sql, i, tokens)
        if end != -1:
            emit(sql[i:end])
            i = end
            continue

        if ch in _QUOTES:
            end = _quoted_end(sql, i)
            emit(sql[i:end])
            i = end
            continue

        end = _comment_end(sql, i)
        if end != -1:
            pending_space = True
            i = end
            continue

        if ch.isspace():
            pending_space = True
            i += 1
            continue

        emit(ch)
        if ch == ",":
            pending_space = True
        i += 1

    return "".join(out).strip()


def split_statements(sql: str, tokens: Sequence[str] | None = None) -> list[str]:
    """Split SQL into statements on ``;`` while respecting quoted strings and comments."""
    stmts: list[str] = []
    current: list[str] = []
    i = 0
    length = len(sql)

    while i < length:
        ch = sql[i]

        end = _verbatim_end(sql, i, tokens)
        if end == -1 and ch in _QUOTES:
            end = _quoted_end(sql, i)
        if end == -1:
            end = _comment_end(sql, i)
        if end != -1:
            current.append(sql[i:end])
            i = end
            continue

        if ch == ";":
            stmt = "".join(current).strip()
            if stmt:
                stmts.append(stmt)
            current = []
            i += 1
            continue

        current.append(ch)
        i += 1

    tail = "".join(current).strip()
    if tail:
        stmts.append(tail)
    return stmts

"""Request body formatting.

JSON and GraphQL bodies are pretty-printed. Both may contain ``{{name}}``
placeholders that are not valid on their own, so placeholders outside
string literals are swapped for quoted synthetic tokens before formatting
and put back afterwards.
"""

from __future__ import annotations

import json
import logging
import re

from graphql import DocumentNode, GraphQLSyntaxError, TokenKind, print_ast
from graphql import parse as parse_graphql

from httpdoc.errors import BodyFormatError
from httpdoc.model import Header, get_header

logger = logging.getLogger(__name__)

GRAPHQL = "graphql"
JSON = "json"

FORM_URLENCODED = "application/x-www-form-urlencoded"

PLACEHOLDER_RE = re.compile(r"{{\$?\w+}}")
_TOKEN = "__HTTPDOC_PLACEHOLDER_{}__"
# A blank line followed by what looks like the start of a JSON object.
_GRAPHQL_VARIABLES_RE = re.compile(r"\n\s*\n(?=\s*{)")


def media_type(value: str | None) -> str | None:
    """``application/json; charset=utf-8`` -> ``application/json``."""
    if value is None:
        return None
    return value.split(";", 1)[0].strip().lower()


def select_strategy(headers: list[Header]) -> str | None:
    """Pick the structured formatter for a request, if any."""
    if media_type(get_header(headers, "x-request-type")) == GRAPHQL:
        return GRAPHQL
    if media_type(get_header(headers, "content-type")) == "application/json":
        return JSON
    return None


def is_form_urlencoded(headers: list[Header]) -> bool:
    return media_type(get_header(headers, "content-type")) == FORM_URLENCODED


def _string_mask(text: str) -> list[bool]:
    """Mark every index of ``text`` that lies inside a string literal."""
    mask = [False] * len(text)
    in_string = False
    i = 0
    while i < len(text):
        ch = text[i]
        if in_string:
            mask[i] = True
            if ch == "\\" and i + 1 < len(text):
                mask[i + 1] = True
                i += 2
                continue
            if ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
            mask[i] = True
        i += 1
    return mask


def _placeholder_runs(text: str) -> list[tuple[int, int]]:
    """Spans of adjacent placeholders that sit outside string literals."""
    mask = _string_mask(text)
    runs: list[tuple[int, int]] = []
    for match in PLACEHOLDER_RE.finditer(text):
        if mask[match.start()]:
            continue
        if runs and runs[-1][1] == match.start():
            runs[-1] = (runs[-1][0], match.end())
        else:
            runs.append((match.start(), match.end()))
    return runs


def protect_placeholders(body: str) -> tuple[str, dict[str, str]]:
    """Replace unquoted placeholders with quoted synthetic tokens.

    ``{"id": {{id}}}`` becomes ``{"id": "__HTTPDOC_PLACEHOLDER_0__"}``.
    Adjacent placeholders such as ``{{a}}{{b}}`` share one token so the
    result stays a single string literal.

    Returns:
        The protected body and a token -> original text mapping.
    """
    placeholders: dict[str, str] = {}
    pieces: list[str] = []
    pos = 0
    for start, end in _placeholder_runs(body):
        token = _TOKEN.format(len(placeholders))
        placeholders[token] = body[start:end]
        pieces.append(body[pos:start])
        pieces.append(f'"{token}"')
        pos = end
    pieces.append(body[pos:])
    return "".join(pieces), placeholders


def restore_placeholders(formatted: str, placeholders: dict[str, str]) -> str:
    """Put the original placeholders back, dropping the added quotes."""
    for token, original in placeholders.items():
        quoted = f'"{token}"'
        if quoted in formatted:
            formatted = formatted.replace(quoted, original, 1)
        else:
            formatted = formatted.replace(token, original, 1)
    return formatted


def split_graphql_body(body: str) -> tuple[str, str | None]:
    """Split a GraphQL body into its query and optional JSON variables.

    The variables start after the first blank line that is followed by
    ``{``. Without such a line the whole body is the query.
    """
    parts = _GRAPHQL_VARIABLES_RE.split(body, maxsplit=1)
    if len(parts) == 2:
        return parts[0].strip(), parts[1].strip()
    return body.strip(), None


class _JsonObject(list):
    """Key/value pairs of a JSON object, in source order, duplicates kept."""


class _JsonNumber(str):
    """A JSON number literal, kept exactly as written."""


def _reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not valid JSON")


def _load_json(body: str):
    return json.loads(
        body,
        object_pairs_hook=_JsonObject,
        parse_int=_JsonNumber,
        parse_float=_JsonNumber,
        parse_constant=_reject_constant,
    )


def _dump_json(value, indent: str = "") -> str:
    inner = indent + "  "
    if isinstance(value, _JsonObject):
        if not value:
            return "{}"
        items = [
            f"{inner}{json.dumps(key, ensure_ascii=False)}: {_dump_json(item, inner)}"
            for key, item in value
        ]
        return "{\n" + ",\n".join(items) + "\n" + indent + "}"
    if isinstance(value, list):
        if not value:
            return "[]"
        items = [inner + _dump_json(item, inner) for item in value]
        return "[\n" + ",\n".join(items) + "\n" + indent + "]"
    if isinstance(value, _JsonNumber):
        return str(value)
    return json.dumps(value, ensure_ascii=False)


def format_json(body: str) -> str:
    """Pretty-print JSON with a 2-space indent.

    Only layout changes: keys keep their order and duplicates, and numbers
    keep their literal text (``1.10`` stays ``1.10``).
    """
    try:
        data = _load_json(body)
    except ValueError as exc:
        raise BodyFormatError(JSON, exc) from exc
    return _dump_json(data)


def _graphql_comments(document: DocumentNode) -> list[str]:
    comments: list[str] = []
    token = document.loc.start_token if document.loc else None
    while token is not None:
        if token.kind == TokenKind.COMMENT:
            comments.append(token.value)
        token = token.next
    return comments


def format_graphql(query: str) -> str:
    """Pretty-print a GraphQL query.

    The printer drops ``#`` comments, so a query that has any is returned
    as written.
    """
    try:
        document = parse_graphql(query)
    except GraphQLSyntaxError as exc:
        raise BodyFormatError(GRAPHQL, exc) from exc
    comments = _graphql_comments(document)
    if comments:
        logger.debug("Keeping GraphQL query with %d comments as written", len(comments))
        return query
    return print_ast(document)


def format_graphql_body(body: str) -> str:
    query, variables = split_graphql_body(body)
    formatted = format_graphql(query).strip()
    if variables:
        formatted += "\n\n" + format_json(variables).strip()
    return formatted


def format_body(headers: list[Header], raw_body: str) -> str:
    """Pretty-print a request body according to its headers.

    Bodies with no structured strategy are only trimmed.

    Raises:
        BodyFormatError: If a JSON or GraphQL body does not parse.
    """
    body = raw_body.strip()
    strategy = select_strategy(headers)
    if strategy is None:
        return body

    protected, placeholders = protect_placeholders(body)
    if strategy == GRAPHQL:
        formatted = format_graphql_body(protected)
    else:
        formatted = format_json(protected)
    logger.debug("Formatted %s body with %d placeholders", strategy, len(placeholders))
    return restore_placeholders(formatted, placeholders).strip()


def normalize_form_body(body: str) -> str:
    """Lay out a form-urlencoded body one ``key=value`` pair per line."""
    compact = re.sub(r"\s+", "", body)
    return "&\n".join(compact.split("&"))

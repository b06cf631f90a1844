"""Line-oriented grammar for .http / .rest request files.

Turns document text into a ``SyntaxNode`` tree. The grammar never raises:
anything it cannot make sense of becomes an ``ERROR`` node or a node with
``has_error`` set, and callers decide what to do with a broken tree.

A document looks like this::

    @host = https://example.com

    ### Create user
    # @name CREATE_USER
    < {% request.variables.set('id', 1) %}
    POST {{host}}/users?active=true
      &page=2 HTTP/1.1
    Content-Type: application/json

    {"name": "{{name}}"}

    > ./check.js
    >> ./response.json
"""

from __future__ import annotations

import re

from httpdoc.model import boundary_param
from httpdoc.syntax import ERROR, SyntaxNode

METHODS = frozenset(
    {
        "GET",
        "POST",
        "PUT",
        "PATCH",
        "DELETE",
        "OPTIONS",
        "HEAD",
        "CONNECT",
        "TRACE",
        "GRAPHQL",
    }
)

SEPARATOR = "###"

_HTTP_VERSION_RE = re.compile(r"^HTTP/\d(?:\.\d)?$")
_VARIABLE_RE = re.compile(r"^@(?P<key>[A-Za-z_][\w.-]*)\s*=(?P<value>.*)$")
_METADATA_RE = re.compile(
    r"^(?:#|//)\s*@(?P<key>[A-Za-z_][\w.-]*)(?:\s+(?P<value>.*?))?\s*$"
)
_HEADER_RE = re.compile(r"^[^\s:]+\s*:.*$")
_NAME_RE = re.compile(r'\bname="(?:[^"\\]|\\.)+"')


def _is_comment(stripped: str) -> bool:
    return stripped.startswith("#") or stripped.startswith("//")


def _has_content(lines: list[str]) -> bool:
    return any(line.strip() for line in lines)


def _error(text: str) -> SyntaxNode:
    return SyntaxNode(ERROR, text, has_error=True)


def _comment(line: str) -> SyntaxNode:
    match = _METADATA_RE.match(line)
    if not match:
        return SyntaxNode("comment", line)
    children = [SyntaxNode("identifier", match.group("key"))]
    if match.group("value"):
        children.append(SyntaxNode("value", match.group("value")))
    return SyntaxNode("comment", line, children)


def _variable(line: str) -> SyntaxNode:
    match = _VARIABLE_RE.match(line)
    if not match:
        return _error(line)
    children = [SyntaxNode("identifier", match.group("key"))]
    value = match.group("value").strip()
    if value:
        children.append(SyntaxNode("value", value))
    return SyntaxNode("variable_declaration", line, children)


def _script(
    lines: list[str], index: int, marker: str, node_type: str
) -> tuple[SyntaxNode, int]:
    """Parse a ``<`` or ``>`` script line starting at ``lines[index]``.

    Inline scripts are wrapped in ``{% ... %}`` and may span several
    lines; anything else is a path to a script file.
    """
    line = lines[index].strip()
    rest = line[len(marker):].strip()
    if not rest:
        return _error(line), index + 1

    if not rest.startswith("{%"):
        return SyntaxNode(node_type, line, [SyntaxNode("path", rest)]), index + 1

    end = index
    text = rest
    while "%}" not in text[2:]:
        end += 1
        if end >= len(lines):
            return _error("\n".join(lines[index:])), end
        text += "\n" + lines[end]

    close = text.index("%}", 2) + 2
    node_text = "\n".join([line, *lines[index + 1:end + 1]])
    if text[close:].strip():
        return _error(node_text), end + 1
    script = SyntaxNode("script", text[:close])
    return SyntaxNode(node_type, node_text, [script]), end + 1


def _request_line(text: str) -> list[SyntaxNode] | None:
    """Split a (possibly multi-line) request line into its parts."""
    first, _, _ = text.partition("\n")
    tokens = first.split()
    children: list[SyntaxNode] = []

    rest = text
    if tokens[0] in METHODS:
        children.append(SyntaxNode("method", tokens[0]))
        rest = text.strip()[len(tokens[0]):].strip()
        if not rest:
            return None

    version = None
    last = rest.split()[-1]
    if _HTTP_VERSION_RE.match(last) and last != rest:
        version = last
        rest = rest[: -len(last)].rstrip()

    for url_line in rest.split("\n"):
        if len(url_line.split()) != 1:
            return None

    children.append(SyntaxNode("target_url", rest))
    if version:
        children.append(SyntaxNode("http_version", version))
    return children


def _header_value(headers: list[SyntaxNode], key: str) -> str:
    for header in headers:
        name, _, value = header.text.partition(":")
        if name.strip().lower() == key:
            return value.strip()
    return ""


def _multipart(text: str, content_type: str) -> SyntaxNode:
    lines = text.split("\n")
    boundary = boundary_param(content_type)
    first = next((line.strip() for line in lines if line.strip()), "")
    if boundary is None and first.startswith("--"):
        boundary = first[2:]
    delimiters = (f"--{boundary}", f"--{boundary}--") if boundary else ()
    children: list[SyntaxNode] = []
    has_error = False
    in_headers = False

    for line in lines:
        stripped = line.strip()
        if stripped in delimiters:
            in_headers = True
        elif in_headers:
            if not stripped:
                in_headers = False
            elif stripped.lower().startswith("content-disposition:"):
                has_error = has_error or not _NAME_RE.search(stripped)
        elif stripped.startswith("<") and stripped[1:2].isspace():
            path = stripped[1:].strip()
            children.append(
                SyntaxNode("external_body", stripped, [SyntaxNode("path", path)])
            )
    return SyntaxNode("multipart_form_data", text, children, has_error=has_error)


def _body(
    text: str, headers: list[SyntaxNode], method: str | None
) -> SyntaxNode:
    content_type = _header_value(headers, "content-type")
    stripped = text.strip()

    if content_type.lower().startswith("multipart/form-data"):
        return _multipart(text, content_type)
    if stripped.startswith("<") and stripped[1:2].isspace() and "\n" not in stripped:
        path = stripped[1:].strip()
        return SyntaxNode("external_body", text, [SyntaxNode("path", path)])
    if method == "GRAPHQL" or _header_value(headers, "x-request-type").lower() == "graphql":
        return SyntaxNode("graphql_body", text)
    if stripped.startswith(("{", "[")):
        return SyntaxNode("json_body", text)
    if stripped.startswith("<"):
        return SyntaxNode("xml_body", text)
    return SyntaxNode("raw_body", text)


def _request(
    lines: list[str], index: int, section: list[SyntaxNode]
) -> tuple[SyntaxNode, int]:
    """Parse a request starting at its request line.

    Variable declarations met after the response handlers are appended
    to ``section`` rather than to the request. Inside the body they are
    body text.
    """
    start = index
    url_lines = [lines[index].strip()]
    index += 1
    while index < len(lines) and lines[index].strip()[:1] in ("?", "&"):
        url_lines.append(lines[index].rstrip())
        index += 1

    request_line = "\n".join(url_lines)
    children = _request_line(request_line)
    if children is None:
        children = [_error(request_line)]
    method_node = next((c for c in children if c.type == "method"), None)
    method = method_node.text if method_node else None

    # Headers run until the first blank line.
    headers: list[SyntaxNode] = []
    while index < len(lines):
        stripped = lines[index].strip()
        if not stripped:
            index += 1
            break
        if stripped.startswith(">"):
            break
        if _is_comment(stripped):
            children.append(_comment(stripped))
        elif _HEADER_RE.match(stripped):
            header = SyntaxNode("header", stripped)
            headers.append(header)
            children.append(header)
        else:
            children.append(_error(stripped))
        index += 1

    # The body runs until the first response handler or redirect.
    body_lines: list[str] = []
    while index < len(lines):
        line = lines[index]
        if line.startswith(">"):
            break
        body_lines.append(line)
        index += 1

    body = "\n".join(body_lines).strip("\n").rstrip()
    if body.strip():
        children.append(_body(body, headers, method))

    while index < len(lines):
        stripped = lines[index].strip()
        if not stripped:
            index += 1
        elif stripped.startswith(">>"):
            children.append(SyntaxNode("res_redirect", stripped))
            index += 1
        elif stripped.startswith(">"):
            node, index = _script(lines, index, ">", "res_handler_script")
            children.append(node)
        elif stripped.startswith("@"):
            section.append(_variable(stripped))
            index += 1
        elif _is_comment(stripped):
            children.append(_comment(stripped))
            index += 1
        else:
            children.append(_error(stripped))
            index += 1

    text = "\n".join(lines[start:index])
    return SyntaxNode("request", text, children), index


def _section(separator: str | None, lines: list[str]) -> SyntaxNode:
    children: list[SyntaxNode] = []
    if separator is not None:
        sep_children = []
        text = separator[len(SEPARATOR):].strip()
        if text:
            sep_children.append(SyntaxNode("value", text))
        children.append(SyntaxNode("request_separator", separator, sep_children))

    index = 0
    while index < len(lines):
        stripped = lines[index].strip()
        if not stripped:
            index += 1
        elif _is_comment(stripped):
            children.append(_comment(stripped))
            index += 1
        elif stripped.startswith("@"):
            children.append(_variable(stripped))
            index += 1
        elif stripped.startswith("<"):
            node, index = _script(lines, index, "<", "pre_request_script")
            children.append(node)
        else:
            node, index = _request(lines, index, children)
            children.append(node)

    text = "\n".join(([separator] if separator is not None else []) + lines)
    return SyntaxNode("section", text, children)


def parse_tree(text: str) -> SyntaxNode:
    """Parse .http document text into a syntax tree.

    Args:
        text: The raw document text. ``\\r\\n`` line endings are accepted.

    Returns:
        The ``document`` node. Check it with ``syntax.has_errors`` before
        trusting its contents.
    """
    normalized = text.replace("\r\n", "\n")
    sections: list[SyntaxNode] = []

    separator: str | None = None
    current: list[str] = []
    for line in normalized.split("\n"):
        if line.startswith(SEPARATOR):
            if separator is not None or _has_content(current):
                sections.append(_section(separator, current))
            separator = line.rstrip()
            current = []
        else:
            current.append(line)
    if separator is not None or _has_content(current):
        sections.append(_section(separator, current))

    return SyntaxNode("document", normalized, sections)

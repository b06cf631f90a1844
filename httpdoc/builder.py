"""Text serializer: Document model to canonical .http text.

Building is deterministic for a given document and set of options. Bodies
that fail to format are kept as written and reported, unless the build is
strict.
"""

from __future__ import annotations

import logging
import re

from urllib3.fields import RequestField

from httpdoc import formatter
from httpdoc.errors import BodyFormatError
from httpdoc.model import (
    Block,
    Document,
    FormField,
    Header,
    Request,
    boundary_param,
    get_header,
)

logger = logging.getLogger(__name__)

DEFAULT_MULTIPART_BOUNDARY = "----HttpDocBoundary"

PASCAL_CASE_VERSIONS = ("HTTP/1.0", "HTTP/1.1")
LOWER_CASE_VERSIONS = ("HTTP/2", "HTTP/3")


class BuildResult:
    """Canonical text plus the body formatting errors recovered from."""

    __slots__ = ("text", "errors")

    def __init__(self, text: str, errors: list[BodyFormatError]) -> None:
        self.text = text
        self.errors = errors

    def __repr__(self) -> str:
        return f"BuildResult(text=<{len(self.text)} chars>, errors={self.errors!r})"


def header_to_pascal_case(key: str) -> str:
    """``content-type`` -> ``Content-Type``."""
    return "-".join(word[:1].upper() + word[1:] for word in key.split("-"))


def format_header_key(key: str, http_version: str) -> str:
    """Re-case a header key for the request's protocol version."""
    if http_version in PASCAL_CASE_VERSIONS:
        return header_to_pascal_case(key)
    if http_version in LOWER_CASE_VERSIONS:
        return key.lower()
    return key


def replace_comment_prefix(comment: str) -> str:
    return re.sub(r"^//", "#", comment)


def multipart_boundary(headers: list[Header], default: str = DEFAULT_MULTIPART_BOUNDARY) -> str:
    return boundary_param(get_header(headers, "content-type")) or default


def quote_param(value: str) -> str:
    """Quote a Content-Disposition parameter, backslash-escaping ``\\`` and ``"``."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def encode_multipart(fields: list[FormField], boundary: str) -> str:
    """Render form fields as boundary-delimited multipart parts.

    Field and file names are written as typed, with quotes escaped.
    urllib3 would percent-encode them for the wire, which would change
    the names read back from the file.
    """
    parts: list[str] = []
    for field in fields:
        disposition = f"form-data; name={quote_param(field.key)}"
        if field.type == "file" and field.file is not None:
            part = RequestField(name=field.key, data=field.value, filename=field.file.file_name)
            part.make_multipart(content_type=field.file.content_type)
            disposition += f"; filename={quote_param(field.file.file_name)}"
        else:
            part = RequestField(name=field.key, data=field.value)
            part.make_multipart()
        part.headers["Content-Disposition"] = disposition
        headers = part.render_headers().replace("\r\n", "\n")
        parts.append(f"--{boundary}\n{headers}{field.value}\n")
    parts.append(f"--{boundary}--\n")
    return "".join(parts)


def _build_body(
    request: Request, index: int, format_bodies: bool, strict: bool,
    errors: list[BodyFormatError],
) -> str:
    body = (request.body or "").strip()
    if format_bodies:
        try:
            body = formatter.format_body(request.headers, body)
        except BodyFormatError as exc:
            exc.block_index = index
            if strict:
                raise
            logger.debug("%s; keeping the body as written", exc)
            errors.append(exc)
    if formatter.is_form_urlencoded(request.headers):
        body = formatter.normalize_form_body(body)
    return body


def _build_block(
    block: Block, index: int, format_bodies: bool, boundary: str, strict: bool,
    errors: list[BodyFormatError],
) -> str:
    separator = block.request_separator.text
    lines = [f"### {separator}" if separator else "###", ""]

    lines.extend(replace_comment_prefix(comment) for comment in block.comments)
    lines.extend(f"< {script.script}" for script in block.pre_request_scripts)
    lines.extend(f"# @{md.key} {md.value}".rstrip() for md in block.metadata)

    request = block.request
    if request is not None:
        version = request.http_version
        lines.append(f"{request.method} {request.url} {version}")
        content_type = get_header(request.headers, "content-type")
        if not content_type and request.multipart_form_data:
            key = format_header_key("Content-Type", version)
            lines.append(f"{key}: multipart/form-data; boundary={boundary}")
        for header in request.headers:
            lines.append(f"{format_header_key(header.key, version)}: {header.value}")

        if request.body and request.body.strip():
            lines.append("")
            lines.append(_build_body(request, index, format_bodies, strict, errors))

        if request.multipart_form_data:
            lines.append("")
            encoded = encode_multipart(
                request.multipart_form_data,
                multipart_boundary(request.headers, boundary),
            )
            lines.append(encoded.rstrip("\n"))

    for script in block.post_request_scripts:
        lines.append("")
        lines.append(f"> {script.script}")

    if block.response_redirect:
        lines.append("")
        lines.append(block.response_redirect)

    return "\n".join(lines).rstrip()


def build_result(
    document: Document,
    format_body: bool = True,
    *,
    boundary: str = DEFAULT_MULTIPART_BOUNDARY,
    strict: bool = False,
) -> BuildResult:
    """Render a Document as canonical text.

    Args:
        document: The document to render. It is not modified.
        format_body: Pretty-print JSON and GraphQL bodies.
        boundary: Multipart boundary used when a request has form data
            but no ``boundary=`` in its Content-Type header.
        strict: Raise on the first body that fails to format instead of
            keeping it as written.

    Returns:
        A BuildResult with the text and any recovered formatting errors.

    Raises:
        BodyFormatError: In strict mode, if a body does not format.
    """
    errors: list[BodyFormatError] = []
    chunks: list[str] = []

    if document.variables:
        chunks.append(
            "\n".join(f"@{variable.key} = {variable.value}" for variable in document.variables)
        )
    for index, block in enumerate(document.blocks):
        chunks.append(_build_block(block, index, format_body, boundary, strict, errors))

    text = "\n\n".join(chunks).strip() + "\n"
    return BuildResult(text, errors)


def build(
    document: Document,
    format_body: bool = True,
    *,
    boundary: str = DEFAULT_MULTIPART_BOUNDARY,
    strict: bool = False,
) -> str:
    """Render a Document as canonical text. See ``build_result``."""
    return build_result(
        document, format_body, boundary=boundary, strict=strict
    ).text

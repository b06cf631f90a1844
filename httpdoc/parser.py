"""Document mapper: .http text to the Document model.

Parsing is all or nothing. If the syntax tree reports an error anywhere,
no partial document is returned.
"""

from __future__ import annotations

import logging
import re

from httpdoc.grammar import parse_tree
from httpdoc.model import (
    DEFAULT_HTTP_VERSION,
    DEFAULT_METHOD,
    Block,
    Document,
    FormField,
    FormFile,
    Header,
    Metadata,
    Request,
    RequestSeparator,
    Script,
    Variable,
    boundary_param,
    get_header,
)
from httpdoc.syntax import SyntaxNode, has_errors, walk

logger = logging.getLogger(__name__)

DEFAULT_FILE_CONTENT_TYPE = "application/octet-stream"

_NAME_RE = re.compile(r'\bname="((?:[^"\\]|\\.)+)"')
_FILENAME_RE = re.compile(r'\bfilename="((?:[^"\\]|\\.)*)"')


def format_url(url: str) -> str:
    """Lay out a URL's query string one parameter per line.

    ``https://example.com/get?foo=bar&baz=qux`` becomes::

        https://example.com/get?foo=bar
          &baz=qux

    URLs without a query string are returned unchanged. Blank lines left
    over from an earlier layout are collapsed, so the transform can be
    applied repeatedly.
    """
    if "?" not in url:
        return url
    base, _, query = url.partition("?")
    params = [param.strip() for param in query.split("&") if param.strip()]
    return base.strip() + "?" + "\n  &".join(params)


def split_header(text: str) -> Header:
    """Split ``key: value`` on the first colon only."""
    key, _, value = text.partition(":")
    return Header(key.strip(), value.strip())


def _unquote(value: str) -> str:
    return re.sub(r"\\(.)", r"\1", value)


def parse_multipart(text: str, boundary: str | None = None) -> list[FormField]:
    """Read the fields of a multipart/form-data body.

    Only ``--boundary`` and ``--boundary--`` lines delimit parts, so values
    may themselves start with ``--``. Without a known boundary, the first
    line of the body is taken as the opening delimiter.

    Each part's ``Content-Disposition`` line names the field; the
    non-empty lines after the part headers are its value. Parts that carry
    a ``filename`` become file fields, whose value is usually a
    ``< /path/to/file`` reference.
    """
    lines = text.split("\n")
    if boundary is None:
        first = next((line.strip() for line in lines if line.strip()), "")
        if first.startswith("--"):
            boundary = first[2:]
    delimiters = (f"--{boundary}", f"--{boundary}--") if boundary else ()

    fields: list[FormField] = []
    key: str | None = None
    file_name: str | None = None
    content_type: str | None = None
    value: str | None = None
    in_headers = False

    def emit() -> None:
        if key is None or not value:
            return
        if file_name is not None:
            fields.append(
                FormField(
                    key,
                    value,
                    type="file",
                    file=FormFile(file_name, content_type or DEFAULT_FILE_CONTENT_TYPE),
                )
            )
        else:
            fields.append(FormField(key, value, type="text"))

    for line in lines:
        stripped = line.strip()
        if stripped in delimiters:
            emit()
            key = file_name = content_type = value = None
            in_headers = True
            continue
        if in_headers:
            if not stripped:
                in_headers = False
            elif stripped.lower().startswith("content-disposition:"):
                name = _NAME_RE.search(stripped)
                filename = _FILENAME_RE.search(stripped)
                key = _unquote(name.group(1)) if name else None
                file_name = _unquote(filename.group(1)) if filename else None
            elif stripped.lower().startswith("content-type:"):
                content_type = stripped.partition(":")[2].strip()
            continue
        if key is not None and stripped:
            value = stripped if value is None else f"{value}\n{stripped}"
    emit()
    return fields


def _map_script(node: SyntaxNode) -> Script | None:
    script: Script | None = None
    for child in node.children:
        if child.type == "script":
            script = Script(child.text, inline=True)
        elif child.type == "path":
            script = Script(child.text, inline=False)
    return script


def _map_comment(node: SyntaxNode, block: Block) -> None:
    # `# @key value` comments are metadata, everything else a plain comment
    if not node.children:
        block.comments.append(node.text)
        return
    metadata: Metadata | None = None
    for child in node.children:
        if child.type == "identifier":
            metadata = Metadata(child.text, "")
        elif child.type == "value" and metadata is not None:
            metadata.value = child.text
    if metadata is not None:
        block.metadata.append(metadata)


def _map_request(node: SyntaxNode, block: Block) -> Request:
    request = Request(url="", method="", http_version="")
    for child in node.children:
        if child.type == "method":
            request.method = child.text
        elif child.type == "target_url":
            request.url = format_url(child.text)
        elif child.type == "http_version":
            request.http_version = child.text
        elif child.type == "header":
            request.headers.append(split_header(child.text))
        elif child.type == "comment":
            _map_comment(child, block)
        elif child.type == "res_redirect":
            block.response_redirect = child.text
        elif child.type == "res_handler_script":
            script = _map_script(child)
            if script is not None:
                block.post_request_scripts.append(script)
        elif child.type == "multipart_form_data":
            boundary = boundary_param(get_header(request.headers, "content-type"))
            request.multipart_form_data = parse_multipart(child.text, boundary)
        elif child.type.endswith("_body"):
            request.body = child.text

    if not request.method:
        request.method = DEFAULT_METHOD
    if not request.http_version:
        request.http_version = DEFAULT_HTTP_VERSION
    return request


def _map_section(section: SyntaxNode, position: int) -> Block:
    block = Block(position=position)
    for node in section.children:
        if node.type == "request_separator":
            value = node.child("value")
            block.request_separator = RequestSeparator(value.text if value else None)
        elif node.type == "comment":
            _map_comment(node, block)
        elif node.type == "pre_request_script":
            script = _map_script(node)
            if script is not None:
                block.pre_request_scripts.append(script)
        elif node.type == "request":
            block.request = _map_request(node, block)
    return block


def _collect_variables(root: SyntaxNode) -> list[Variable]:
    variables: list[Variable] = []
    for node in walk(root):
        if node.type != "variable_declaration":
            continue
        identifier = node.child("identifier")
        value = node.child("value")
        if identifier is not None and value is not None:
            variables.append(Variable(identifier.text, value.text))
    return variables


def map_tree(root: SyntaxNode) -> Document | None:
    """Build a Document from an already parsed syntax tree.

    Returns:
        The Document, or None if any node in the tree has a syntax error.
    """
    if has_errors(root):
        logger.debug("Syntax tree has errors, not a valid document")
        return None

    blocks: list[Block] = []
    for section in root.children:
        if section.type != "section":
            continue
        block = _map_section(section, position=len(blocks))
        if block.is_empty():
            logger.debug("Dropping empty section")
            continue
        blocks.append(block)

    variables = _collect_variables(root)
    logger.debug("Parsed %d blocks and %d variables", len(blocks), len(variables))
    return Document(variables=variables, blocks=blocks)


def parse(text: str) -> Document | None:
    """Parse .http document text into a Document.

    Args:
        text: The raw document text.

    Returns:
        The Document, or None if the text is not a valid document. None
        never means "empty": an empty text parses to an empty Document.
    """
    return map_tree(parse_tree(text))


def load_document_file(filepath: str) -> str:
    """Read and return the contents of a .http or .rest file.

    Raises:
        FileNotFoundError: If the file does not exist.
        OSError: If the file cannot be read.
    """
    with open(filepath, "r", encoding="utf-8") as fh:
        return fh.read()

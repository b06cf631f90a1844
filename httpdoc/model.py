"""Document model for .http request files.

A Document is built once per parse call and is a plain value object
afterwards: editors may mutate it freely, the builder only reads it.
"""

from __future__ import annotations

import re

from requests.structures import CaseInsensitiveDict

DEFAULT_METHOD = "GET"
DEFAULT_HTTP_VERSION = "HTTP/1.1"

_BOUNDARY_RE = re.compile(r'boundary="?([^";\s]+)"?', re.IGNORECASE)


class Header:
    """A single request header. Keys compare case-insensitively."""

    __slots__ = ("key", "value")

    def __init__(self, key: str, value: str) -> None:
        self.key = key
        self.value = value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Header):
            return NotImplemented
        return self.key.lower() == other.key.lower() and self.value == other.value

    def __hash__(self) -> int:
        return hash((self.key.lower(), self.value))

    def __repr__(self) -> str:
        return f"Header({self.key!r}, {self.value!r})"


def get_header(headers: list[Header], key: str) -> str | None:
    """Return the value of the first header named ``key``, ignoring case.

    Duplicate headers are allowed in a request; the first one wins, the
    same way a reader scanning the file top to bottom would see it.
    """
    lookup: CaseInsensitiveDict[str] = CaseInsensitiveDict()
    for header in reversed(headers):
        lookup[header.key] = header.value
    return lookup.get(key)


def boundary_param(content_type: str | None) -> str | None:
    """``multipart/form-data; boundary=abc`` -> ``abc``."""
    if not content_type:
        return None
    match = _BOUNDARY_RE.search(content_type)
    return match.group(1) if match else None


class FormFile:
    """File details of a file-backed multipart field."""

    __slots__ = ("file_name", "content_type")

    def __init__(self, file_name: str, content_type: str) -> None:
        self.file_name = file_name
        self.content_type = content_type

    def __repr__(self) -> str:
        return f"FormFile({self.file_name!r}, {self.content_type!r})"


class FormField:
    """One named part of a multipart/form-data body."""

    __slots__ = ("key", "value", "type", "file")

    def __init__(
        self,
        key: str,
        value: str,
        type: str | None = None,
        file: FormFile | None = None,
    ) -> None:
        self.key = key
        self.value = value
        self.type = type
        self.file = file

    def __repr__(self) -> str:
        return (
            f"FormField(key={self.key!r}, value={self.value!r}, "
            f"type={self.type!r})"
        )


class Request:
    """The request line, headers and body of a block."""

    __slots__ = (
        "method",
        "url",
        "http_version",
        "headers",
        "body",
        "multipart_form_data",
    )

    def __init__(
        self,
        url: str,
        method: str = DEFAULT_METHOD,
        http_version: str = DEFAULT_HTTP_VERSION,
        headers: list[Header] | None = None,
        body: str | None = None,
        multipart_form_data: list[FormField] | None = None,
    ) -> None:
        self.method = method
        self.url = url
        self.http_version = http_version
        self.headers = headers if headers is not None else []
        self.body = body
        self.multipart_form_data = multipart_form_data

    def get_header(self, key: str) -> str | None:
        return get_header(self.headers, key)

    def __repr__(self) -> str:
        return (
            f"Request(method={self.method!r}, url={self.url!r}, "
            f"http_version={self.http_version!r}, "
            f"headers=<{len(self.headers)} headers>, "
            f"body={'<present>' if self.body else '<none>'})"
        )


class Script:
    """A pre- or post-request script, inline or referenced by path."""

    __slots__ = ("script", "inline")

    def __init__(self, script: str, inline: bool) -> None:
        self.script = script
        self.inline = inline

    def __repr__(self) -> str:
        return f"Script({self.script!r}, inline={self.inline})"


class Metadata:
    """A ``# @key value`` annotation."""

    __slots__ = ("key", "value")

    def __init__(self, key: str, value: str) -> None:
        self.key = key
        self.value = value

    def __repr__(self) -> str:
        return f"Metadata({self.key!r}, {self.value!r})"


class RequestSeparator:
    __slots__ = ("text",)

    def __init__(self, text: str | None = None) -> None:
        self.text = text

    def __repr__(self) -> str:
        return f"RequestSeparator({self.text!r})"


class Block:
    """One request unit, delimited by a ``###`` separator line."""

    __slots__ = (
        "request_separator",
        "metadata",
        "comments",
        "request",
        "pre_request_scripts",
        "post_request_scripts",
        "response_redirect",
        "position",
    )

    def __init__(
        self,
        request_separator: RequestSeparator | None = None,
        metadata: list[Metadata] | None = None,
        comments: list[str] | None = None,
        request: Request | None = None,
        pre_request_scripts: list[Script] | None = None,
        post_request_scripts: list[Script] | None = None,
        response_redirect: str | None = None,
        position: int = 0,
    ) -> None:
        self.request_separator = request_separator or RequestSeparator()
        self.metadata = metadata if metadata is not None else []
        self.comments = comments if comments is not None else []
        self.request = request
        self.pre_request_scripts = (
            pre_request_scripts if pre_request_scripts is not None else []
        )
        self.post_request_scripts = (
            post_request_scripts if post_request_scripts is not None else []
        )
        self.response_redirect = response_redirect
        # Zero-based index of the block within its document.
        self.position = position

    @property
    def name(self) -> str:
        """The ``@name`` annotation, or ``Block #<n>`` when there is none."""
        for md in self.metadata:
            if md.key == "name" and md.value:
                return md.value
        return f"Block #{self.position + 1}"

    def is_empty(self) -> bool:
        """True if the block has no URL, no metadata and no comments."""
        has_url = self.request is not None and bool(self.request.url)
        return not (has_url or self.metadata or self.comments)

    def __repr__(self) -> str:
        return (
            f"Block(name={self.name!r}, request={self.request!r}, "
            f"metadata=<{len(self.metadata)}>, comments=<{len(self.comments)}>)"
        )


class Variable:
    """An ``@key = value`` declaration. The value is kept unparsed."""

    __slots__ = ("key", "value")

    def __init__(self, key: str, value: str) -> None:
        self.key = key
        self.value = value

    def __repr__(self) -> str:
        return f"Variable({self.key!r}, {self.value!r})"


class Document:
    """Variables and request blocks of one .http file, in document order."""

    __slots__ = ("variables", "blocks")

    def __init__(
        self,
        variables: list[Variable] | None = None,
        blocks: list[Block] | None = None,
    ) -> None:
        self.variables = variables if variables is not None else []
        self.blocks = blocks if blocks is not None else []

    def get_block(self, index: int) -> Block | None:
        if 0 <= index < len(self.blocks):
            return self.blocks[index]
        return None

    def get_variable(self, key: str) -> str | None:
        """Return the value of the last declaration of ``key``."""
        value = None
        for variable in self.variables:
            if variable.key == key:
                value = variable.value
        return value

    def __repr__(self) -> str:
        return (
            f"Document(variables=<{len(self.variables)}>, "
            f"blocks=<{len(self.blocks)}>)"
        )

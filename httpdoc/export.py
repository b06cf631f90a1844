"""Export a parsed block as an unsent ``requests.Request``.

Nothing here touches the network and placeholders are left as written;
resolving ``{{name}}`` values and sending the request is up to the caller.
"""

from __future__ import annotations

import requests

from httpdoc.model import Block, Request


def request_url(url: str) -> str:
    """Join a laid-out URL back into a single line.

    The query-string layout produced by the parser puts each parameter on
    its own indented line; this undoes it.
    """
    return "".join(line.strip() for line in url.split("\n"))


def _files(request: Request) -> dict[str, tuple] | None:
    if not request.multipart_form_data:
        return None
    files: dict[str, tuple] = {}
    for field in request.multipart_form_data:
        if field.type == "file" and field.file is not None:
            # The value is the `< path` reference, not the file content.
            files[field.key] = (field.file.file_name, field.value, field.file.content_type)
        else:
            files[field.key] = (None, field.value)
    return files


def to_request(block: Block) -> requests.Request:
    """Convert a block into a ``requests.Request``.

    Headers with the same name collapse to the last value. For multipart
    requests the Content-Type header is dropped so requests can set its
    own boundary.

    Raises:
        ValueError: If the block has no request.
    """
    request = block.request
    if request is None:
        raise ValueError(f"{block.name} has no request")

    files = _files(request)
    headers: dict[str, str] = {}
    for header in request.headers:
        if files is not None and header.key.lower() == "content-type":
            continue
        headers[header.key] = header.value

    return requests.Request(
        method=request.method,
        url=request_url(request.url),
        headers=headers,
        data=request.body.strip() if request.body else None,
        files=files,
    )

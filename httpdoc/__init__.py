"""httpdoc: parse and re-format .http request files."""

__version__ = "0.3.0"

from httpdoc.builder import DEFAULT_MULTIPART_BOUNDARY, BuildResult, build, build_result
from httpdoc.errors import BodyFormatError, HttpDocError
from httpdoc.model import (
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
    get_header,
)
from httpdoc.parser import load_document_file, map_tree, parse

__all__ = [
    "DEFAULT_MULTIPART_BOUNDARY",
    "Block",
    "BodyFormatError",
    "BuildResult",
    "Document",
    "FormField",
    "FormFile",
    "Header",
    "HttpDocError",
    "Metadata",
    "Request",
    "RequestSeparator",
    "Script",
    "Variable",
    "__version__",
    "build",
    "build_result",
    "get_header",
    "load_document_file",
    "map_tree",
    "parse",
]

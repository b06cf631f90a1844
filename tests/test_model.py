"""Tests for the document model."""

from httpdoc.model import (
    Block,
    Document,
    Header,
    Metadata,
    Request,
    Variable,
    boundary_param,
    get_header,
)


class TestGetHeader:
    """Header lookup ignores key case."""

    def test_case_insensitive(self):
        headers = [Header("Content-Type", "application/json")]
        assert get_header(headers, "content-type") == "application/json"
        assert get_header(headers, "Content-Type") == "application/json"
        assert get_header(headers, "CONTENT-TYPE") == "application/json"

    def test_first_match_wins(self):
        headers = [Header("Accept", "a"), Header("accept", "b")]
        assert get_header(headers, "ACCEPT") == "a"

    def test_missing_header(self):
        assert get_header([], "accept") is None

    def test_request_helper(self):
        request = Request(url="https://x", headers=[Header("x-id", "1")])
        assert request.get_header("X-Id") == "1"


class TestBoundaryParam:
    """Tests for boundary_param."""

    def test_plain_and_quoted(self):
        assert boundary_param("multipart/form-data; boundary=abc") == "abc"
        assert boundary_param('multipart/form-data; BOUNDARY="a-b"') == "a-b"

    def test_missing(self):
        assert boundary_param("multipart/form-data") is None
        assert boundary_param(None) is None


class TestHeader:
    """Tests for Header equality."""

    def test_equality_ignores_key_case(self):
        assert Header("Content-Type", "a") == Header("content-type", "a")
        assert Header("Content-Type", "a") != Header("Content-Type", "b")
        assert hash(Header("Accept", "x")) == hash(Header("ACCEPT", "x"))

    def test_not_equal_to_other_types(self):
        assert Header("a", "b") != ("a", "b")


class TestBlock:
    """Tests for Block helpers."""

    def test_defaults(self):
        block = Block()
        assert block.request_separator.text is None
        assert block.metadata == []
        assert block.request is None

    def test_is_empty(self):
        assert Block().is_empty()
        assert Block(request=Request(url="")).is_empty()
        assert not Block(request=Request(url="https://x")).is_empty()
        assert not Block(comments=["# note"]).is_empty()
        assert not Block(metadata=[Metadata("name", "X")]).is_empty()

    def test_name(self):
        assert Block(metadata=[Metadata("name", "LOGIN")]).name == "LOGIN"
        assert Block(position=2).name == "Block #3"

    def test_repr(self):
        r = repr(Block(request=Request(url="https://x", body="data")))
        assert "https://x" in r
        assert "<present>" in r


class TestDocument:
    """Tests for Document helpers."""

    def test_get_variable_last_declaration_wins(self):
        doc = Document(variables=[Variable("a", "1"), Variable("a", "2")])
        assert doc.get_variable("a") == "2"
        assert doc.get_variable("b") is None

    def test_repr(self):
        assert "blocks=<0>" in repr(Document())

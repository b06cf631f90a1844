"""Tests for request body formatting."""

import pytest

from httpdoc.errors import BodyFormatError
from httpdoc.formatter import (
    GRAPHQL,
    JSON,
    format_body,
    normalize_form_body,
    protect_placeholders,
    restore_placeholders,
    select_strategy,
    split_graphql_body,
)
from httpdoc.model import Header

JSON_HEADERS = [Header("content-type", "application/json")]
GRAPHQL_HEADERS = [
    Header("Content-Type", "application/json"),
    Header("X-Request-Type", "GraphQL"),
]


class TestSelectStrategy:
    """Tests for select_strategy."""

    def test_graphql_wins_over_json(self):
        assert select_strategy(GRAPHQL_HEADERS) == GRAPHQL

    def test_json(self):
        assert select_strategy(JSON_HEADERS) == JSON

    def test_json_with_charset(self):
        headers = [Header("Content-Type", "application/json; charset=utf-8")]
        assert select_strategy(headers) == JSON

    def test_no_strategy(self):
        assert select_strategy([Header("Content-Type", "text/plain")]) is None
        assert select_strategy([]) is None


class TestPlaceholders:
    """Tests for placeholder protection and restoration."""

    def test_unquoted_placeholder_is_replaced(self):
        body = '{"id": {{id}}, "auth": "{{token}}"}'
        protected, placeholders = protect_placeholders(body)
        assert protected == '{"id": "__HTTPDOC_PLACEHOLDER_0__", "auth": "{{token}}"}'
        assert placeholders == {"__HTTPDOC_PLACEHOLDER_0__": "{{id}}"}

    def test_dollar_placeholder(self):
        protected, placeholders = protect_placeholders('{"ts": {{$timestamp}}}')
        assert protected == '{"ts": "__HTTPDOC_PLACEHOLDER_0__"}'
        assert placeholders["__HTTPDOC_PLACEHOLDER_0__"] == "{{$timestamp}}"

    def test_adjacent_placeholders_share_a_token(self):
        protected, placeholders = protect_placeholders("[{{a}}{{b}}, {{c}}]")
        assert protected == (
            '["__HTTPDOC_PLACEHOLDER_0__", "__HTTPDOC_PLACEHOLDER_1__"]'
        )
        assert list(placeholders.values()) == ["{{a}}{{b}}", "{{c}}"]

    def test_escaped_quote_inside_string(self):
        body = '{"a": "say \\"{{hi}}\\"", "b": {{b}}}'
        protected, placeholders = protect_placeholders(body)
        assert list(placeholders.values()) == ["{{b}}"]
        assert '"say \\"{{hi}}\\""' in protected

    def test_restore_round_trip(self):
        body = '{"a": {{a}}, "b": [{{b}}{{c}}]}'
        protected, placeholders = protect_placeholders(body)
        assert restore_placeholders(protected, placeholders) == body


class TestSplitGraphqlBody:
    """Tests for split_graphql_body."""

    def test_query_and_variables(self):
        query, variables = split_graphql_body('query { me }\n\n{ "id": 1 }')
        assert query == "query { me }"
        assert variables == '{ "id": 1 }'

    def test_query_only(self):
        assert split_graphql_body("query { me }\n") == ("query { me }", None)

    def test_blank_line_inside_query_is_not_a_split(self):
        body = "query {\n\n  me\n}"
        assert split_graphql_body(body) == (body, None)


class TestFormatBody:
    """Tests for format_body."""

    def test_json_with_placeholders(self):
        body = '{"auth": "{{token}}", "id": {{id}}}'
        assert format_body(JSON_HEADERS, body) == (
            '{\n  "auth": "{{token}}",\n  "id": {{id}}\n}'
        )

    def test_json_keeps_key_order_and_unicode(self):
        assert format_body(JSON_HEADERS, '{"b": 1, "a": "é"}') == (
            '{\n  "b": 1,\n  "a": "é"\n}'
        )

    def test_malformed_json_raises(self):
        with pytest.raises(BodyFormatError) as excinfo:
            format_body(JSON_HEADERS, '{"a": }')
        assert excinfo.value.strategy == JSON
        assert "json" in str(excinfo.value)

    def test_json_duplicate_keys_are_kept(self):
        assert format_body(JSON_HEADERS, '{"a": 1, "a": 2}') == (
            '{\n  "a": 1,\n  "a": 2\n}'
        )

    def test_json_number_literals_are_kept(self):
        body = '{"a": 1.10, "b": 1e400, "c": 1E2, "d": -0, "e": [10, 2.50]}'
        assert format_body(JSON_HEADERS, body) == (
            '{\n'
            '  "a": 1.10,\n'
            '  "b": 1e400,\n'
            '  "c": 1E2,\n'
            '  "d": -0,\n'
            '  "e": [\n'
            '    10,\n'
            '    2.50\n'
            '  ]\n'
            '}'
        )

    def test_json_nested_and_empty_containers(self):
        body = '{"a": {}, "b": [], "c": {"d": [true, null, "x"]}}'
        assert format_body(JSON_HEADERS, body) == (
            '{\n'
            '  "a": {},\n'
            '  "b": [],\n'
            '  "c": {\n'
            '    "d": [\n'
            '      true,\n'
            '      null,\n'
            '      "x"\n'
            '    ]\n'
            '  }\n'
            '}'
        )

    def test_json_non_standard_constant_raises(self):
        with pytest.raises(BodyFormatError):
            format_body(JSON_HEADERS, '{"a": Infinity}')

    def test_graphql_query_and_variables(self):
        body = 'query Me { me }\n\n{ "id": 1 }'
        assert format_body(GRAPHQL_HEADERS, body) == (
            'query Me {\n  me\n}\n\n{\n  "id": 1\n}'
        )

    def test_graphql_with_placeholder(self):
        body = "query User { user(id: {{id}}) { name } }"
        assert format_body(GRAPHQL_HEADERS, body) == (
            "query User {\n  user(id: {{id}}) {\n    name\n  }\n}"
        )

    def test_graphql_placeholder_in_variables(self):
        body = 'query Me { me }\n\n{"id": {{id}}}'
        formatted = format_body(GRAPHQL_HEADERS, body)
        assert formatted.endswith('{\n  "id": {{id}}\n}')

    def test_malformed_graphql_raises(self):
        with pytest.raises(BodyFormatError) as excinfo:
            format_body(GRAPHQL_HEADERS, "query { me ")
        assert excinfo.value.strategy == GRAPHQL

    def test_graphql_comments_are_kept(self):
        body = "query {\n  # who am I\n  me\n}"
        assert format_body(GRAPHQL_HEADERS, body) == body

    def test_graphql_comments_with_placeholder_and_variables(self):
        body = 'query {\n  # by id\n  user(id: {{id}}) { name }\n}\n\n{"id":1}'
        assert format_body(GRAPHQL_HEADERS, body) == (
            'query {\n  # by id\n  user(id: {{id}}) { name }\n}\n\n{\n  "id": 1\n}'
        )

    def test_graphql_hash_inside_string_is_not_a_comment(self):
        body = 'query U { user(name: "#1") { id } }'
        assert format_body(GRAPHQL_HEADERS, body) == (
            'query U {\n  user(name: "#1") {\n    id\n  }\n}'
        )

    def test_unstructured_body_is_trimmed(self):
        headers = [Header("Content-Type", "text/plain")]
        assert format_body(headers, "\n  hello {{name}}  \n") == "hello {{name}}"


class TestNormalizeFormBody:
    """Tests for normalize_form_body."""

    def test_one_pair_per_line(self):
        assert normalize_form_body("a=1 & b=2\n&c=3") == "a=1&\nb=2&\nc=3"

    def test_single_pair(self):
        assert normalize_form_body(" a=1 ") == "a=1"

    def test_is_stable(self):
        once = normalize_form_body("a=1&b=2")
        assert normalize_form_body(once) == once

"""Tests for har_api/filters.py"""

import pytest

from conftest import graphql_entry, make_entry
from har_api.filters import (
    filter_json_entries,
    filter_stats,
    find_header,
    is_graphql_request,
    is_json_request,
    is_json_response,
)
from har_api.models import HARHeader


class TestIsJsonRequest:
    @pytest.mark.parametrize("mime, expected", [
        ("application/json", True),
        ("application/json; charset=utf-8", True),
        ("application/ld+json", True),
        ("application/vnd.api+json", True),
        ("text/html", False),
        ("application/x-www-form-urlencoded", False),
    ])
    def test_post_data_mime_type(self, mime, expected):
        entry = make_entry(request_text="{}", request_mime=mime)
        assert is_json_request(entry) is expected

    def test_falls_back_to_content_type_header(self):
        entry = make_entry(headers=[{"name": "Content-Type", "value": "application/json"}])
        assert is_json_request(entry)

    def test_header_name_is_case_insensitive(self):
        entry = make_entry(headers=[{"name": "CONTENT-TYPE", "value": "application/json"}])
        assert is_json_request(entry)

    def test_first_matching_header_wins(self):
        entry = make_entry(headers=[
            {"name": "content-type", "value": "text/plain"},
            {"name": "Content-Type", "value": "application/json"},
        ])
        assert not is_json_request(entry)

    def test_empty_post_data_mime_uses_header(self):
        entry = make_entry(
            request_text="{}",
            request_mime="",
            headers=[{"name": "content-type", "value": "application/json"}],
        )
        assert is_json_request(entry)

    def test_match_is_case_sensitive(self):
        entry = make_entry(request_text="{}", request_mime="application/JSON")
        assert not is_json_request(entry)

    def test_no_mime_and_no_headers(self):
        assert not is_json_request(make_entry())


class TestIsJsonResponse:
    def test_json_mime(self):
        assert is_json_response(make_entry(response_mime="application/json; charset=utf-8"))

    def test_html_mime(self):
        assert not is_json_response(make_entry(response_mime="text/html"))

    def test_missing_mime(self):
        assert not is_json_response(make_entry(response_mime=None))


class TestIsGraphQLRequest:
    def test_operation_name_and_query(self):
        assert is_graphql_request(graphql_entry())

    def test_query_only(self):
        entry = make_entry(request_text='{"query":"{ users { id } }"}', request_mime="application/json")
        assert is_graphql_request(entry)

    def test_operation_name_only(self):
        entry = make_entry(request_text='{"operationName":"Ping"}', request_mime="application/json")
        assert is_graphql_request(entry)

    def test_plain_json_body(self):
        entry = make_entry(request_text='{"name":"Ann"}', request_mime="application/json")
        assert not is_graphql_request(entry)

    def test_falsy_markers(self):
        entry = make_entry(request_text='{"operationName":"","query":null}', request_mime="application/json")
        assert not is_graphql_request(entry)

    def test_requires_json_request(self):
        entry = make_entry(request_text='{"query":"{ users { id } }"}', request_mime="text/plain")
        assert not is_graphql_request(entry)

    def test_invalid_json_body(self):
        entry = make_entry(request_text="not valid json", request_mime="application/json")
        assert not is_graphql_request(entry)

    def test_non_object_body(self):
        entry = make_entry(request_text='["query"]', request_mime="application/json")
        assert not is_graphql_request(entry)

    def test_no_body(self):
        entry = make_entry(headers=[{"name": "Content-Type", "value": "application/json"}])
        assert not is_graphql_request(entry)


class TestFilterJsonEntries:
    def test_keeps_json_response(self, rest_entry):
        assert filter_json_entries([rest_entry]) == [rest_entry]

    def test_keeps_json_request_with_non_json_response(self):
        entry = make_entry(request_text="{}", request_mime="application/json",
                           response_text="ok", response_mime="text/plain")
        assert filter_json_entries([entry]) == [entry]

    def test_drops_non_json(self):
        entry = make_entry(response_text="<html></html>", response_mime="text/html")
        assert filter_json_entries([entry]) == []

    def test_drops_missing_response_text(self):
        entry = make_entry(response_text=None)
        assert filter_json_entries([entry]) == []

    def test_keeps_empty_response_text(self):
        entry = make_entry(response_text="")
        assert filter_json_entries([entry]) == [entry]

    def test_preserves_order_and_duplicates(self):
        first = make_entry(url="https://api.example.com/a")
        html = make_entry(url="https://example.com/", response_mime="text/html")
        second = make_entry(url="https://api.example.com/b")
        result = filter_json_entries([first, html, second, first])
        assert [e.request.url for e in result] == [
            "https://api.example.com/a",
            "https://api.example.com/b",
            "https://api.example.com/a",
        ]

    def test_stats(self):
        entries = [make_entry(), graphql_entry(), make_entry(response_mime="text/html")]
        kept = filter_json_entries(entries)
        assert filter_stats(entries, kept) == {
            'original_count': 3,
            'filtered_count': 2,
            'removed': 1,
            'graphql': 1,
        }


def test_find_header_missing():
    assert find_header([HARHeader(name="Accept", value="*/*")], "content-type") is None

import json

import pytest

from har_api.models import HAREntry


def make_entry(
    method="GET",
    url="https://api.example.com/users",
    status=200,
    time=150.4,
    started="2024-01-01T00:00:00Z",
    request_text=None,
    request_mime=None,
    headers=None,
    response_text='{"users":[]}',
    response_mime="application/json",
) -> HAREntry:
    """Build a HAREntry from the handful of fields the tests care about."""
    request = {
        "method": method,
        "url": url,
        "headers": headers or [],
    }
    if request_text is not None or request_mime is not None:
        request["postData"] = {"mimeType": request_mime or "", "text": request_text}

    content = {"size": len(response_text or ""), "mimeType": response_mime}
    if response_text is not None:
        content["text"] = response_text

    return HAREntry.model_validate({
        "startedDateTime": started,
        "time": time,
        "request": request,
        "response": {
            "status": status,
            "statusText": "OK",
            "headers": [],
            "content": content,
        },
    })


def graphql_entry(operation="GetUsers", query="query GetUsers { users { id } }", variables=None, **kwargs):
    body = {"operationName": operation, "query": query}
    if variables is not None:
        body["variables"] = variables
    kwargs.setdefault("method", "POST")
    kwargs.setdefault("url", "https://api.example.com/graphql")
    kwargs.setdefault("response_text", '{"data":{"users":[{"id":"1"}]}}')
    return make_entry(request_text=json.dumps(body), request_mime="application/json", **kwargs)


def har_document(entries):
    return {
        "log": {
            "version": "1.2",
            "creator": {"name": "test", "version": "1.0"},
            "entries": entries,
        }
    }


@pytest.fixture
def rest_entry():
    return make_entry()


@pytest.fixture
def sample_har():
    """HAR with a REST call, a GraphQL call and an HTML page"""
    return har_document([
        {
            "startedDateTime": "2024-01-01T00:00:00Z",
            "time": 150.4,
            "request": {"method": "GET", "url": "https://api.example.com/users", "headers": []},
            "response": {
                "status": 200,
                "statusText": "OK",
                "headers": [],
                "content": {"size": 12, "mimeType": "application/json", "text": '{"users":[]}'},
            },
        },
        {
            "startedDateTime": "2024-01-01T00:00:01Z",
            "time": 80,
            "request": {
                "method": "POST",
                "url": "https://api.example.com/graphql",
                "headers": [{"name": "Content-Type", "value": "application/json"}],
                "postData": {
                    "mimeType": "application/json",
                    "text": '{"operationName":"GetUser","query":"query GetUser($id: ID!) { user(id: $id) { name } }","variables":{"id":"123"}}',
                },
            },
            "response": {
                "status": 200,
                "statusText": "OK",
                "headers": [],
                "content": {"size": 30, "mimeType": "application/json", "text": '{"data":{"user":{"name":"Ann"}}}'},
            },
        },
        {
            "startedDateTime": "2024-01-01T00:00:02Z",
            "time": 20,
            "request": {"method": "GET", "url": "https://example.com/", "headers": []},
            "response": {
                "status": 200,
                "statusText": "OK",
                "headers": [],
                "content": {"size": 15, "mimeType": "text/html", "text": "<html></html>"},
            },
        },
    ])


@pytest.fixture
def har_path(tmp_path, sample_har):
    path = tmp_path / "session.har"
    path.write_text(json.dumps(sample_har), encoding="utf-8")
    return path

"""Tests for the raw Linear GraphQL client."""

import http.client
import io
import json
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from lazydev_workflow.config import LinearConfig
from lazydev_workflow.errors import (
    MalformedResponseError,
    MissingCredentialError,
    ServiceError,
    TransportError,
)
from lazydev_workflow.linear_client import LinearClient, build_issue_filter


def _response(payload) -> MagicMock:
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    response = MagicMock()
    response.__enter__.return_value.read.return_value = body
    return response


@pytest.fixture
def client(config):
    return LinearClient(config)


class TestBuildIssueFilter:

    def test_matches_title_or_description(self):
        """Should match the text against title or description."""
        assert build_issue_filter("Login") == {
            "or": [
                {"title": {"containsIgnoreCase": "Login"}},
                {"description": {"containsIgnoreCase": "Login"}},
            ]
        }


class TestSearchIssues:

    @patch("lazydev_workflow.linear_client.urllib.request.urlopen")
    def test_returns_nodes(self, mock_urlopen, client, make_node):
        """Should POST the filter and return the raw nodes."""
        mock_urlopen.return_value = _response({"data": {"issues": {"nodes": [make_node(1)]}}})

        nodes = client.search_issues("login", 5)

        assert nodes[0]["identifier"] == "LAZY-1"
        request = mock_urlopen.call_args[0][0]
        assert request.full_url == "https://linear.test/graphql"
        assert request.get_header("Authorization") == "lin_api_test"
        sent = json.loads(request.data.decode("utf-8"))
        assert sent["variables"]["first"] == 5
        assert sent["variables"]["filter"] == build_issue_filter("login")

    @patch("lazydev_workflow.linear_client.urllib.request.urlopen")
    def test_null_nodes_is_empty(self, mock_urlopen, client):
        """Should treat null nodes as no matches."""
        mock_urlopen.return_value = _response({"data": {"issues": {"nodes": None}}})
        assert client.search_issues("login", 5) == []

    @patch("lazydev_workflow.linear_client.urllib.request.urlopen")
    def test_http_error(self, mock_urlopen, client):
        """Should raise TransportError with status, reason and body."""
        mock_urlopen.side_effect = urllib.error.HTTPError(
            "https://linear.test/graphql", 400, "Bad Request", {}, io.BytesIO(b'{"errors":"bad"}')
        )
        with pytest.raises(TransportError) as exc:
            client.search_issues("login", 5)
        assert exc.value.status_code == 400
        assert exc.value.body == '{"errors":"bad"}'
        assert exc.value.reason == "Bad Request"

    @patch("lazydev_workflow.linear_client.urllib.request.urlopen")
    def test_unreachable(self, mock_urlopen, client):
        """Should raise TransportError without a status."""
        mock_urlopen.side_effect = urllib.error.URLError("connection refused")
        with pytest.raises(TransportError) as exc:
            client.search_issues("login", 5)
        assert exc.value.status_code is None
        assert "connection refused" in exc.value.body

    @patch("lazydev_workflow.linear_client.urllib.request.urlopen")
    def test_graphql_errors(self, mock_urlopen, client):
        """Should raise ServiceError with every message."""
        mock_urlopen.return_value = _response(
            {"errors": [{"message": "Invalid filter"}, {"message": "Field unknown"}]}
        )
        with pytest.raises(ServiceError) as exc:
            client.search_issues("login", 5)
        assert exc.value.messages == ["Invalid filter", "Field unknown"]

    @patch("lazydev_workflow.linear_client.urllib.request.urlopen")
    def test_non_json_body(self, mock_urlopen, client):
        """Should raise MalformedResponseError for a non-JSON body."""
        mock_urlopen.return_value = _response(b"<html>gateway</html>")
        with pytest.raises(MalformedResponseError):
            client.search_issues("login", 5)

    @patch("lazydev_workflow.linear_client.urllib.request.urlopen")
    def test_non_utf8_body(self, mock_urlopen, client):
        """Should raise MalformedResponseError for a body that is not UTF-8."""
        mock_urlopen.return_value = _response(b'\xff\xfe{"data":')
        with pytest.raises(MalformedResponseError) as exc:
            client.search_issues("login", 5)
        assert "UTF-8" in str(exc.value)

    @patch("lazydev_workflow.linear_client.urllib.request.urlopen")
    def test_truncated_body(self, mock_urlopen, client):
        """Should raise TransportError when the body read is cut short."""
        response = MagicMock()
        response.__enter__.return_value.read.side_effect = http.client.IncompleteRead(b'{"da', 40)
        mock_urlopen.return_value = response
        with pytest.raises(TransportError) as exc:
            client.search_issues("login", 5)
        assert exc.value.status_code is None

    @pytest.mark.parametrize("payload", [
        {},
        {"data": None},
        {"data": {}},
        {"data": {"issues": {}}},
        {"data": {"issues": {"nodes": "nope"}}},
    ])
    @patch("lazydev_workflow.linear_client.urllib.request.urlopen")
    def test_missing_result_container(self, mock_urlopen, payload, client):
        """Should raise MalformedResponseError when data.issues.nodes is absent."""
        mock_urlopen.return_value = _response(payload)
        with pytest.raises(MalformedResponseError):
            client.search_issues("login", 5)

    @patch("lazydev_workflow.linear_client.urllib.request.urlopen")
    def test_missing_key_makes_no_request(self, mock_urlopen):
        """Should fail before any request without an API key."""
        client = LinearClient(LinearConfig(api_key=None))
        with pytest.raises(MissingCredentialError):
            client.search_issues("login", 5)
        mock_urlopen.assert_not_called()

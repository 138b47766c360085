"""
Comprehensive unit tests for TrelloClient (Trello API client)

Covers:
- Board URL parsing and board id requirements
- HTTP status → exception mapping and error-shaped payloads
- Pagination with the ``before`` parameter
- Snapshot reads and write parameter encoding
"""

import json
import sys
from pathlib import Path

# Add parent directory to path to import github2trello module
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from unittest.mock import MagicMock, patch

import pytest
import requests

from github2trello.exceptions import (
    TrelloAPIError,
    TrelloAuthenticationError,
    TrelloNotFoundError,
    TrelloRateLimitError,
    TrelloServerError,
)
from github2trello.models import CardFields
from github2trello.trello_client import TrelloClient


def _response(status_code=200, json_data=None, text=None):
    response = MagicMock()
    response.status_code = status_code
    if text is None:
        text = json.dumps(json_data) if json_data is not None else ""
    response.text = text
    if json_data is not None:
        response.json.return_value = json_data
    else:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    return response


@pytest.fixture
def client():
    trello = TrelloClient(api_key="test_key", token="test_token", board_id="board1")
    trello.throttle = MagicMock()
    return trello


# ===== Board URL Parsing =====


class TestBoardURLParsing:
    """Test parse_board_url() static method"""

    def test_parse_full_https_url(self):
        """Should extract board ID from full HTTPS URL"""
        assert TrelloClient.parse_board_url("https://trello.com/b/Bm0nnz1R/my-board") == "Bm0nnz1R"

    def test_parse_url_without_protocol_or_name(self):
        assert TrelloClient.parse_board_url("trello.com/b/XYZ789AB") == "XYZ789AB"

    def test_parse_url_with_query_params(self):
        url = "https://trello.com/b/TEST123A/board?menu=filter"
        assert TrelloClient.parse_board_url(url) == "TEST123A"

    def test_parse_empty_url_raises_error(self):
        with pytest.raises(ValueError, match="URL cannot be empty"):
            TrelloClient.parse_board_url("")

    def test_parse_card_url_raises_error(self):
        """Card URLs use /c/ and are not boards"""
        with pytest.raises(ValueError, match="Could not extract board ID"):
            TrelloClient.parse_board_url("https://trello.com/c/abc123/card")


class TestTrelloClientInit:
    """Test TrelloClient initialization"""

    def test_init_with_board_id(self):
        trello = TrelloClient("key", "token", board_id="abc")
        assert trello.board_id == "abc"

    def test_board_url_takes_precedence(self):
        trello = TrelloClient("key", "token", board_id="abc", board_url="https://trello.com/b/XYZ")
        assert trello.board_id == "XYZ"

    def test_board_methods_require_board_id(self):
        """Should raise ValueError when no board is configured"""
        trello = TrelloClient("key", "token")

        with pytest.raises(ValueError, match="board_id is required"):
            trello.get_lists()


# ===== Request handling =====


class TestRequest:
    """Test _request() authentication, decoding and error mapping"""

    def test_sends_credentials_and_params(self, client):
        with patch("requests.request", return_value=_response(json_data=[])) as mock_request:
            client._request("GET", "boards/board1/lists", {"fields": "name"})

        args, kwargs = mock_request.call_args
        assert args == ("GET", "https://api.trello.com/1/boards/board1/lists")
        assert kwargs["params"] == {"key": "test_key", "token": "test_token", "fields": "name"}
        assert kwargs["timeout"] == 30

    def test_waits_on_throttle_before_each_request(self, client):
        with patch("requests.request", return_value=_response(json_data={})):
            client._request("GET", "a")
            client._request("GET", "b")

        assert client.throttle.wait.call_count == 2

    @pytest.mark.parametrize(
        "status_code, error_class",
        [
            (401, TrelloAuthenticationError),
            (403, TrelloAuthenticationError),
            (404, TrelloNotFoundError),
            (429, TrelloRateLimitError),
            (500, TrelloServerError),
            (503, TrelloServerError),
            (400, TrelloAPIError),
        ],
    )
    def test_status_codes_map_to_exceptions(self, client, status_code, error_class):
        """Each failure class is raised once, without retries"""
        response = _response(status_code, text="nope")

        with patch("requests.request", return_value=response) as mock_request:
            with pytest.raises(error_class) as exc_info:
                client._request("GET", "cards/c1")

        assert mock_request.call_count == 1
        assert exc_info.value.status_code == status_code
        assert exc_info.value.endpoint == "cards/c1"
        assert exc_info.value.response_text == "nope"

    def test_network_error_wrapped(self, client):
        with patch("requests.request", side_effect=requests.ConnectionError("down")):
            with pytest.raises(TrelloAPIError, match="Network error"):
                client._request("GET", "members/me")

    def test_empty_body_returns_none(self, client):
        with patch("requests.request", return_value=_response(200, text="")):
            assert client._request("DELETE", "checklists/cl1") is None

    def test_invalid_json_raises_with_raw_text(self, client):
        with patch("requests.request", return_value=_response(200, text="<html>oops</html>")):
            with pytest.raises(TrelloAPIError) as exc_info:
                client._request("GET", "boards/board1")

        assert exc_info.value.response_text == "<html>oops</html>"
        assert "<html>oops</html>" in str(exc_info.value)

    def test_message_payload_is_an_error(self, client):
        """A 200 carrying {"message": ...} is reported as a failure"""
        response = _response(200, json_data={"message": "invalid value for idList"})

        with patch("requests.request", return_value=response):
            with pytest.raises(TrelloAPIError, match="invalid value for idList"):
                client._request("PUT", "cards/c1")


class TestPagination:
    """Test _paginated_request()"""

    def test_single_page_under_limit(self, client):
        cards = [{"id": f"card_{i}"} for i in range(500)]

        with patch.object(client, "_request", return_value=cards) as mock_request:
            result = client._paginated_request("boards/board1/cards")

        assert mock_request.call_count == 1
        assert result == cards

    def test_follows_before_parameter(self, client):
        """A full page triggers another request starting before the last id"""
        page1 = [{"id": f"card_{i}"} for i in range(1000)]
        page2 = [{"id": f"card_{i}"} for i in range(1000, 1200)]

        with patch.object(client, "_request", side_effect=[page1, page2]) as mock_request:
            result = client._paginated_request("boards/board1/cards", {"fields": "name"})

        assert len(result) == 1200
        params = mock_request.call_args_list[1][0][2]
        assert params["before"] == "card_999"
        assert params["limit"] == 1000
        assert params["fields"] == "name"

    def test_stops_on_empty_page(self, client):
        page1 = [{"id": f"card_{i}"} for i in range(1000)]

        with patch.object(client, "_request", side_effect=[page1, []]) as mock_request:
            result = client._paginated_request("boards/board1/cards")

        assert mock_request.call_count == 2
        assert len(result) == 1000


class TestValidateCredentials:
    """Test validate_credentials()"""

    def test_checks_member_then_board(self, client):
        with patch.object(client, "_request", return_value={"id": "x"}) as mock_request:
            client.validate_credentials()

        endpoints = [call[0][1] for call in mock_request.call_args_list]
        assert endpoints == ["members/me", "boards/board1"]

    def test_missing_board_has_detailed_message(self, client):
        def fake_request(method, endpoint, params=None):
            if endpoint == "boards/board1":
                raise TrelloNotFoundError("Resource not found", endpoint=endpoint, status_code=404)
            return {"id": "me"}

        with patch.object(client, "_request", side_effect=fake_request):
            with pytest.raises(TrelloNotFoundError, match="Board 'board1' not found"):
                client.validate_credentials()


# ===== Reads =====


class TestSnapshotReads:
    """Test typed reads and get_board_snapshot()"""

    def test_get_board_snapshot(self, client, trello_board_fixture):
        data = trello_board_fixture
        responses_by_endpoint = {
            "boards/board1": data["board"],
            "boards/board1/labels": data["labels"],
            "boards/board1/lists": data["lists"],
            "boards/board1/cards": data["cards"],
            "boards/board1/members": data["members"],
            "boards/board1/checklists": data["checklists"],
        }

        def fake_request(method, endpoint, params=None):
            return responses_by_endpoint[endpoint]

        with patch.object(client, "_request", side_effect=fake_request):
            board = client.get_board_snapshot()

        assert board.id == "board1"
        assert board.name == data["board"]["name"]
        assert [lst.name for lst in board.lists] == [lst["name"] for lst in data["lists"]]
        assert board.find_label("") is not None
        card = board.cards[0]
        assert card.id_list == data["cards"][0]["idList"]
        assert card.id_labels == data["cards"][0]["idLabels"]
        assert board.members[0].full_name == data["members"][0]["fullName"]
        checklist = board.checklists[0]
        assert checklist.id_card == data["checklists"][0]["idCard"]
        assert [item.name for item in checklist.check_items] == [
            item["name"] for item in data["checklists"][0]["checkItems"]
        ]

    def test_get_labels_requests_beyond_default_limit(self, client):
        with patch.object(client, "_request", return_value=[]) as mock_request:
            client.get_labels()

        assert mock_request.call_args[0][2]["limit"] == 1000

    def test_get_checklists_includes_all_items(self, client):
        with patch.object(client, "_request", return_value=[]) as mock_request:
            client.get_checklists()

        assert mock_request.call_args[0][2]["checkItems"] == "all"


# ===== Writes =====


class TestWrites:
    """Test write endpoints and their parameter encoding"""

    def _card_payload(self, **overrides):
        payload = {
            "id": "card1",
            "name": "#1: T",
            "desc": "",
            "due": None,
            "idList": "L",
            "idLabels": [],
            "idMembers": [],
        }
        payload.update(overrides)
        return payload

    def test_create_card_encodes_lists_and_omits_empty(self, client):
        fields = CardFields(
            name="#1: T",
            desc="D",
            due=None,
            id_list="L",
            id_labels=["a", "b"],
            id_members=[],
        )

        with patch.object(
            client, "_request", return_value=self._card_payload(idLabels=["a", "b"])
        ) as mock_request:
            card = client.create_card(fields)

        method, endpoint, params = mock_request.call_args[0]
        assert (method, endpoint) == ("POST", "cards")
        assert params == {"name": "#1: T", "desc": "D", "idList": "L", "idLabels": "a,b"}
        assert card.id == "card1"
        assert card.id_labels == ["a", "b"]

    def test_update_card_clears_fields_explicitly(self, client):
        """Cleared due is sent as null, cleared lists as empty strings"""
        with patch.object(client, "_request", return_value=self._card_payload()) as mock_request:
            client.update_card("card1", {"due": None, "id_members": [], "name": "#1: New"})

        method, endpoint, params = mock_request.call_args[0]
        assert (method, endpoint) == ("PUT", "cards/card1")
        assert params == {"due": "null", "idMembers": "", "name": "#1: New"}

    def test_create_list_at_bottom(self, client):
        with patch.object(client, "_request", return_value={"id": "l1", "name": "Todo"}) as m:
            created = client.create_list("Todo")

        assert m.call_args[0] == (
            "POST",
            "lists",
            {"name": "Todo", "idBoard": "board1", "pos": "bottom"},
        )
        assert created.id == "l1"

    def test_create_and_rename_label(self, client):
        with patch.object(
            client, "_request", return_value={"id": "lb1", "name": "bug", "color": "pink"}
        ) as mock_request:
            client.create_label("bug", "pink")
            client.rename_label("lb1", "bug")

        calls = [call[0] for call in mock_request.call_args_list]
        assert calls == [
            ("POST", "labels", {"name": "bug", "color": "pink", "idBoard": "board1"}),
            ("PUT", "labels/lb1", {"name": "bug"}),
        ]

    def test_checklist_writes(self, client):
        with patch.object(
            client,
            "_request",
            side_effect=[
                {"id": "cl1", "idCard": "card1", "name": "Checklist", "checkItems": []},
                {"id": "i1", "name": "Do", "state": "complete"},
                {"id": "i1", "name": "Do", "state": "incomplete"},
                None,
                None,
            ],
        ) as mock_request:
            checklist = client.create_checklist("card1")
            item = client.create_check_item("cl1", "Do", True)
            client.set_check_item_state("card1", "i1", False)
            client.delete_check_item("cl1", "i1")
            client.delete_checklist("cl1")

        assert checklist.id_card == "card1"
        assert item.complete
        calls = [call[0] for call in mock_request.call_args_list]
        assert calls == [
            ("POST", "checklists", {"idCard": "card1", "name": "Checklist"}),
            ("POST", "checklists/cl1/checkItems", {"name": "Do", "checked": "true"}),
            ("PUT", "cards/card1/checkItem/i1", {"state": "incomplete"}),
            ("DELETE", "checklists/cl1/checkItems/i1"),
            ("DELETE", "checklists/cl1"),
        ]

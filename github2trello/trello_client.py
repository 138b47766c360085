"""Trello API client: board snapshot reads and the writes the sync needs."""

from __future__ import annotations

import logging
import re
from typing import Any, cast

import requests

from github2trello.exceptions import (
    TrelloAPIError,
    TrelloAuthenticationError,
    TrelloNotFoundError,
    TrelloRateLimitError,
    TrelloServerError,
)
from github2trello.models import (
    CardFields,
    CheckItem,
    Checklist,
    TrelloBoard,
    TrelloCard,
    TrelloLabel,
    TrelloList,
    TrelloMember,
)
from github2trello.throttle import RequestThrottle

logger = logging.getLogger(__name__)

# Snapshot attribute name -> Trello query parameter
CARD_PARAMS = {
    "name": "name",
    "desc": "desc",
    "due": "due",
    "id_list": "idList",
    "id_labels": "idLabels",
    "id_members": "idMembers",
}


class TrelloClient:
    """Read and write one Trello board

    Trello API rate limits (per token):
    - 100 requests per 10 seconds = 10 req/sec sustained

    Requests are paced at 10 req/sec. Failures are never retried: the sync
    is safe to re-run, so the operator simply runs it again.
    """

    def __init__(
        self, api_key: str, token: str, board_id: str | None = None, board_url: str | None = None
    ):
        self.api_key = api_key
        self.token = token
        self.base_url = "https://api.trello.com/1"
        self.throttle = RequestThrottle(requests_per_second=10.0, burst=10)

        self.board_id: str | None
        if board_url:
            self.board_id = self.parse_board_url(board_url)
        else:
            self.board_id = board_id

    @staticmethod
    def parse_board_url(url: str) -> str:
        """Extract board ID from Trello URL

        Supports formats:
        - https://trello.com/b/Bm0nnz1R/board-name
        - https://trello.com/b/Bm0nnz1R
        - trello.com/b/Bm0nnz1R/board-name

        Raises:
            ValueError: If URL format is invalid or board ID cannot be extracted
        """
        if not url:
            raise ValueError("URL cannot be empty")

        match = re.search(r"trello\.com/b/([a-zA-Z0-9]+)", url)
        if match:
            return match.group(1)

        raise ValueError(f"Could not extract board ID from URL: {url}")

    def _board_path(self, suffix: str = "") -> str:
        if not self.board_id:
            raise ValueError(
                "board_id is required for this operation. "
                "Initialize TrelloClient with board_id or board_url parameter."
            )
        return f"boards/{self.board_id}{suffix}"

    def _request(self, method: str, endpoint: str, params: dict | None = None) -> Any:
        """Make one authenticated request and return the decoded JSON body.

        Returns None for an empty body (Trello answers some DELETEs that way).
        """
        self.throttle.wait()

        url = f"{self.base_url}/{endpoint}"
        auth_params: dict[str, Any] = {"key": self.api_key, "token": self.token}
        if params:
            auth_params.update(params)

        try:
            response = requests.request(method, url, params=auth_params, timeout=30)
        except requests.RequestException as e:
            raise TrelloAPIError(
                f"Network error for {method} {endpoint}: {e}\n"
                "Check your internet connection and try again.",
                endpoint=endpoint,
            ) from e

        status_code = response.status_code
        response_text = response.text

        if status_code >= 400:
            if status_code == 401:
                raise TrelloAuthenticationError(
                    "Invalid API credentials. Check your TRELLO_API_KEY and TRELLO_TOKEN.\n"
                    "Get credentials at: https://trello.com/power-ups/admin",
                    endpoint=endpoint,
                    status_code=status_code,
                    response_text=response_text,
                )
            elif status_code == 403:
                raise TrelloAuthenticationError(
                    f"Access forbidden to resource: {endpoint}\n"
                    "Your API token may not have write access to this board.",
                    endpoint=endpoint,
                    status_code=status_code,
                    response_text=response_text,
                )
            elif status_code == 404:
                raise TrelloNotFoundError(
                    f"Resource not found: {endpoint}\n"
                    "Check that your board ID is correct and the board exists.",
                    endpoint=endpoint,
                    status_code=status_code,
                    response_text=response_text,
                )
            elif status_code == 429:
                raise TrelloRateLimitError(
                    f"Rate limit exceeded for {endpoint}.\n"
                    "Trello's API rate limit: 100 requests per 10 seconds. "
                    "Wait a few minutes and run the sync again.",
                    endpoint=endpoint,
                    status_code=status_code,
                    response_text=response_text,
                )
            elif status_code >= 500:
                raise TrelloServerError(
                    f"Trello server error (HTTP {status_code}) for {endpoint}.\n"
                    "Trello's servers may be experiencing issues. Try again later.",
                    endpoint=endpoint,
                    status_code=status_code,
                    response_text=response_text,
                )
            raise TrelloAPIError(
                f"HTTP {status_code} error for {endpoint}: {response_text[:200]}",
                endpoint=endpoint,
                status_code=status_code,
                response_text=response_text,
            )

        if not response_text.strip():
            return None

        try:
            data = response.json()
        except ValueError as e:
            raise TrelloAPIError(
                f"{endpoint}: {response_text[:200]}",
                endpoint=endpoint,
                status_code=status_code,
                response_text=response_text,
            ) from e

        # Trello reports some failures as a 200 with {"message": "..."}
        if isinstance(data, dict) and "message" in data:
            raise TrelloAPIError(
                f"{endpoint}: {data['message']}",
                endpoint=endpoint,
                status_code=status_code,
                response_text=response_text,
            )

        return data

    def _paginated_request(self, endpoint: str, params: dict | None = None) -> list[dict]:
        """Fetch every page of a list endpoint, 1000 items at a time

        Trello caps list responses at 1000 items; the ``before`` parameter
        (the last id seen) fetches the next page.
        """
        all_items: list[dict] = []
        request_params = params.copy() if params else {}
        request_params["limit"] = 1000

        while True:
            page_items = self._request("GET", endpoint, request_params)

            if not isinstance(page_items, list):
                return cast(list[dict], page_items)

            if not page_items:
                break

            all_items.extend(page_items)

            if len(page_items) < 1000:
                break

            last_item_id = page_items[-1].get("id")
            if not last_item_id:
                break

            request_params["before"] = last_item_id

        return all_items

    def validate_credentials(self) -> None:
        """Verify credentials work and the board is accessible.

        Raises:
            TrelloAuthenticationError: If API credentials are invalid
            TrelloNotFoundError: If the board doesn't exist or isn't accessible
        """
        self._request("GET", "members/me", {"fields": "id,username"})

        try:
            self._request("GET", self._board_path(), {"fields": "id,name"})
        except TrelloNotFoundError as e:
            raise TrelloNotFoundError(
                f"Board '{self.board_id}' not found or you don't have access to it.\n"
                f"Possible causes:\n"
                f"  1. Board ID is incorrect\n"
                f"  2. Board is private and your token doesn't have access\n"
                f"  3. Board has been deleted or archived\n"
                f"Check your board URL and privacy settings.",
                endpoint=e.endpoint,
                status_code=404,
                response_text=e.response_text,
            ) from e

    # ===== Reads =====

    def get_board(self) -> dict:
        """Get board info"""
        return cast(dict, self._request("GET", self._board_path(), {"fields": "name,desc,url"}))

    def get_lists(self) -> list[TrelloList]:
        lists = self._request("GET", self._board_path("/lists"), {"fields": "name,pos"})
        return [TrelloList.from_api(item) for item in lists]

    def get_labels(self) -> list[TrelloLabel]:
        # The labels endpoint defaults to 50 results
        labels = self._request(
            "GET", self._board_path("/labels"), {"fields": "name,color", "limit": 1000}
        )
        return [TrelloLabel.from_api(item) for item in labels]

    def get_members(self) -> list[TrelloMember]:
        members = self._request(
            "GET", self._board_path("/members"), {"fields": "username,fullName"}
        )
        return [TrelloMember.from_api(item) for item in members]

    def get_cards(self) -> list[TrelloCard]:
        """Get all open cards (supports pagination for >1000 cards)"""
        cards = self._paginated_request(
            self._board_path("/cards"),
            {"fields": "name,desc,due,idList,idLabels,idMembers"},
        )
        return [TrelloCard.from_api(item) for item in cards]

    def get_checklists(self) -> list[Checklist]:
        checklists = self._request(
            "GET",
            self._board_path("/checklists"),
            {
                "fields": "name,idCard,pos",
                "checkItems": "all",
                "checkItem_fields": "name,state,pos",
            },
        )
        return [Checklist.from_api(item) for item in checklists]

    def get_board_snapshot(self) -> TrelloBoard:
        """Fetch everything the sync reads from the board."""
        board = self.get_board()
        return TrelloBoard(
            id=board["id"],
            name=board.get("name", ""),
            url=board.get("url", ""),
            labels=self.get_labels(),
            lists=self.get_lists(),
            cards=self.get_cards(),
            members=self.get_members(),
            checklists=self.get_checklists(),
        )

    # ===== Writes =====

    @staticmethod
    def _card_params(fields: dict[str, Any], clear_unset: bool) -> dict[str, str]:
        """Encode card fields as Trello query parameters.

        Lists are comma-joined. With ``clear_unset`` an empty value is sent
        explicitly (``due=null``) so Trello clears the field; otherwise it is
        left out.
        """
        params = {}
        for key, value in fields.items():
            param = CARD_PARAMS[key]
            if isinstance(value, list):
                value = ",".join(value)
            if not value:
                if not clear_unset:
                    continue
                value = "null" if key == "due" else ""
            params[param] = value
        return params

    def create_list(self, name: str) -> TrelloList:
        data = self._request(
            "POST", "lists", {"name": name, "idBoard": self.board_id, "pos": "bottom"}
        )
        return TrelloList.from_api(data)

    def create_label(self, name: str, color: str) -> TrelloLabel:
        data = self._request(
            "POST", "labels", {"name": name, "color": color, "idBoard": self.board_id}
        )
        return TrelloLabel.from_api(data)

    def rename_label(self, label_id: str, name: str) -> TrelloLabel:
        data = self._request("PUT", f"labels/{label_id}", {"name": name})
        return TrelloLabel.from_api(data)

    def create_card(self, fields: CardFields) -> TrelloCard:
        values = {key: getattr(fields, key) for key in CARD_PARAMS}
        data = self._request("POST", "cards", self._card_params(values, clear_unset=False))
        return TrelloCard.from_api(data)

    def update_card(self, card_id: str, changes: dict[str, Any]) -> TrelloCard:
        data = self._request(
            "PUT", f"cards/{card_id}", self._card_params(changes, clear_unset=True)
        )
        return TrelloCard.from_api(data)

    def create_checklist(self, card_id: str, name: str = "Checklist") -> Checklist:
        data = self._request("POST", "checklists", {"idCard": card_id, "name": name})
        return Checklist.from_api(data)

    def delete_checklist(self, checklist_id: str) -> None:
        self._request("DELETE", f"checklists/{checklist_id}")

    def create_check_item(self, checklist_id: str, name: str, checked: bool) -> CheckItem:
        data = self._request(
            "POST",
            f"checklists/{checklist_id}/checkItems",
            {"name": name, "checked": "true" if checked else "false"},
        )
        return CheckItem.from_api(data)

    def set_check_item_state(self, card_id: str, item_id: str, completed: bool) -> CheckItem:
        data = self._request(
            "PUT",
            f"cards/{card_id}/checkItem/{item_id}",
            {"state": "complete" if completed else "incomplete"},
        )
        return CheckItem.from_api(data)

    def delete_check_item(self, checklist_id: str, item_id: str) -> None:
        self._request("DELETE", f"checklists/{checklist_id}/checkItems/{item_id}")

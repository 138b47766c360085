"""
Shared pytest fixtures for github2trello tests
"""
import dataclasses
import itertools
import json
import sys
from pathlib import Path

import pytest

# Add parent directory to path to import github2trello package
sys.path.insert(0, str(Path(__file__).parent.parent))

from github2trello.models import (
    CheckItem,
    Checklist,
    GitHubUser,
    Issue,
    ProjectAttributes,
    SingleSelectField,
    TrelloBoard,
    TrelloCard,
    TrelloLabel,
    TrelloList,
    TrelloMember,
)


@pytest.fixture
def fixtures_dir():
    """Return path to test fixtures directory"""
    return Path(__file__).parent / "fixtures"


def _load(fixtures_dir, name):
    with open(fixtures_dir / name) as f:
        return json.load(f)


@pytest.fixture
def github_issues_fixture(fixtures_dir):
    """Raw REST payloads: open issues and repository labels"""
    return _load(fixtures_dir, "github_issues.json")


@pytest.fixture
def github_project_fixture(fixtures_dir):
    """Raw GraphQL payloads: project id lookup and project items"""
    return _load(fixtures_dir, "github_project.json")


@pytest.fixture
def trello_board_fixture(fixtures_dir):
    """Raw Trello payloads for one board"""
    return _load(fixtures_dir, "trello_board.json")


class FakeTrelloClient:
    """In-memory stand-in for TrelloClient that records every write

    ``board`` must point at the snapshot being reconciled so that
    update_card can return the merged card like Trello does.
    """

    def __init__(self, board=None):
        self.board = board
        self.calls = []
        self._ids = itertools.count(1)

    def _next_id(self, prefix):
        return f"{prefix}-new{next(self._ids)}"

    @property
    def writes(self):
        return [call[0] for call in self.calls]

    def create_list(self, name):
        self.calls.append(("create_list", name))
        return TrelloList(id=self._next_id("list"), name=name)

    def create_label(self, name, color):
        self.calls.append(("create_label", name, color))
        return TrelloLabel(id=self._next_id("label"), name=name, color=color)

    def rename_label(self, label_id, name):
        self.calls.append(("rename_label", label_id, name))
        return TrelloLabel(id=label_id, name=name, color="green")

    def create_card(self, fields):
        self.calls.append(("create_card", fields))
        return TrelloCard(
            id=self._next_id("card"),
            name=fields.name,
            desc=fields.desc,
            due=fields.due,
            id_list=fields.id_list,
            id_labels=list(fields.id_labels),
            id_members=list(fields.id_members),
        )

    def update_card(self, card_id, changes):
        self.calls.append(("update_card", card_id, changes))
        current = next(card for card in self.board.cards if card.id == card_id)
        return dataclasses.replace(current, **changes)

    def create_checklist(self, card_id, name="Checklist"):
        self.calls.append(("create_checklist", card_id, name))
        return Checklist(id=self._next_id("checklist"), id_card=card_id, name=name)

    def delete_checklist(self, checklist_id):
        self.calls.append(("delete_checklist", checklist_id))

    def create_check_item(self, checklist_id, name, checked):
        self.calls.append(("create_check_item", checklist_id, name, checked))
        return CheckItem(
            id=self._next_id("item"), name=name, state="complete" if checked else "incomplete"
        )

    def set_check_item_state(self, card_id, item_id, completed):
        self.calls.append(("set_check_item_state", card_id, item_id, completed))

    def delete_check_item(self, checklist_id, item_id):
        self.calls.append(("delete_check_item", checklist_id, item_id))


# ===== Builders =====


def make_user(login, name=None):
    return GitHubUser(login=login, html_url=f"https://github.com/{login}", name=name)


def make_issue(number, title="Do the thing", body="", **kwargs):
    kwargs.setdefault("html_url", f"https://github.com/acme/repo/issues/{number}")
    kwargs.setdefault("user", make_user("octocat"))
    return Issue(number=number, title=title, body=body, **kwargs)


def make_attributes(status="Todo", **extra):
    fields = {"Status": SingleSelectField(status)}
    fields.update(extra)
    return ProjectAttributes(fields=fields)


def make_board(**kwargs):
    kwargs.setdefault("lists", [TrelloList(id="list-todo", name="Todo")])
    kwargs.setdefault("members", [TrelloMember(id="member-octo", username="octocat")])
    return TrelloBoard(id="board1", name="Test Board", **kwargs)

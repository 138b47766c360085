"""Data models for the GitHub and Trello snapshots.

GitHub records are read-only inputs. Trello records make up the board
snapshot, which the reconciler mutates in place as its writes succeed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

# ===== GitHub =====


@dataclass(frozen=True)
class GitHubUser:
    login: str
    html_url: str = ""
    name: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> GitHubUser:
        return cls(
            login=data["login"],
            html_url=data.get("html_url") or "",
            name=data.get("name") or None,
        )


@dataclass(frozen=True)
class IssueMilestone:
    """Milestone as embedded in a REST issue record."""

    title: str
    due_on: str | None = None
    html_url: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> IssueMilestone:
        return cls(
            title=data.get("title") or "",
            due_on=data.get("due_on") or None,
            html_url=data.get("html_url") or "",
        )


@dataclass
class Issue:
    """A GitHub issue (or pull request, which the sync always skips)."""

    number: int
    title: str
    body: str = ""
    html_url: str = ""
    user: GitHubUser | None = None
    assignees: list[GitHubUser] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    milestone: IssueMilestone | None = None
    is_pull_request: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Issue:
        # The REST API returns labels as objects, older payloads as plain strings
        labels = [
            label if isinstance(label, str) else label.get("name", "")
            for label in data.get("labels") or []
        ]
        return cls(
            number=data["number"],
            title=data.get("title") or "",
            body=data.get("body") or "",
            html_url=data.get("html_url") or "",
            user=GitHubUser.from_api(data["user"]) if data.get("user") else None,
            assignees=[GitHubUser.from_api(a) for a in data.get("assignees") or []],
            labels=[label for label in labels if label],
            milestone=IssueMilestone.from_api(data["milestone"]) if data.get("milestone") else None,
            is_pull_request="pull_request" in data,
        )


# ===== GitHub project fields =====
#
# Project custom fields are heterogeneous. Each value is parsed into exactly
# one of these variants; UnknownField keeps anything GitHub adds later.


@dataclass(frozen=True)
class TextField:
    value: str


@dataclass(frozen=True)
class NumberField:
    value: float

    def render(self) -> str:
        if float(self.value).is_integer():
            return str(int(self.value))
        return str(self.value)


@dataclass(frozen=True)
class SingleSelectField:
    value: str


@dataclass(frozen=True)
class MilestoneField:
    title: str
    url: str = ""
    due_on: str | None = None


@dataclass(frozen=True)
class LinkedPullRequest:
    number: int
    url: str
    title: str


@dataclass(frozen=True)
class LinkedPullRequestsField:
    pull_requests: tuple[LinkedPullRequest, ...] = ()


@dataclass(frozen=True)
class UnknownField:
    raw: dict[str, Any] = field(default_factory=dict)


ProjectFieldValue = Union[
    TextField,
    NumberField,
    SingleSelectField,
    MilestoneField,
    LinkedPullRequestsField,
    UnknownField,
]

STATUS_FIELD = "Status"
TITLE_FIELD = "Title"
MILESTONE_FIELD = "Milestone"
LINKED_PRS_FIELD = "Linked pull requests"
RESERVED_FIELDS = frozenset({STATUS_FIELD, TITLE_FIELD, MILESTONE_FIELD, LINKED_PRS_FIELD})


@dataclass
class ProjectAttributes:
    """Custom field values of one issue on the GitHub project board."""

    fields: dict[str, ProjectFieldValue] = field(default_factory=dict)

    @property
    def status(self) -> str | None:
        value = self.fields.get(STATUS_FIELD)
        if isinstance(value, (SingleSelectField, TextField)):
            return value.value or None
        return None

    @property
    def milestone(self) -> MilestoneField | None:
        value = self.fields.get(MILESTONE_FIELD)
        return value if isinstance(value, MilestoneField) else None

    @property
    def linked_pull_requests(self) -> tuple[LinkedPullRequest, ...]:
        value = self.fields.get(LINKED_PRS_FIELD)
        if isinstance(value, LinkedPullRequestsField):
            return value.pull_requests
        return ()

    def custom_fields(self) -> list[tuple[str, str]]:
        """User-defined scalar fields as (name, rendered value), in field order."""
        rendered = []
        for name, value in self.fields.items():
            if name in RESERVED_FIELDS:
                continue
            if isinstance(value, (TextField, SingleSelectField)):
                rendered.append((name, value.value))
            elif isinstance(value, NumberField):
                rendered.append((name, value.render()))
        return rendered


# ===== Trello =====


@dataclass
class TrelloList:
    id: str
    name: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> TrelloList:
        return cls(id=data["id"], name=data.get("name") or "")


@dataclass
class TrelloLabel:
    id: str
    name: str
    color: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> TrelloLabel:
        return cls(id=data["id"], name=data.get("name") or "", color=data.get("color"))


@dataclass
class TrelloMember:
    id: str
    username: str
    full_name: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> TrelloMember:
        return cls(
            id=data["id"],
            username=data.get("username") or "",
            full_name=data.get("fullName") or "",
        )


@dataclass
class TrelloCard:
    id: str
    name: str
    desc: str = ""
    due: str | None = None
    id_list: str = ""
    id_labels: list[str] = field(default_factory=list)
    id_members: list[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> TrelloCard:
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            desc=data.get("desc") or "",
            due=data.get("due") or None,
            id_list=data.get("idList") or "",
            id_labels=list(data.get("idLabels") or []),
            id_members=list(data.get("idMembers") or []),
        )


@dataclass
class CheckItem:
    id: str
    name: str
    state: str = "incomplete"

    @property
    def complete(self) -> bool:
        return self.state == "complete"

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CheckItem:
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            state=data.get("state") or "incomplete",
        )


@dataclass
class Checklist:
    id: str
    id_card: str
    name: str = "Checklist"
    pos: float = 0
    check_items: list[CheckItem] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Checklist:
        return cls(
            id=data["id"],
            id_card=data.get("idCard") or "",
            name=data.get("name") or "",
            pos=data.get("pos") or 0,
            check_items=[CheckItem.from_api(item) for item in data.get("checkItems") or []],
        )


@dataclass
class TrelloBoard:
    """Mutable snapshot of one Trello board.

    Fetched once per run. The reconciler appends, replaces and removes
    entries here after each successful write so later lookups see fresh ids.
    """

    id: str
    name: str
    url: str = ""
    lists: list[TrelloList] = field(default_factory=list)
    labels: list[TrelloLabel] = field(default_factory=list)
    members: list[TrelloMember] = field(default_factory=list)
    cards: list[TrelloCard] = field(default_factory=list)
    checklists: list[Checklist] = field(default_factory=list)

    def find_list(self, name: str) -> TrelloList | None:
        return next((lst for lst in self.lists if lst.name == name), None)

    def find_label(self, name: str) -> TrelloLabel | None:
        return next((label for label in self.labels if label.name == name), None)

    def checklists_for(self, card_id: str) -> list[Checklist]:
        return [checklist for checklist in self.checklists if checklist.id_card == card_id]


# ===== Derived =====


@dataclass(frozen=True)
class ChecklistEntry:
    """One Markdown task-list line: ``- [x] label``."""

    label: str
    completed: bool


@dataclass
class CardFields:
    """Desired Trello representation of a GitHub issue."""

    name: str
    desc: str
    due: str | None
    id_list: str
    id_labels: list[str] = field(default_factory=list)
    id_members: list[str] = field(default_factory=list)

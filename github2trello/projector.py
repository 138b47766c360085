"""Derive the desired Trello card for a GitHub issue and diff it against Trello."""

from __future__ import annotations

from typing import Any

from github2trello.markdown import clean_description_body
from github2trello.matching import find_matching_trello_user, title_prefix
from github2trello.models import (
    CardFields,
    GitHubUser,
    Issue,
    LinkedPullRequest,
    MilestoneField,
    ProjectAttributes,
    TrelloBoard,
    TrelloCard,
)

CARD_FIELDS = ("name", "desc", "due", "id_list", "id_labels", "id_members")

# Membership fields: Trello does not promise to keep our ordering
SET_FIELDS = frozenset({"id_labels", "id_members"})


def card_title(issue: Issue) -> str:
    return f"{title_prefix(issue.number)} {issue.title}"


def normalize_due(due_on: str | None) -> str | None:
    """Match Trello's stored due format: ``2024-05-01T07:00:00Z`` -> ``...00.000Z``"""
    if not due_on:
        return None
    if due_on.endswith("Z") and "." not in due_on:
        return due_on[:-1] + ".000Z"
    return due_on


def _user_link(user: GitHubUser) -> str:
    return f"[{user.name or user.login}]({user.html_url})"


def _creator(user: GitHubUser | None) -> str:
    if user is None:
        return "Unknown"
    if user.name:
        return _user_link(user)
    return user.login


def _pull_request(pr: LinkedPullRequest) -> str:
    return f"[#{pr.number} {pr.title}]({pr.url})"


def _milestone(milestone: MilestoneField) -> str:
    return f"[{milestone.title}]({milestone.url})"


def build_description(issue: Issue, attributes: ProjectAttributes, owner: str, repo: str) -> str:
    """Render the card description.

    Layout, top to bottom: link back to GitHub, creator, assignees, first
    linked PR, milestone, user-defined project fields, a rule, then the
    cleaned issue body.
    """
    linked = attributes.linked_pull_requests
    milestone = attributes.milestone

    lines = [
        f"## [View Original on GitHub]({issue.html_url})",
        f"**Created by:** {_creator(issue.user)}",
        f"**Assigned to:** {' and '.join(_user_link(a) for a in issue.assignees) or 'None'}",
        f"**Associated PR:** {_pull_request(linked[0]) if linked else 'None'}",
        f"**Milestone:** {_milestone(milestone) if milestone else 'None'}",
    ]
    lines.extend(f"**{key}:** `{value}`" for key, value in attributes.custom_fields())
    lines.extend(["", "---", "", clean_description_body(issue.body, owner, repo)])
    return "\n".join(lines)


def project_card(
    issue: Issue,
    attributes: ProjectAttributes,
    board: TrelloBoard,
    *,
    owner: str,
    repo: str,
    user_map: dict[str, str] | None = None,
) -> CardFields:
    """Compute the card fields Trello should hold for this issue.

    The list and labels must already exist on ``board``; the reconciler
    creates them in earlier passes.

    Raises:
        LookupError: If the Status list or a label is missing from the board
        ConfigurationError: If an assignee cannot be matched to a board member
    """
    status = attributes.status
    trello_list = board.find_list(status) if status else None
    if trello_list is None:
        raise LookupError(f"No Trello list named '{status}' for GH #{issue.number}")

    id_labels = []
    for label_name in issue.labels:
        label = board.find_label(label_name)
        if label is None:
            raise LookupError(f"No Trello label named '{label_name}' for GH #{issue.number}")
        id_labels.append(label.id)

    id_members = [
        find_matching_trello_user(board.members, assignee, user_map) for assignee in issue.assignees
    ]

    return CardFields(
        name=card_title(issue),
        desc=build_description(issue, attributes, owner, repo),
        due=normalize_due(issue.milestone.due_on if issue.milestone else None),
        id_list=trello_list.id,
        id_labels=id_labels,
        id_members=id_members,
    )


def _comparable(key: str, value: Any) -> Any:
    # Empty string, None and [] all mean "unset"
    if not value:
        return None
    if key in SET_FIELDS:
        return sorted(value)
    return value


def diff_card(desired: CardFields, existing: TrelloCard) -> dict[str, Any]:
    """Return only the fields whose desired value differs from the card.

    Values are returned as desired (an unset field comes back as ``None``
    or ``[]`` so the client knows to clear it).
    """
    changes = {}
    for key in CARD_FIELDS:
        wanted = getattr(desired, key)
        if _comparable(key, wanted) != _comparable(key, getattr(existing, key)):
            changes[key] = wanted
    return changes

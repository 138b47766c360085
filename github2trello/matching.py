"""Match GitHub identities to Trello entities.

Users are matched to board members (with operator overrides) and issues are
matched to cards by the ``#<number>:`` title prefix, which is the only join
key between the two systems.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from github2trello.exceptions import ConfigurationError
from github2trello.models import GitHubUser, TrelloCard, TrelloMember

logger = logging.getLogger(__name__)


def title_prefix(issue_number: int) -> str:
    """Stable card-name prefix for an issue, e.g. ``#42:``"""
    return f"#{issue_number}:"


def find_card_for_issue(cards: Iterable[TrelloCard], issue_number: int) -> TrelloCard | None:
    """Return the first card whose name starts with the issue's title prefix.

    Later duplicates are never considered, so they are left untouched.
    """
    prefix = title_prefix(issue_number)
    return next((card for card in cards if card.name.startswith(prefix)), None)


def parse_user_map(text: str | None) -> dict[str, str]:
    """Parse ``githubLogin=trelloUsername`` pairs separated by commas.

    Args:
        text: Raw USERNAME_MAP value, e.g. ``"alice=alice.t, bob=bobby"``

    Returns:
        Mapping of GitHub login to Trello username (empty for blank input)

    Raises:
        ConfigurationError: If a non-blank entry has no ``=``
    """
    user_map: dict[str, str] = {}
    if not text:
        return user_map

    for entry in re.split(r", *", text):
        entry = entry.strip()
        if not entry:
            continue
        if "=" not in entry:
            raise ConfigurationError(
                f"Invalid USERNAME_MAP entry '{entry}'. Expected githubLogin=trelloUsername.",
                key="USERNAME_MAP",
            )
        login, username = entry.split("=", 1)
        user_map[login.strip()] = username.strip()
    return user_map


def find_matching_trello_user(
    members: Iterable[TrelloMember],
    gh_user: GitHubUser,
    user_map: dict[str, str] | None = None,
) -> str:
    """Resolve a GitHub user to a Trello member id.

    Resolution order:
    1. USERNAME_MAP override: the member whose username is mapped from the login
    2. A member whose username equals the login, or whose full name equals the
       GitHub display name

    Raises:
        ConfigurationError: If no member matches. The operator has to add a mapping.
    """
    members = list(members)

    override = (user_map or {}).get(gh_user.login)
    if override:
        for member in members:
            if member.username == override:
                return member.id
        logger.warning(
            f"⚠️  USERNAME_MAP maps '{gh_user.login}' to '{override}', "
            "but no such member is on the board"
        )

    for member in members:
        if member.username == gh_user.login:
            return member.id
        if gh_user.name and member.full_name == gh_user.name:
            return member.id

    raise ConfigurationError(
        f"Unclear what GitHub user '{gh_user.login}' is called on Trello. "
        f"Add them to the USERNAME_MAP environment variable (e.g. {gh_user.login}=trelloUsername).",
        key=gh_user.login,
    )

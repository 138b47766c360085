"""Load and validate settings from the environment.

All settings are read once at startup. A missing required value stops the
process before any network call is made.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from github2trello.exceptions import ConfigurationError
from github2trello.matching import parse_user_map
from github2trello.trello_client import TrelloClient

REQUIRED_KEYS = (
    "GITHUB_TOKEN",
    "GITHUB_REPO_OWNER",
    "GITHUB_REPO_NAME",
    "GITHUB_PROJECT_NUMBER",
    "TRELLO_API_KEY",
    "TRELLO_TOKEN",
)

DEFAULT_SNAPSHOT_PATH = "debug.json"


@dataclass(frozen=True)
class Settings:
    github_token: str
    github_repo_owner: str
    github_repo_name: str
    github_project_number: int
    trello_api_key: str
    trello_token: str
    trello_board_id: str
    user_map: dict[str, str] = field(default_factory=dict)
    snapshot_path: str = DEFAULT_SNAPSHOT_PATH


def load_env_file(path: str | Path, environ: dict[str, str] | None = None) -> int:
    """Copy ``KEY=VALUE`` lines from a .env file into the environment.

    Variables that are already set win over the file. Blank lines and
    ``#`` comments are skipped; surrounding quotes on values are removed.

    Returns:
        Number of variables that were set
    """
    target = os.environ if environ is None else environ
    env_path = Path(path)
    if not env_path.exists():
        return 0

    loaded = 0
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip()
            if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
                value = value[1:-1]
            if key not in target:
                target[key] = value
                loaded += 1
    return loaded


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from environment variables.

    Raises:
        ConfigurationError: If a required variable is missing, the project number
            is not an integer, or USERNAME_MAP is malformed
    """
    env = os.environ if environ is None else environ

    for key in REQUIRED_KEYS:
        if not env.get(key):
            raise ConfigurationError(f"{key} is not configured.", key=key)

    board_id = env.get("TRELLO_BOARD_ID")
    board_url = env.get("TRELLO_BOARD_URL")
    if not board_id:
        if not board_url:
            raise ConfigurationError("TRELLO_BOARD_ID is not configured.", key="TRELLO_BOARD_ID")
        try:
            board_id = TrelloClient.parse_board_url(board_url)
        except ValueError as e:
            raise ConfigurationError(str(e), key="TRELLO_BOARD_URL") from e

    raw_number = env["GITHUB_PROJECT_NUMBER"]
    try:
        project_number = int(raw_number)
    except ValueError as e:
        raise ConfigurationError(
            f"GITHUB_PROJECT_NUMBER must be an integer, got '{raw_number}'.",
            key="GITHUB_PROJECT_NUMBER",
        ) from e

    return Settings(
        github_token=env["GITHUB_TOKEN"],
        github_repo_owner=env["GITHUB_REPO_OWNER"],
        github_repo_name=env["GITHUB_REPO_NAME"],
        github_project_number=project_number,
        trello_api_key=env["TRELLO_API_KEY"],
        trello_token=env["TRELLO_TOKEN"],
        trello_board_id=board_id,
        user_map=parse_user_map(env.get("USERNAME_MAP")),
        snapshot_path=env.get("DEBUG_SNAPSHOT_PATH") or DEFAULT_SNAPSHOT_PATH,
    )

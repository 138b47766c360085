"""One-way sync of a GitHub repository's project board onto a Trello board."""

from __future__ import annotations

from github2trello.cli import main, run_sync
from github2trello.config import Settings, load_env_file, load_settings
from github2trello.exceptions import (
    ConfigurationError,
    Github2TrelloError,
    GitHubAPIError,
    RemoteAPIError,
    TrelloAPIError,
    TrelloAuthenticationError,
    TrelloNotFoundError,
    TrelloRateLimitError,
    TrelloServerError,
)
from github2trello.github_client import GitHubClient
from github2trello.logging_config import setup_logging
from github2trello.markdown import (
    clean_description_body,
    decode_label_links,
    extract_checklist_items,
    normalize_line_endings,
    remove_checklist_blocks,
)
from github2trello.matching import (
    find_card_for_issue,
    find_matching_trello_user,
    parse_user_map,
    title_prefix,
)
from github2trello.projector import diff_card, project_card
from github2trello.reconciler import GitHubToTrelloReconciler, Phase, SyncReport
from github2trello.throttle import RequestThrottle
from github2trello.trello_client import TrelloClient

__version__ = "0.1.0"

__all__ = [
    # Core classes
    "GitHubToTrelloReconciler",
    "GitHubClient",
    "TrelloClient",
    "RequestThrottle",
    "Phase",
    "SyncReport",
    "Settings",
    # Functions
    "clean_description_body",
    "decode_label_links",
    "diff_card",
    "extract_checklist_items",
    "find_card_for_issue",
    "find_matching_trello_user",
    "load_env_file",
    "load_settings",
    "normalize_line_endings",
    "parse_user_map",
    "project_card",
    "remove_checklist_blocks",
    "run_sync",
    "setup_logging",
    "title_prefix",
    # Exceptions
    "Github2TrelloError",
    "ConfigurationError",
    "RemoteAPIError",
    "GitHubAPIError",
    "TrelloAPIError",
    "TrelloAuthenticationError",
    "TrelloNotFoundError",
    "TrelloRateLimitError",
    "TrelloServerError",
    # CLI
    "main",
]

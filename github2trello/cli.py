"""CLI entry point for the GitHub → Trello sync."""

from __future__ import annotations

import logging
import os
import sys

from github2trello.config import Settings, load_env_file, load_settings
from github2trello.exceptions import ConfigurationError, Github2TrelloError
from github2trello.github_client import GitHubClient
from github2trello.logging_config import setup_logging
from github2trello.reconciler import GitHubToTrelloReconciler, SyncReport
from github2trello.snapshot import write_debug_snapshot
from github2trello.trello_client import TrelloClient

logger = logging.getLogger("github2trello.cli")

# Module docstring for --help
__doc__ = """
github2trello - Mirror a GitHub repository's project board onto a Trello board

Usage:
    export GITHUB_TOKEN="ghp_..."
    export GITHUB_REPO_OWNER="acme"
    export GITHUB_REPO_NAME="widgets"
    export GITHUB_PROJECT_NUMBER="3"
    export TRELLO_API_KEY="your-key"
    export TRELLO_TOKEN="your-token"
    export TRELLO_BOARD_ID="your-board-id"   # or TRELLO_BOARD_URL

    # Optional: GitHub logins whose Trello username differs
    export USERNAME_MAP="alice=alice.t, bob=bobby"

    github2trello

Variables may also be placed in a .env file (path: GITHUB2TRELLO_ENV_FILE).
LOG_LEVEL and LOG_FILE control logging; DEBUG_SNAPSHOT_PATH sets where the
fetched data is dumped (default: debug.json).
"""


def run_sync(settings: Settings) -> SyncReport:
    """Fetch both sides, dump them for debugging, then reconcile Trello."""
    github = GitHubClient(
        settings.github_token, settings.github_repo_owner, settings.github_repo_name
    )
    trello = TrelloClient(
        settings.trello_api_key, settings.trello_token, board_id=settings.trello_board_id
    )

    logger.info("🔍 Validating Trello credentials and board access...")
    trello.validate_credentials()

    logger.info("🌐 Fetching GitHub issues…")
    issues = github.list_issues()
    logger.info("🌐 Fetching GitHub labels…")
    labels = github.list_labels()
    logger.info("🌐 Fetching GitHub project…")
    project_attributes = github.get_project_attributes(settings.github_project_number)
    logger.info("🌐 Fetching Trello board…")
    board = trello.get_board_snapshot()

    logger.info(f"📋 Board: {board.name}")
    logger.info(f"📝 Lists: {len(board.lists)}")
    logger.info(f"🎴 Cards: {len(board.cards)}")

    write_debug_snapshot(
        settings.snapshot_path,
        ghIssues=issues,
        ghProjects=project_attributes,
        ghLabels=labels,
        trelloBoard=board,
    )

    reconciler = GitHubToTrelloReconciler(
        trello,
        settings.github_repo_owner,
        settings.github_repo_name,
        user_map=settings.user_map,
    )
    return reconciler.reconcile(issues, project_attributes, labels, board)


def main() -> None:
    if "--help" in sys.argv or "-h" in sys.argv:
        print(__doc__)
        sys.exit(0)

    load_env_file(os.getenv("GITHUB2TRELLO_ENV_FILE", ".env"))
    setup_logging(os.getenv("LOG_LEVEL", "INFO"), os.getenv("LOG_FILE"))

    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error(f"❌ Error: {e}")
        logger.error("\nRun 'github2trello --help' for the required environment variables.")
        sys.exit(1)

    try:
        run_sync(settings)
    except Github2TrelloError as e:
        logger.error(f"❌ Sync failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"❌ Sync failed unexpectedly: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

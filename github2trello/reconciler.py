"""One-way GitHub → Trello reconciliation.

The sync runs as a fixed pipeline of phases over one fetched snapshot pair:

    LISTS → LABELS → CARDS → CHECKLISTS

Each phase reads the board snapshot left by the previous one, writes the
difference to Trello one request at a time, and folds every successful
write back into the snapshot before moving on. Any failure aborts the run.
Re-running is safe because every phase re-derives its target from GitHub.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from github2trello.markdown import extract_checklist_items
from github2trello.matching import find_card_for_issue
from github2trello.models import (
    ChecklistEntry,
    Checklist,
    Issue,
    ProjectAttributes,
    TrelloBoard,
    TrelloCard,
)
from github2trello.projector import diff_card, project_card
from github2trello.trello_client import TrelloClient

logger = logging.getLogger(__name__)


class Phase(Enum):
    LISTS = "lists"
    LABELS = "labels"
    CARDS = "cards"
    CHECKLISTS = "checklists"


PHASE_ORDER = (Phase.LISTS, Phase.LABELS, Phase.CARDS, Phase.CHECKLISTS)


@dataclass
class PhaseStats:
    created: int = 0
    updated: int = 0
    deleted: int = 0

    @property
    def writes(self) -> int:
        return self.created + self.updated + self.deleted


@dataclass
class SyncReport:
    """Write counts per phase. A run with nothing to change has zero writes."""

    phases: dict[Phase, PhaseStats] = field(
        default_factory=lambda: {phase: PhaseStats() for phase in PHASE_ORDER}
    )
    skipped: list[int] = field(default_factory=list)

    @property
    def total_writes(self) -> int:
        return sum(stats.writes for stats in self.phases.values())


@dataclass
class _RunState:
    issues: list[tuple[Issue, ProjectAttributes]]
    project_attributes: dict[int, ProjectAttributes]
    github_labels: list[str]
    report: SyncReport
    # Issue number -> card settled in the CARDS phase
    cards: dict[int, TrelloCard] = field(default_factory=dict)


def _unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


class GitHubToTrelloReconciler:
    """Bring a Trello board in line with a GitHub repository and project"""

    LABEL_COLOR = "pink"
    CHECKLIST_NAME = "Checklist"

    def __init__(
        self,
        trello: TrelloClient,
        owner: str,
        repo: str,
        user_map: dict[str, str] | None = None,
    ):
        self.trello = trello
        self.owner = owner
        self.repo = repo
        self.user_map = user_map or {}

        self._phases: dict[Phase, Callable[[TrelloBoard, _RunState], TrelloBoard]] = {
            Phase.LISTS: self.sync_lists,
            Phase.LABELS: self.sync_labels,
            Phase.CARDS: self.sync_cards,
            Phase.CHECKLISTS: self.sync_checklists,
        }

    def tracked_issues(
        self,
        issues: Iterable[Issue],
        project_attributes: dict[int, ProjectAttributes],
        report: SyncReport | None = None,
    ) -> list[tuple[Issue, ProjectAttributes]]:
        """Issues the sync manages: not pull requests, on the project, with a Status."""
        tracked = []
        for issue in issues:
            if issue.is_pull_request:
                logger.debug(f"Skipping #{issue.number}: pull request")
                continue
            attributes = project_attributes.get(issue.number)
            if attributes is None:
                logger.debug(f"Skipping #{issue.number}: not on the project board")
                if report is not None:
                    report.skipped.append(issue.number)
                continue
            if not attributes.status:
                logger.warning(f"⚠️  Skipping GH #{issue.number}: no project Status")
                if report is not None:
                    report.skipped.append(issue.number)
                continue
            tracked.append((issue, attributes))
        return tracked

    def reconcile(
        self,
        issues: list[Issue],
        project_attributes: dict[int, ProjectAttributes],
        github_labels: list[str],
        board: TrelloBoard,
    ) -> SyncReport:
        """Run every phase in order against ``board`` (mutated in place)."""
        logger.info(f"🔄 Syncing to “{board.name}”")

        report = SyncReport()
        state = _RunState(
            issues=[],
            project_attributes=project_attributes,
            github_labels=github_labels,
            report=report,
        )
        state.issues = self.tracked_issues(issues, project_attributes, report)
        logger.info(f"📝 Tracked issues: {len(state.issues)}")

        for number, phase in enumerate(PHASE_ORDER, 1):
            logger.info(f"🔄 Pass {number}: {phase.value}")
            board = self._phases[phase](board, state)
            stats = report.phases[phase]
            logger.info(
                f"✅ {phase.value}: {stats.created} created, "
                f"{stats.updated} updated, {stats.deleted} deleted"
            )

        logger.info(f"✅ Sync complete ({report.total_writes} writes)")
        return report

    # ===== Pass 1: lists =====

    def sync_lists(self, board: TrelloBoard, state: _RunState) -> TrelloBoard:
        """Create a list for every Status value that has none."""
        stats = state.report.phases[Phase.LISTS]
        statuses = _unique(
            attributes.status
            for attributes in state.project_attributes.values()
            if attributes.status
        )

        for status in statuses:
            if board.find_list(status):
                continue
            logger.info(f"Creating missing Trello list for “{status}”…")
            board.lists.append(self.trello.create_list(status))
            stats.created += 1
        return board

    # ===== Pass 2: labels =====

    def sync_labels(self, board: TrelloBoard, state: _RunState) -> TrelloBoard:
        """Give every GitHub label a same-named Trello label.

        Unnamed Trello labels are free slots: they are renamed before any new
        label is created.
        """
        stats = state.report.phases[Phase.LABELS]
        names = _unique(
            [*state.github_labels, *(name for issue, _ in state.issues for name in issue.labels)]
        )

        for name in names:
            if board.find_label(name):
                continue
            empty = board.find_label("")
            if empty is not None:
                logger.info(f"Repurposing unnamed Trello label for “{name}”…")
                renamed = self.trello.rename_label(empty.id, name)
                board.labels[board.labels.index(empty)] = renamed
                stats.updated += 1
            else:
                logger.info(f"Creating missing Trello label for “{name}”…")
                board.labels.append(self.trello.create_label(name, self.LABEL_COLOR))
                stats.created += 1
        return board

    # ===== Pass 3: cards =====

    def sync_cards(self, board: TrelloBoard, state: _RunState) -> TrelloBoard:
        """Create or update one card per tracked issue."""
        stats = state.report.phases[Phase.CARDS]

        for issue, attributes in state.issues:
            desired = project_card(
                issue,
                attributes,
                board,
                owner=self.owner,
                repo=self.repo,
                user_map=self.user_map,
            )
            existing = find_card_for_issue(board.cards, issue.number)

            if existing is None:
                logger.info(f"Creating missing Trello card for GH #{issue.number}…")
                card = self.trello.create_card(desired)
                board.cards.append(card)
                stats.created += 1
            else:
                card = existing
                changes = diff_card(desired, existing)
                if changes:
                    logger.info(f"Updating {', '.join(changes)} for GH #{issue.number}…")
                    card = self.trello.update_card(existing.id, changes)
                    board.cards[board.cards.index(existing)] = card
                    stats.updated += 1

            state.cards[issue.number] = card
        return board

    # ===== Pass 4: checklists =====

    def sync_checklists(self, board: TrelloBoard, state: _RunState) -> TrelloBoard:
        """Mirror each issue's task list onto exactly one checklist on its card."""
        for issue, _ in state.issues:
            card = state.cards[issue.number]
            entries = extract_checklist_items(issue.body)
            self._sync_card_checklist(board, issue.number, card, entries, state.report)
        return board

    def _sync_card_checklist(
        self,
        board: TrelloBoard,
        issue_number: int,
        card: TrelloCard,
        entries: list[ChecklistEntry],
        report: SyncReport,
    ) -> Checklist:
        stats = report.phases[Phase.CHECKLISTS]

        # Keep the first checklist (by position, then id); drop the rest
        checklists = sorted(board.checklists_for(card.id), key=lambda c: (c.pos, c.id))
        for extra in checklists[1:]:
            logger.info(f"Deleting extra checklist for GH #{issue_number}…")
            self.trello.delete_checklist(extra.id)
            board.checklists.remove(extra)
            stats.deleted += 1

        if checklists:
            checklist = checklists[0]
        else:
            logger.info(f"Creating checklist for GH #{issue_number}…")
            checklist = self.trello.create_checklist(card.id, self.CHECKLIST_NAME)
            board.checklists.append(checklist)
            stats.created += 1

        # Label text is the identity; a repeated label only counts once
        wanted: dict[str, bool] = {}
        for entry in entries:
            wanted.setdefault(entry.label, entry.completed)

        matched: set[str] = set()
        for label, completed in wanted.items():
            item = next(
                (
                    candidate
                    for candidate in checklist.check_items
                    if candidate.name == label and candidate.id not in matched
                ),
                None,
            )
            if item is None:
                logger.info(f"Creating checklist item for GH #{issue_number}…")
                item = self.trello.create_check_item(checklist.id, label, completed)
                checklist.check_items.append(item)
                stats.created += 1
            elif item.complete != completed:
                logger.info(f"Updating checklist item status for GH #{issue_number}…")
                self.trello.set_check_item_state(card.id, item.id, completed)
                item.state = "complete" if completed else "incomplete"
                stats.updated += 1
            matched.add(item.id)

        for item in list(checklist.check_items):
            if item.id not in matched:
                logger.info(f"Deleting checklist item for GH #{issue_number}…")
                self.trello.delete_check_item(checklist.id, item.id)
                checklist.check_items.remove(item)
                stats.deleted += 1

        return checklist

"""Markdown helpers for GitHub issue bodies.

Extracts GitHub task-list checkboxes into checklist entries and cleans the
issue body before it is embedded in a Trello card description.
"""

from __future__ import annotations

import re
from urllib.parse import unquote

from github2trello.models import ChecklistEntry

# `- [ ] text` or `- [x] text`, optionally indented. Only a lowercase x counts
# as done; `[X]` is still a checklist line, just an open one.
CHECKLIST_LINE = re.compile(r"^[ \t]*- \[([ xX])\] +(\S.*?)[ \t\r]*$")

CHECKLIST_PLACEHOLDER = "_Checklist items are tracked in the card's checklist._"


def extract_checklist_items(markdown: str) -> list[ChecklistEntry]:
    """Parse task-list lines into checklist entries, in order of appearance.

    Matching is purely line-based: any line shaped like a checkbox counts,
    whatever Markdown structure surrounds it.

    Example:
        >>> extract_checklist_items("- [x] Write docs\\n- [ ] Review\\n")
        [ChecklistEntry(label='Write docs', completed=True),
         ChecklistEntry(label='Review', completed=False)]
    """
    entries = []
    for line in markdown.split("\n"):
        match = CHECKLIST_LINE.match(line)
        if match:
            entries.append(ChecklistEntry(label=match.group(2), completed=match.group(1) == "x"))
    return entries


def remove_checklist_blocks(markdown: str) -> str:
    """Collapse each run of consecutive checklist lines into one placeholder line."""
    output: list[str] = []
    in_block = False
    for line in markdown.split("\n"):
        if CHECKLIST_LINE.match(line):
            if not in_block:
                output.append(CHECKLIST_PLACEHOLDER)
                in_block = True
            continue
        in_block = False
        output.append(line)
    return "\n".join(output)


def decode_label_links(markdown: str, owner: str, repo: str) -> str:
    """Rewrite GitHub label URLs for this repo into inline code with the label name.

    ``https://github.com/acme/repo/labels/needs%20triage`` becomes `` `needs triage` ``.
    """
    pattern = re.compile(
        rf"https?://github\.com/{re.escape(owner)}/{re.escape(repo)}/labels/([^\s)\]>\"'`]+)",
        re.IGNORECASE,
    )
    return pattern.sub(lambda match: f"`{unquote(match.group(1))}`", markdown)


def normalize_line_endings(markdown: str) -> str:
    """Drop carriage returns and end the text with exactly one newline."""
    return markdown.replace("\r", "").rstrip("\n") + "\n"


def clean_description_body(markdown: str, owner: str, repo: str) -> str:
    """Prepare an issue body for a card description.

    Order matters: line endings are normalized before checklist lines are
    recognised, and label links are decoded last.
    """
    text = normalize_line_endings(markdown)
    text = remove_checklist_blocks(text)
    return decode_label_links(text, owner, repo)

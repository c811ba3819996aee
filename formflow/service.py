"""
FormFlow Service Layer

Shared orchestration at the persistence boundary: open a persisted template
for editing/viewing, save an edited one back, and decide whether an auto-save
is needed at all. Called by both the command-line tools and the FastAPI
endpoints.
"""

import copy
from typing import Callable, Iterable, Optional

from formflow.codec import dump_template, load_template
from formflow.grouping import group_template, split_template
from formflow.logger import FormLogger
from formflow.models import LinkedSchedule, Template


def open_template(data: dict, logger: Optional[FormLogger] = None) -> Template:
    """Load a persisted template and return its grouped shape."""
    return group_template(load_template(data, logger), logger)


def flatten_template(template: Template, backend_types: bool = False) -> dict:
    """Split a grouped template and dump the persisted (flat) snapshot."""
    return dump_template(split_template(template), backend_types=backend_types)


def save_template(
    template: Template,
    persist: Callable[[dict], dict],
    logger: Optional[FormLogger] = None,
    *,
    backend_types: bool = False,
) -> Template:
    """
    Save a grouped template through the persistence collaborator.

    Args:
        template: The grouped template being edited.
        persist: Accepts the flat snapshot and returns the canonical saved
                 snapshot (with backend-assigned ids).
        logger: Optional logger for the save and for decoding problems.
        backend_types: Write attendance questions as BOOLEAN + syncType.

    Returns:
        The grouped shape of the canonical snapshot.

    Raises:
        ValueError: If the template has no questions at all.
    """
    if not template.all_questions():
        raise ValueError("A template needs at least one question")

    snapshot = flatten_template(template, backend_types=backend_types)
    question_count = sum(len(s["questions"]) for s in snapshot["sections"])
    if logger is not None:
        logger.log(
            f"Saving template {template.id} '{template.title}':"
            f" {len(snapshot['sections'])} section(s), {question_count} flat question(s)"
        )

    saved = persist(snapshot)
    result = open_template(saved, logger)

    if logger is not None:
        logger.log(f"  Saved as template {result.id}")
    return result


def schedules_to_links(candidates: Iterable[dict]) -> list[LinkedSchedule]:
    """Convert schedule-lookup results ({scheduleId, title, startDate}) to LinkedSchedules."""
    return [
        LinkedSchedule(
            id=int(c["scheduleId"]),
            title=c.get("title") or "",
            start_date=c.get("startDate") or "",
        )
        for c in candidates
    ]


class SnapshotGuard:
    """
    Deep-equality check in front of an auto-save.

    Editing produces a new but often structurally equal template on every
    keystroke; only snapshots that differ from the last persisted one need a
    write.
    """

    def __init__(self, last_persisted: Optional[dict] = None):
        self.last_persisted = copy.deepcopy(last_persisted)

    def should_persist(self, snapshot: dict) -> bool:
        return snapshot != self.last_persisted

    def mark_persisted(self, snapshot: dict) -> None:
        self.last_persisted = copy.deepcopy(snapshot)

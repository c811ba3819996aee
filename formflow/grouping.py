"""
Schedule grouping transforms.

Forward (group): consecutive schedule-linked, group-level questions of the
same kind collapse into one question whose linked_schedules lists every
schedule. Member-specific schedule questions stay standalone with a single
linked schedule so each member keeps one control per question.

Backward (split): every linked schedule of a grouped question becomes its own
flat question again, reusing the original question id when known.
"""

import json
from dataclasses import dataclass, replace
from functools import reduce
from typing import Optional

from formflow.codec import encode_options
from formflow.logger import FormLogger
from formflow.models import (
    LinkedSchedule,
    Question,
    Section,
    TempIdAllocator,
    Template,
)


SCHEDULE_TITLE_KEY = "scheduleTitle"


def encode_schedule_title(title: str) -> Optional[str]:
    """Encode a schedule title into the optionsJson side-channel."""
    if not title:
        return None
    return json.dumps({SCHEDULE_TITLE_KEY: title}, ensure_ascii=False)


def recover_schedule_title(question: Question, logger: Optional[FormLogger] = None) -> str:
    """
    Return the schedule title stored in the question's side-channel.

    Falls back to the question label when the side-channel is missing or
    cannot be decoded. Never raises.
    """
    raw = question.options_json
    if not raw:
        if logger is not None:
            logger.log(f"Question {question.id}: no schedule title stored, using label")
        return question.label

    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError) as e:
        if logger is not None:
            logger.warn(f"Question {question.id}: undecodable schedule title {raw!r} ({e})")
        return question.label

    title = decoded.get(SCHEDULE_TITLE_KEY) if isinstance(decoded, dict) else None
    if not isinstance(title, str) or not title:
        if logger is not None:
            logger.warn(f"Question {question.id}: side-channel carries no schedule title: {raw!r}")
        return question.label
    return title


def _schedule_entry(question: Question, logger: Optional[FormLogger]) -> LinkedSchedule:
    return LinkedSchedule(
        id=question.linked_schedule_id,
        title=recover_schedule_title(question, logger),
        start_date=question.linked_schedule_date or "",
        question_id=question.id,
    )


@dataclass(frozen=True)
class _GroupingState:
    """Accumulator of the grouping fold."""
    emitted: tuple[Question, ...] = ()
    group_open: bool = False


def _joins_open_group(state: _GroupingState, question: Question) -> bool:
    if not state.group_open:
        return False
    group = state.emitted[-1]
    return (
        group.input_type == question.input_type
        and group.member_specific == question.member_specific
    )


def _group_step(state: _GroupingState, question: Question, logger: Optional[FormLogger]) -> _GroupingState:
    if not (question.is_schedule and question.linked_schedule_id is not None):
        return _GroupingState(state.emitted + (question,), group_open=False)

    entry = _schedule_entry(question, logger)
    if _joins_open_group(state, question):
        group = state.emitted[-1]
        grown = replace(group, linked_schedules=group.linked_schedules + (entry,))
        return _GroupingState(state.emitted[:-1] + (grown,), group_open=True)

    # Starts a new group, or stands alone when member-specific
    head = replace(
        question,
        linked_schedules=(entry,),
        linked_schedule_id=None,
        linked_schedule_date=None,
        options_json=None,
    )
    return _GroupingState(state.emitted + (head,), group_open=not question.member_specific)


def group_questions(questions, logger: Optional[FormLogger] = None) -> tuple[Question, ...]:
    """Group a section's flat questions, ordered by order_index."""
    ordered = sorted(questions, key=lambda q: q.order_index)
    final = reduce(lambda state, q: _group_step(state, q, logger), ordered, _GroupingState())
    return final.emitted


def split_question(question: Question, allocator: TempIdAllocator) -> tuple[Question, ...]:
    """Split one grouped question back into its flat persisted form."""
    if question.is_schedule:
        if not question.linked_schedules:
            return (question,)
        return tuple(
            replace(
                question,
                id=entry.question_id or allocator.next_id(),
                linked_schedule_id=entry.id,
                linked_schedule_date=entry.start_date,
                options_json=encode_schedule_title(entry.title),
                linked_schedules=(),
            )
            for entry in question.linked_schedules
        )

    if question.is_choice and question.options:
        return (replace(question, options_json=encode_options(question.options)),)
    return (question,)


def split_questions(questions, allocator: TempIdAllocator) -> tuple[Question, ...]:
    """Split a section's grouped questions into flat questions, keeping order."""
    ordered = sorted(questions, key=lambda q: q.order_index)
    return tuple(flat for q in ordered for flat in split_question(q, allocator))


def allocator_for(template: Template) -> TempIdAllocator:
    """Return an allocator whose ids cannot collide with any id in template."""
    ids = [template.id]
    for section in template.sections:
        ids.append(section.id)
        for question in section.questions:
            ids.append(question.id)
            ids.extend(s.question_id for s in question.linked_schedules if s.question_id is not None)
    return TempIdAllocator(start=min([0] + ids) - 1)


def group_section(section: Section, logger: Optional[FormLogger] = None) -> Section:
    return replace(section, questions=group_questions(section.questions, logger))


def group_template(template: Template, logger: Optional[FormLogger] = None) -> Template:
    """Return the grouped (editing/viewing) shape of a flat template."""
    return replace(
        template,
        sections=tuple(group_section(s, logger) for s in template.sections),
    )


def split_template(template: Template, allocator: Optional[TempIdAllocator] = None) -> Template:
    """Return the flat (persistence) shape of a grouped template."""
    allocator = allocator or allocator_for(template)
    return replace(
        template,
        sections=tuple(
            replace(s, questions=split_questions(s.questions, allocator))
            for s in template.sections
        ),
    )


def schedule_signature(questions) -> list[tuple]:
    """Sorted (schedule id, schedule date, label) tuples of flat schedule questions."""
    return sorted(
        (q.linked_schedule_id, q.linked_schedule_date or "", q.label)
        for q in questions
        if q.is_schedule and q.linked_schedule_id is not None
    )


def check_round_trip(flat: Template) -> list[str]:
    """
    Group then split a flat template and report every section whose schedule
    questions did not survive unchanged. An empty list means a clean round trip.
    """
    problems = []
    restored = split_template(group_template(flat))
    for before, after in zip(flat.sections, restored.sections):
        if schedule_signature(before.questions) != schedule_signature(after.questions):
            problems.append(f"Section {before.id} '{before.title}': schedule questions changed")
        kept_before = sum(1 for q in before.questions if not q.is_schedule)
        kept_after = sum(1 for q in after.questions if not q.is_schedule)
        if kept_before != kept_after:
            problems.append(
                f"Section {before.id} '{before.title}': {kept_before} other question(s)"
                f" became {kept_after}"
            )
    return problems

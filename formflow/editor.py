"""
Copy-on-write editing operations on a grouped template.

Every function returns a new Template; the one passed in is left untouched.
Unsaved sections and questions get ids from a TempIdAllocator.
"""

from dataclasses import replace
from typing import Callable, Iterable

from formflow.models import (
    CHOICE_TYPES,
    SCHEDULE_TYPES,
    SHORT_TEXT,
    WORSHIP_ATTENDANCE,
    LinkedSchedule,
    Question,
    Section,
    TempIdAllocator,
    Template,
)


def _map_section(template: Template, section_id: int, fn: Callable[[Section], Section]) -> Template:
    if not any(s.id == section_id for s in template.sections):
        raise ValueError(f"Section not found: {section_id}")
    return replace(
        template,
        sections=tuple(fn(s) if s.id == section_id else s for s in template.sections),
    )


def _map_question(
    template: Template,
    section_id: int,
    question_id: int,
    fn: Callable[[Question], Question],
) -> Template:
    def update(section: Section) -> Section:
        if not any(q.id == question_id for q in section.questions):
            raise ValueError(f"Question {question_id} not found in section {section_id}")
        return replace(
            section,
            questions=tuple(fn(q) if q.id == question_id else q for q in section.questions),
        )

    return _map_section(template, section_id, update)


def _swap(items: tuple, index: int, offset: int) -> tuple:
    """Swap items[index] with its neighbour; out-of-range moves are no-ops."""
    other = index + offset
    if not (0 <= index < len(items)) or not (0 <= other < len(items)):
        return items
    swapped = list(items)
    swapped[index], swapped[other] = swapped[other], swapped[index]
    return tuple(swapped)


# -------------------------------------------------------------------------
# Sections
# -------------------------------------------------------------------------

def add_section(template: Template, allocator: TempIdAllocator, title: str | None = None) -> Template:
    """Append an empty section at the end of the template."""
    ordered = template.sorted_sections()
    next_order = ordered[-1].order_index + 1 if ordered else 0
    section = Section(
        id=allocator.next_id(),
        title=title or f"Section {len(ordered) + 1}",
        description="",
        order_index=next_order,
    )
    return replace(template, sections=template.sections + (section,))


def remove_section(template: Template, section_id: int) -> Template:
    """Remove a section and its questions. A template keeps at least one section."""
    if len(template.sections) <= 1:
        raise ValueError("A template needs at least one section")
    if not any(s.id == section_id for s in template.sections):
        raise ValueError(f"Section not found: {section_id}")
    return replace(
        template,
        sections=tuple(s for s in template.sections if s.id != section_id),
    )


def update_section(template: Template, section_id: int, **changes) -> Template:
    """Replace fields of one section (title, description, default navigation...)."""
    return _map_section(template, section_id, lambda s: replace(s, **changes))


def move_section(template: Template, index: int, offset: int) -> Template:
    """Move the section at display position index by offset (-1 up, +1 down)."""
    moved = _swap(template.sorted_sections(), index, offset)
    return replace(
        template,
        sections=tuple(replace(s, order_index=i) for i, s in enumerate(moved)),
    )


# -------------------------------------------------------------------------
# Questions
# -------------------------------------------------------------------------

def add_question(
    template: Template,
    section_id: int,
    allocator: TempIdAllocator,
    **fields,
) -> Template:
    """
    Append a new question to a section.

    Questions on GROUP templates default to member-specific.
    """
    def append(section: Section) -> Section:
        ordered = section.sorted_questions()
        defaults = {
            "id": allocator.next_id(),
            "label": "",
            "input_type": SHORT_TEXT,
            "order_index": ordered[-1].order_index + 1 if ordered else 1,
            "member_specific": template.is_group,
        }
        defaults.update(fields)
        return replace(section, questions=section.questions + (Question(**defaults),))

    return _map_section(template, section_id, append)


def _options_json_kind(input_type: str) -> str | None:
    """What optionsJson carries for a type: the options, a schedule title, or nothing."""
    if input_type in CHOICE_TYPES:
        return "options"
    if input_type in SCHEDULE_TYPES:
        return "schedule"
    return None


def _apply_question_changes(question: Question, changes: dict) -> Question:
    """Apply field changes, resetting fields that no longer fit the input type."""
    updated = replace(question, **changes)

    new_type = changes.get("input_type")
    if new_type is not None and new_type not in SCHEDULE_TYPES:
        updated = replace(
            updated,
            linked_schedules=(),
            linked_schedule_id=None,
            linked_schedule_date=None,
        )
    if new_type is not None and new_type not in CHOICE_TYPES:
        updated = replace(updated, options=())
    if new_type is not None and _options_json_kind(new_type) != _options_json_kind(question.input_type):
        updated = replace(updated, options_json=None)
    if new_type is not None and new_type != WORSHIP_ATTENDANCE:
        updated = replace(updated, linked_worship_category=None)

    # Worship attendance is only recorded per member
    if changes.get("member_specific") is False and updated.input_type == WORSHIP_ATTENDANCE:
        updated = replace(updated, input_type=SHORT_TEXT, linked_worship_category=None)
    return updated


def update_question(template: Template, section_id: int, question_id: int, **changes) -> Template:
    """Replace fields of one question."""
    return _map_question(
        template, section_id, question_id,
        lambda q: _apply_question_changes(q, changes),
    )


def remove_question(template: Template, section_id: int, question_id: int) -> Template:
    def drop(section: Section) -> Section:
        if not any(q.id == question_id for q in section.questions):
            raise ValueError(f"Question {question_id} not found in section {section_id}")
        return replace(section, questions=tuple(q for q in section.questions if q.id != question_id))

    return _map_section(template, section_id, drop)


def move_question(template: Template, section_id: int, index: int, offset: int) -> Template:
    """Move the question at display position index by offset within its section."""
    def move(section: Section) -> Section:
        moved = _swap(section.sorted_questions(), index, offset)
        return replace(
            section,
            questions=tuple(replace(q, order_index=i + 1) for i, q in enumerate(moved)),
        )

    return _map_section(template, section_id, move)


def attach_schedules(
    template: Template,
    section_id: int,
    question_id: int,
    schedules: Iterable[LinkedSchedule],
) -> Template:
    """
    Add schedules to a schedule question's linked list.

    Schedules already linked (same id and start date) are skipped. Existing
    entries are never removed, even on single-selection questions.

    Raises:
        ValueError: If the question is not a schedule question.
    """
    def attach(question: Question) -> Question:
        if not question.is_schedule:
            raise ValueError(f"Question {question_id} is not a schedule question")
        seen = {(s.id, s.start_date) for s in question.linked_schedules}
        added = []
        for schedule in schedules:
            key = (schedule.id, schedule.start_date)
            if key not in seen:
                seen.add(key)
                added.append(schedule)
        return replace(question, linked_schedules=question.linked_schedules + tuple(added))

    return _map_question(template, section_id, question_id, attach)

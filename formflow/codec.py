"""
FormFlow Codec Module

Convert persisted template JSON (camelCase dicts, as exchanged with the
backend) into model trees and back.

Loading is tolerant: legacy field spellings are accepted, malformed
optionsJson is logged and treated as empty, and unsaved sections/questions
receive temporary ids. Nothing in here raises on bad content.
"""

import json
from typing import Any, Optional

from formflow.logger import FormLogger
from formflow.models import (
    BOOLEAN,
    CHOICE_TYPES,
    CONTINUE,
    GROUP,
    INPUT_TYPES,
    NEXT_ACTIONS,
    PERSONAL,
    SCHEDULE_ATTENDANCE,
    SHORT_TEXT,
    SYNC_POST_CONFIRMATION,
    SYNC_PRE_REGISTRATION,
    WORSHIP_ATTENDANCE,
    LinkedSchedule,
    Option,
    Question,
    Section,
    TempIdAllocator,
    Template,
)


# Category whose templates are filled in per group when no type is given
GROUP_CATEGORY = "CELL_REPORT"

# Title of the section wrapping a legacy template's top-level question list
DEFAULT_SECTION_TITLE = "Default Section"


def _warn(logger: Optional[FormLogger], message: str) -> None:
    if logger is not None:
        logger.warn(message)


def _as_int(value: Any) -> Optional[int]:
    """Coerce an id/index that may arrive as int or numeric string."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def _normalize_action(value: Any, logger: Optional[FormLogger], where: str) -> Optional[str]:
    if value is None or value == "":
        return None
    if value in NEXT_ACTIONS:
        return value
    _warn(logger, f"Unknown next action {value!r} on {where}, ignored")
    return None


def _normalize_option(item: Any, logger: Optional[FormLogger]) -> Optional[Option]:
    """Turn a legacy bare string or an option object into an Option."""
    if isinstance(item, str):
        return Option(label=item)
    if isinstance(item, dict) and isinstance(item.get("label"), str):
        return Option(
            label=item["label"],
            next_action=_normalize_action(
                item.get("nextAction"), logger, f"option {item['label']!r}"
            ),
            target_section_index=_as_int(item.get("targetSectionIndex")),
        )
    _warn(logger, f"Skipping malformed option entry: {item!r}")
    return None


def normalize_options(items: list, logger: Optional[FormLogger] = None) -> tuple[Option, ...]:
    """Normalize a list of option objects or legacy strings."""
    options = (_normalize_option(item, logger) for item in items)
    return tuple(o for o in options if o is not None)


def parse_options(options_json: Optional[str], logger: Optional[FormLogger] = None) -> tuple[Option, ...]:
    """
    Parse an optionsJson string into Options.

    Accepts an array of option objects or of legacy bare strings.
    Unparsable input is logged and yields no options.
    """
    if not options_json:
        return ()
    try:
        parsed = json.loads(options_json)
    except (TypeError, ValueError) as e:
        _warn(logger, f"Failed to parse optionsJson {options_json!r}: {e}")
        return ()
    if not isinstance(parsed, list):
        _warn(logger, f"optionsJson is not an array: {options_json!r}")
        return ()
    return normalize_options(parsed, logger)


def encode_options(options: tuple[Option, ...]) -> str:
    """Encode Options into the persisted optionsJson shape."""
    return json.dumps([
        {
            "label": o.label,
            "nextAction": o.next_action,
            "targetSectionIndex": o.target_section_index,
        }
        for o in options
    ], ensure_ascii=False)


def _restore_input_type(raw: dict, logger: Optional[FormLogger]) -> str:
    """
    Resolve the engine input type of a persisted question.

    The backend stores attendance questions as BOOLEAN plus a syncType; those
    are restored to their attendance kinds here.
    """
    input_type = raw.get("inputType") or SHORT_TEXT
    if input_type not in INPUT_TYPES:
        _warn(logger, f"Unknown inputType {input_type!r} on question {raw.get('id')}, using {SHORT_TEXT}")
        return SHORT_TEXT

    if input_type == BOOLEAN:
        sync_type = raw.get("syncType")
        if sync_type == SYNC_POST_CONFIRMATION and raw.get("linkedWorshipCategory"):
            return WORSHIP_ATTENDANCE
        if sync_type == SYNC_PRE_REGISTRATION and raw.get("linkedScheduleId") is not None:
            return SCHEDULE_ATTENDANCE
    return input_type


def _load_linked_schedule(raw: dict) -> LinkedSchedule:
    return LinkedSchedule(
        id=_as_int(raw.get("id")),
        title=raw.get("title") or "",
        start_date=raw.get("startDate") or "",
        question_id=_as_int(raw.get("questionId")),
    )


def load_question(
    raw: dict,
    allocator: TempIdAllocator,
    logger: Optional[FormLogger] = None,
) -> Question:
    """Build a Question from its persisted (or grouped) dict."""
    input_type = _restore_input_type(raw, logger)

    if "isMemberSpecific" in raw and raw["isMemberSpecific"] is not None:
        member_specific = bool(raw["isMemberSpecific"])
    else:
        member_specific = bool(raw.get("memberSpecific"))

    options: tuple[Option, ...] = ()
    if input_type in CHOICE_TYPES:
        if raw.get("options"):
            options = normalize_options(raw["options"], logger)
        else:
            options = parse_options(raw.get("optionsJson"), logger)

    question_id = _as_int(raw.get("id"))
    return Question(
        id=question_id if question_id else allocator.next_id(),
        label=raw.get("label") or "",
        input_type=input_type,
        required=bool(raw.get("required")),
        order_index=_as_int(raw.get("orderIndex")) or 0,
        member_specific=member_specific,
        options=options,
        linked_schedules=tuple(
            _load_linked_schedule(s) for s in raw.get("linkedSchedules") or ()
        ),
        description=raw.get("description"),
        sync_type=raw.get("syncType"),
        linked_worship_category=raw.get("linkedWorshipCategory"),
        linked_schedule_id=_as_int(raw.get("linkedScheduleId")),
        linked_schedule_date=raw.get("linkedScheduleDate"),
        options_json=raw.get("optionsJson"),
    )


def load_section(
    raw: dict,
    allocator: TempIdAllocator,
    logger: Optional[FormLogger] = None,
) -> Section:
    """Build a Section from its persisted dict."""
    section_id = _as_int(raw.get("id"))
    section_id = section_id if section_id else allocator.next_id()
    return Section(
        id=section_id,
        title=raw.get("title") or "",
        description=raw.get("description"),
        order_index=_as_int(raw.get("orderIndex")) or 0,
        default_next_action=_normalize_action(
            raw.get("defaultNextAction"), logger, f"section {section_id}"
        ),
        default_target_section_index=_as_int(raw.get("defaultTargetSectionIndex")),
        questions=tuple(
            load_question(q, allocator, logger) for q in raw.get("questions") or ()
        ),
    )


def _lowest_id(data: dict) -> int:
    """Lowest id anywhere in a persisted template, temporary ids included."""
    ids = [_as_int(data.get("templateId")), _as_int(data.get("id"))]
    questions = list(data.get("questions") or ())
    for section in data.get("sections") or ():
        ids.append(_as_int(section.get("id")))
        questions.extend(section.get("questions") or ())
    for question in questions:
        ids.append(_as_int(question.get("id")))
        ids.extend(_as_int(s.get("questionId")) for s in question.get("linkedSchedules") or ())
    return min((i for i in ids if i is not None), default=0)


def load_template(
    data: dict,
    logger: Optional[FormLogger] = None,
    allocator: Optional[TempIdAllocator] = None,
) -> Template:
    """
    Build a Template from the persisted JSON shape.

    Accepts templateId/id, isActive/active, a missing type (derived from the
    category) and legacy templates that only carry a top-level questions list.
    Missing ids are allocated below every id already present, temporary ids
    included.
    """
    allocator = allocator or TempIdAllocator(start=min(0, _lowest_id(data)) - 1)
    category = data.get("category")
    kind = data.get("type") or (GROUP if category == GROUP_CATEGORY else PERSONAL)
    if kind not in (PERSONAL, GROUP):
        _warn(logger, f"Unknown template type {kind!r}, using {PERSONAL}")
        kind = PERSONAL

    if "isActive" in data and data["isActive"] is not None:
        is_active = bool(data["isActive"])
    else:
        is_active = bool(data.get("active", True))

    sections = tuple(load_section(s, allocator, logger) for s in data.get("sections") or ())
    if not sections and data.get("questions"):
        sections = (Section(
            id=allocator.next_id(),
            title=DEFAULT_SECTION_TITLE,
            order_index=0,
            default_next_action=CONTINUE,
            questions=tuple(load_question(q, allocator, logger) for q in data["questions"]),
        ),)

    template_id = _as_int(data.get("templateId")) or _as_int(data.get("id"))
    return Template(
        id=template_id if template_id else allocator.next_id(),
        title=data.get("title") or "",
        kind=kind,
        sections=sections,
        is_active=is_active,
        description=data.get("description"),
        category=category,
        start_date=data.get("startDate"),
        end_date=data.get("endDate"),
    )


# -------------------------------------------------------------------------
# Dumping
# -------------------------------------------------------------------------

def dump_question(question: Question, backend_types: bool = False) -> dict:
    """Serialize a Question; grouped entries are included only when present."""
    input_type = question.input_type
    sync_type = question.sync_type
    if backend_types and input_type == SCHEDULE_ATTENDANCE:
        input_type, sync_type = BOOLEAN, SYNC_PRE_REGISTRATION
    elif backend_types and input_type == WORSHIP_ATTENDANCE:
        input_type, sync_type = BOOLEAN, SYNC_POST_CONFIRMATION

    out = {
        "id": question.id,
        "label": question.label,
        "description": question.description,
        "inputType": input_type,
        "required": question.required,
        "orderIndex": question.order_index,
        "memberSpecific": question.member_specific,
        "optionsJson": question.options_json,
        "syncType": sync_type,
        "linkedWorshipCategory": question.linked_worship_category,
        "linkedScheduleId": question.linked_schedule_id,
        "linkedScheduleDate": question.linked_schedule_date,
    }
    if question.options:
        out["options"] = [
            {
                "label": o.label,
                "nextAction": o.next_action,
                "targetSectionIndex": o.target_section_index,
            }
            for o in question.options
        ]
    if question.linked_schedules:
        out["linkedSchedules"] = [
            {"id": s.id, "title": s.title, "startDate": s.start_date, "questionId": s.question_id}
            for s in question.linked_schedules
        ]
    return out


def dump_section(section: Section, backend_types: bool = False) -> dict:
    return {
        "id": section.id,
        "title": section.title,
        "description": section.description,
        "orderIndex": section.order_index,
        "defaultNextAction": section.default_next_action,
        "defaultTargetSectionIndex": section.default_target_section_index,
        "questions": [dump_question(q, backend_types) for q in section.questions],
    }


def dump_template(template: Template, backend_types: bool = False) -> dict:
    """
    Serialize a Template into the persisted JSON shape.

    With backend_types=True attendance questions are written the way the
    backend stores them (BOOLEAN plus syncType).
    """
    return {
        "id": template.id,
        "title": template.title,
        "description": template.description,
        "category": template.category,
        "type": template.kind,
        "isActive": template.is_active,
        "startDate": template.start_date,
        "endDate": template.end_date,
        "sections": [dump_section(s, backend_types) for s in template.sections],
    }

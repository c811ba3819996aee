"""
Answer aggregation for grouped schedule questions.

Storage keeps one boolean per schedule sub-question; the grouped view shows
one list of selected schedule ids. These functions translate between the two
without mutating the answers passed in.

Personal answers: {question_id: value}
Group answers:    {member_name | COMMON: {question_id: value}}
"""

from typing import Iterable, Optional

from formflow.models import (
    BOOLEAN_LIKE_TYPES,
    COMMON,
    AnswerValue,
    Question,
    Template,
)


def _find_question(questions: Iterable[Question], question_id: int) -> Optional[Question]:
    for q in questions:
        if q.id == question_id:
            return q
    return None


def selected_schedule_ids(question: Question, answers: dict) -> list[str]:
    """Schedule ids (as strings, in schedule order) whose sub-question is True."""
    return [
        str(s.id)
        for s in question.linked_schedules
        if answers.get(s.question_id) is True
    ]


def derive_personal_answers(questions: Iterable[Question], answers: dict) -> dict:
    """Return a copy of answers with grouped schedule questions as id lists."""
    derived = dict(answers)
    for q in questions:
        if q.is_grouped_schedule:
            derived[q.id] = selected_schedule_ids(q, answers)
    return derived


def derive_group_answers(
    questions: Iterable[Question],
    answers: dict,
    members: Iterable[str],
) -> dict:
    """Per-target version of derive_personal_answers; targets without a bucket are skipped."""
    grouped = [q for q in questions if q.is_grouped_schedule]
    derived = dict(answers)
    for target in [*members, COMMON]:
        bucket = answers.get(target)
        if bucket is None or not grouped:
            continue
        target_answers = dict(bucket)
        for q in grouped:
            target_answers[q.id] = selected_schedule_ids(q, bucket)
        derived[target] = target_answers
    return derived


def _decompose(question: Question, bucket: dict, value: AnswerValue) -> dict:
    """Rewrite every sub-question boolean of a grouped question from an id list."""
    selected = value if isinstance(value, list) else []
    updated = dict(bucket)
    for s in question.linked_schedules:
        updated[s.question_id] = str(s.id) in selected
    return updated


def write_personal_answer(
    questions: Iterable[Question],
    answers: dict,
    question_id: int,
    value: AnswerValue,
) -> dict:
    """Return new personal answers with value written for question_id."""
    question = _find_question(questions, question_id)
    if question is not None and question.is_grouped_schedule:
        return _decompose(question, answers, value)
    return {**answers, question_id: value}


def write_group_answer(
    questions: Iterable[Question],
    answers: dict,
    target: str,
    question_id: int,
    value: AnswerValue,
) -> dict:
    """Return new group answers with value written for target's question_id."""
    bucket = answers.get(target) or {}
    question = _find_question(questions, question_id)
    if question is not None and question.is_grouped_schedule:
        new_bucket = _decompose(question, bucket, value)
    else:
        new_bucket = {**bucket, question_id: value}
    return {**answers, target: new_bucket}


def derive_answers(template: Template, answers: dict, members: Iterable[str] = ()) -> dict:
    """Derived (grouped-view) answers for a grouped template of either kind."""
    questions = template.all_questions()
    if template.is_group:
        return derive_group_answers(questions, answers, members)
    return derive_personal_answers(questions, answers)


def write_answer(
    template: Template,
    answers: dict,
    question_id: int,
    value: AnswerValue,
    target: Optional[str] = None,
) -> dict:
    """
    Write one answer edit against a grouped template.

    Raises:
        ValueError: If a GROUP template edit names no target.
    """
    questions = template.all_questions()
    if template.is_group:
        if not target:
            raise ValueError("Group answers need a target member or COMMON")
        return write_group_answer(questions, answers, target, question_id, value)
    return write_personal_answer(questions, answers, question_id, value)


# -------------------------------------------------------------------------
# Submission
# -------------------------------------------------------------------------

def _submission_value(question: Question, value: AnswerValue) -> Optional[str]:
    """
    Encode an answer as the submission string.

    Boolean-like questions always produce "true"/"false"; empty free-text
    answers produce None (omitted).
    """
    if question.input_type in BOOLEAN_LIKE_TYPES:
        return "true" if value is True or value == "true" else "false"
    if value is None or value == "" or value == []:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(str(v) for v in value)
    return str(value)


def _entries(questions: Iterable[Question], bucket: dict, member_id: Optional[int]) -> list[dict]:
    entries = []
    for q in questions:
        encoded = _submission_value(q, bucket.get(q.id))
        if encoded is None:
            continue
        entry = {"questionId": q.id, "value": encoded}
        if member_id is not None:
            entry["targetMemberId"] = member_id
        entries.append(entry)
    return entries


def build_submission(
    template: Template,
    answers: dict,
    *,
    members_by_name: Optional[dict[str, int]] = None,
    date: Optional[str] = None,
    cell_id: Optional[int] = None,
) -> dict:
    """
    Build the answer submission for a flat (split) template.

    answers must be the raw per-sub-question answers, not the derived view.
    Answers for question ids absent from the template are ignored.
    """
    ordered = [q for s in template.sorted_sections() for q in s.sorted_questions()]

    if template.is_group:
        members_by_name = members_by_name or {}
        targets = list(members_by_name)
        targets += [t for t in answers if t not in members_by_name and t != COMMON]
        entries = _entries(
            [q for q in ordered if not q.member_specific],
            answers.get(COMMON) or {},
            None,
        )
        member_questions = [q for q in ordered if q.member_specific]
        for target in targets:
            entries += _entries(
                member_questions,
                answers.get(target) or {},
                members_by_name.get(target),
            )
    else:
        entries = _entries(ordered, answers, None)

    submission = {"templateId": template.id}
    if date is not None:
        submission["date"] = date
    if cell_id is not None:
        submission["cellId"] = cell_id
    submission["answers"] = entries
    return submission

"""Shared fixtures for the FormFlow test suite."""

import json

import pytest

from formflow.logger import FormLogger
from formflow.models import (
    CONTINUE,
    SCHEDULE_ATTENDANCE,
    SINGLE_CHOICE,
    SUBMIT,
    Option,
    Question,
    Section,
    Template,
)


@pytest.fixture
def logger(tmp_path):
    """A silent FormLogger writing into the test's temp directory."""
    with FormLogger(log_dir=tmp_path / "log", slug="test", version="1", silent=True) as test_logger:
        yield test_logger


@pytest.fixture
def schedule_question():
    """Factory for flat, schedule-linked questions."""
    def make(
        question_id: int,
        schedule_id: int,
        order_index: int,
        *,
        label: str = "Which events will you attend?",
        title: str | None = None,
        member_specific: bool = False,
        input_type: str = SCHEDULE_ATTENDANCE,
        date: str = "2026-03-01",
    ) -> Question:
        return Question(
            id=question_id,
            label=label,
            input_type=input_type,
            order_index=order_index,
            member_specific=member_specific,
            linked_schedule_id=schedule_id,
            linked_schedule_date=date,
            options_json=json.dumps({"scheduleTitle": title}) if title else None,
        )

    return make


@pytest.fixture
def choice_question():
    """Factory for SINGLE_CHOICE questions with (label, action, target) options."""
    def make(question_id: int, options, *, order_index: int = 1, member_specific: bool = False) -> Question:
        return Question(
            id=question_id,
            label=f"Question {question_id}",
            input_type=SINGLE_CHOICE,
            order_index=order_index,
            member_specific=member_specific,
            options=tuple(Option(label, action, target) for label, action, target in options),
        )

    return make


@pytest.fixture
def attending_template(choice_question) -> Template:
    """Two sections; section 0 asks "Attending?" with Yes -> CONTINUE, No -> SUBMIT."""
    attending = choice_question(1, [("Yes", CONTINUE, None), ("No", SUBMIT, None)])
    return Template(
        id=7,
        title="Retreat sign-up",
        sections=(
            Section(id=10, title="Attendance", order_index=0, questions=(attending,)),
            Section(id=11, title="Details", order_index=1),
        ),
    )


@pytest.fixture
def persisted_template() -> dict:
    """A persisted (flat) PERSONAL template as the backend returns it."""
    return {
        "id": 42,
        "title": "Spring events",
        "description": "Sign up for spring events",
        "category": "EVENT_APPLICATION",
        "type": "PERSONAL",
        "isActive": True,
        "sections": [
            {
                "id": 1,
                "title": "Events",
                "description": "",
                "orderIndex": 0,
                "defaultNextAction": "CONTINUE",
                "defaultTargetSectionIndex": None,
                "questions": [
                    {
                        "id": 100,
                        "label": "Your name",
                        "inputType": "SHORT_TEXT",
                        "required": True,
                        "orderIndex": 1,
                        "memberSpecific": False,
                    },
                    {
                        "id": 101,
                        "label": "Which events will you attend?",
                        "inputType": "SCHEDULE_ATTENDANCE",
                        "required": False,
                        "orderIndex": 2,
                        "memberSpecific": False,
                        "optionsJson": json.dumps({"scheduleTitle": "Spring picnic"}),
                        "linkedScheduleId": 501,
                        "linkedScheduleDate": "2026-04-05",
                    },
                    {
                        "id": 102,
                        "label": "Which events will you attend?",
                        "inputType": "SCHEDULE_ATTENDANCE",
                        "required": False,
                        "orderIndex": 3,
                        "memberSpecific": False,
                        "optionsJson": json.dumps({"scheduleTitle": "Choir concert"}),
                        "linkedScheduleId": 502,
                        "linkedScheduleDate": "2026-04-12",
                    },
                    {
                        "id": 103,
                        "label": "Need a ride?",
                        "inputType": "SINGLE_CHOICE",
                        "required": False,
                        "orderIndex": 4,
                        "memberSpecific": False,
                        "optionsJson": json.dumps([
                            {"label": "Yes", "nextAction": "GO_TO_SECTION", "targetSectionIndex": 1},
                            {"label": "No", "nextAction": "SUBMIT"},
                        ]),
                    },
                ],
            },
            {
                "id": 2,
                "title": "Transport",
                "description": "",
                "orderIndex": 1,
                "defaultNextAction": None,
                "defaultTargetSectionIndex": None,
                "questions": [
                    {
                        "id": 200,
                        "label": "Pick-up address",
                        "inputType": "LONG_TEXT",
                        "required": True,
                        "orderIndex": 1,
                        "memberSpecific": False,
                    },
                ],
            },
        ],
    }

"""
Data models for the FormFlow questionnaire engine.

Templates are immutable value trees: every model is a frozen dataclass and
every collection is a tuple. Edits go through dataclasses.replace().
"""

import itertools
from dataclasses import dataclass, field
from typing import Optional, Union


# Template kinds
PERSONAL = "PERSONAL"
GROUP = "GROUP"

# Navigation actions
CONTINUE = "CONTINUE"
GO_TO_SECTION = "GO_TO_SECTION"
SUBMIT = "SUBMIT"
NEXT_ACTIONS = frozenset({CONTINUE, GO_TO_SECTION, SUBMIT})

# Question input types
SHORT_TEXT = "SHORT_TEXT"
LONG_TEXT = "LONG_TEXT"
NUMBER = "NUMBER"
BOOLEAN = "BOOLEAN"
SINGLE_CHOICE = "SINGLE_CHOICE"
MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
WORSHIP_ATTENDANCE = "WORSHIP_ATTENDANCE"
SCHEDULE_ATTENDANCE = "SCHEDULE_ATTENDANCE"
SCHEDULE_SURVEY = "SCHEDULE_SURVEY"

INPUT_TYPES = frozenset({
    SHORT_TEXT, LONG_TEXT, NUMBER, BOOLEAN, SINGLE_CHOICE, MULTIPLE_CHOICE,
    WORSHIP_ATTENDANCE, SCHEDULE_ATTENDANCE, SCHEDULE_SURVEY,
})
CHOICE_TYPES = frozenset({SINGLE_CHOICE, MULTIPLE_CHOICE})
SCHEDULE_TYPES = frozenset({SCHEDULE_ATTENDANCE, SCHEDULE_SURVEY})
BOOLEAN_LIKE_TYPES = frozenset({BOOLEAN, WORSHIP_ATTENDANCE}) | SCHEDULE_TYPES

# Attendance sync types (backend encoding of the attendance question kinds)
SYNC_NONE = "NONE"
SYNC_POST_CONFIRMATION = "POST_CONFIRMATION"
SYNC_PRE_REGISTRATION = "PRE_REGISTRATION"

# Reserved answer bucket for group-level answers
COMMON = "COMMON"

AnswerValue = Union[str, int, float, bool, list[str], None]


@dataclass(frozen=True)
class Option:
    """A choice-question option, optionally carrying its own navigation."""
    label: str
    next_action: Optional[str] = None
    target_section_index: Optional[int] = None


@dataclass(frozen=True)
class LinkedSchedule:
    """A schedule attached to a grouped question.

    question_id is the flat question this entry stands for; None means the
    entry has not been split and saved yet.
    """
    id: int
    title: str
    start_date: str
    question_id: Optional[int] = None


@dataclass(frozen=True)
class Question:
    """A question in either flat or grouped shape."""
    id: int
    label: str
    input_type: str = SHORT_TEXT
    required: bool = False
    order_index: int = 0
    member_specific: bool = False
    options: tuple[Option, ...] = ()
    linked_schedules: tuple[LinkedSchedule, ...] = ()
    description: Optional[str] = None
    sync_type: Optional[str] = None
    linked_worship_category: Optional[str] = None
    linked_schedule_id: Optional[int] = None
    linked_schedule_date: Optional[str] = None
    options_json: Optional[str] = None

    @property
    def is_choice(self) -> bool:
        return self.input_type in CHOICE_TYPES

    @property
    def is_schedule(self) -> bool:
        return self.input_type in SCHEDULE_TYPES

    @property
    def is_grouped_schedule(self) -> bool:
        """True for a schedule question rendered as one multi-select control."""
        return self.is_schedule and len(self.linked_schedules) > 0


@dataclass(frozen=True)
class Section:
    """A page of questions with its own fallback navigation."""
    id: int
    title: str
    description: Optional[str] = None
    order_index: int = 0
    default_next_action: Optional[str] = None
    default_target_section_index: Optional[int] = None
    questions: tuple[Question, ...] = ()

    def sorted_questions(self) -> tuple[Question, ...]:
        return tuple(sorted(self.questions, key=lambda q: q.order_index))


@dataclass(frozen=True)
class Template:
    """A complete form definition."""
    id: int
    title: str
    kind: str = PERSONAL
    sections: tuple[Section, ...] = ()
    is_active: bool = True
    description: Optional[str] = None
    category: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    @property
    def is_group(self) -> bool:
        return self.kind == GROUP

    def sorted_sections(self) -> tuple[Section, ...]:
        """Sections ordered by order_index; ties keep their array position."""
        return tuple(sorted(self.sections, key=lambda s: s.order_index))

    def all_questions(self) -> tuple[Question, ...]:
        return tuple(q for s in self.sections for q in s.questions)


@dataclass
class TempIdAllocator:
    """
    Hands out process-local temporary ids for unsaved sections and questions.

    Temporary ids are negative; ids assigned by the backend are positive
    and 0 means "not assigned".
    """
    start: int = -1
    _counter: itertools.count = field(init=False, repr=False)

    def __post_init__(self):
        if self.start >= 0:
            raise ValueError(f"Temporary ids must be negative, got start={self.start}")
        self._counter = itertools.count(self.start, -1)

    def next_id(self) -> int:
        return next(self._counter)


def is_temporary_id(value: Optional[int]) -> bool:
    """Return True if value is a temporary (never saved) identifier."""
    return value is None or value <= 0

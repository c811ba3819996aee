"""
Section navigation for a grouped template.

get_next_step() decides, from the current section and the answers so far,
whether the respondent continues, jumps to another section or submits.
Priority: question-level branching options, then the section default, then
document order. Targets outside the section range are never followed.

NavigationState is an immutable snapshot (current index + history stack);
advance() and retreat() return new snapshots. NavigationEngine wraps them for
callers that want a stateful object with a submit callback.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from formflow.logger import FormLogger
from formflow.models import (
    COMMON,
    CONTINUE,
    GO_TO_SECTION,
    SUBMIT,
    AnswerValue,
    Option,
    Question,
    Section,
    Template,
)


@dataclass(frozen=True)
class NextStep:
    """Outcome of evaluating the current section."""
    action: str
    target_index: Optional[int] = None


@dataclass(frozen=True)
class NavigationState:
    current_index: int = 0
    history: tuple[int, ...] = ()


def _in_range(index: Optional[int], count: int) -> bool:
    return index is not None and 0 <= index < count


def _target_usable(action: str, target: Optional[int], count: int) -> bool:
    """False when the action points at a section that does not exist."""
    if action == GO_TO_SECTION:
        return _in_range(target, count)
    if action == CONTINUE and target is not None:
        return _in_range(target, count)
    return True


def _has_answer(value: AnswerValue) -> bool:
    return value is not None and value != "" and value != []


def _matching_option(question: Question, value: AnswerValue) -> Optional[Option]:
    """
    Return the option selected by value that carries its own next action.

    A list answer (MULTIPLE_CHOICE) is matched in option order.
    """
    if isinstance(value, list):
        for option in question.options:
            if option.label in value and option.next_action:
                return option
        return None
    for option in question.options:
        if option.label == value:
            return option if option.next_action else None
    return None


def _branching_step(
    section: Section,
    answers: dict,
    count: int,
    is_group_template: bool,
) -> Optional[NextStep]:
    """
    First question-level branching decision in stored question order.

    The first answered option carrying a next action decides. If its target
    does not exist the section gets no branching decision at all; later
    questions are not consulted.
    """
    bucket = (answers.get(COMMON) or {}) if is_group_template else answers
    for question in section.questions:
        if not question.is_choice:
            continue
        if is_group_template and question.member_specific:
            continue
        value = bucket.get(question.id)
        if not _has_answer(value):
            continue
        option = _matching_option(question, value)
        if option is None:
            continue
        if not _target_usable(option.next_action, option.target_section_index, count):
            return None
        return NextStep(option.next_action, option.target_section_index)
    return None


def get_next_step(
    sections: tuple[Section, ...],
    current_index: int,
    answers: dict,
    is_group_template: bool = False,
) -> NextStep:
    """
    Compute the next navigation step for the section at current_index.

    For GROUP templates only group-level questions branch, and their answers
    are read from the COMMON bucket.

    Raises:
        ValueError: If current_index does not name a section.
    """
    count = len(sections)
    if count == 0:
        return NextStep(SUBMIT)
    if not _in_range(current_index, count):
        raise ValueError(f"Section index {current_index} out of range (0..{count - 1})")

    section = sections[current_index]
    is_last = current_index == count - 1

    step = _branching_step(section, answers, count, is_group_template)
    if step is not None:
        return step

    action = section.default_next_action
    if action:
        target = section.default_target_section_index
        # Continuing past the last section means completion
        if action == CONTINUE and is_last and target is None:
            return NextStep(SUBMIT)
        if _target_usable(action, target, count):
            return NextStep(action, target)

    if is_last:
        return NextStep(SUBMIT)
    return NextStep(CONTINUE, current_index + 1)


def advance(
    state: NavigationState,
    sections: tuple[Section, ...],
    answers: dict,
    is_group_template: bool = False,
) -> tuple[NavigationState, bool]:
    """
    Apply the Next/Submit control.

    Returns (new_state, submit). When submit is True the state is unchanged
    and the caller should hand the answers to its submit collaborator.
    """
    step = get_next_step(sections, state.current_index, answers, is_group_template)
    if step.action == SUBMIT:
        return state, True

    count = len(sections)
    next_index = None
    if step.action == GO_TO_SECTION:
        if _in_range(step.target_index, count):
            next_index = step.target_index
    elif step.action == CONTINUE:
        if step.target_index is not None:
            next_index = step.target_index
        else:
            next_index = state.current_index + 1

    if _in_range(next_index, count):
        return NavigationState(next_index, state.history + (state.current_index,)), False

    # Nowhere valid to go: finishing on the last section submits, otherwise stay
    return state, state.current_index == count - 1


def retreat(state: NavigationState) -> NavigationState:
    """Apply the Previous control: undo the last jump, else step back one."""
    if state.history:
        return NavigationState(state.history[-1], state.history[:-1])
    if state.current_index > 0:
        return NavigationState(state.current_index - 1, ())
    return state


class NavigationEngine:
    """Stateful walker over a grouped template's sections."""

    def __init__(
        self,
        template: Template,
        on_submit: Optional[Callable[[], None]] = None,
        logger: Optional[FormLogger] = None,
    ):
        self.template = template
        self.sections = template.sorted_sections()
        self.state = NavigationState()
        self.submitted = False
        self._on_submit = on_submit
        self.logger = logger

    @property
    def current_index(self) -> int:
        return self.state.current_index

    @property
    def current_section(self) -> Optional[Section]:
        if not self.sections:
            return None
        return self.sections[self.state.current_index]

    @property
    def can_retreat(self) -> bool:
        return bool(self.state.history) or self.state.current_index > 0

    def next_step(self, answers: dict) -> NextStep:
        return get_next_step(
            self.sections, self.state.current_index, answers, self.template.is_group
        )

    def is_submit_step(self, answers: dict) -> bool:
        """True when the advance control should read "Submit"."""
        return self.next_step(answers).action == SUBMIT

    def advance(self, answers: dict) -> bool:
        """Move forward; returns True if the form was submitted instead."""
        previous = self.state.current_index
        self.state, submit = advance(
            self.state, self.sections, answers, self.template.is_group
        )
        if submit:
            self._log(f"Submit from section {previous}")
            self.submitted = True
            if self._on_submit is not None:
                self._on_submit()
        elif self.state.current_index != previous:
            self._log(f"Section {previous} -> {self.state.current_index}")
        return submit

    def retreat(self) -> None:
        previous = self.state.current_index
        self.state = retreat(self.state)
        self.submitted = False
        if self.state.current_index != previous:
            self._log(f"Back: section {previous} -> {self.state.current_index}")

    def progress(self) -> tuple[int, int, int]:
        """Return (step number, total sections, percent complete)."""
        total = len(self.sections)
        if total == 0:
            return 0, 0, 100
        step = self.state.current_index + 1
        return step, total, round(step * 100 / total)

    def _log(self, message: str) -> None:
        if self.logger is not None:
            self.logger.log(message)

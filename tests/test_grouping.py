"""test_grouping.py: Unit tests for the schedule grouping transforms."""

import json

from formflow.grouping import (
    allocator_for,
    check_round_trip,
    group_questions,
    group_template,
    recover_schedule_title,
    schedule_signature,
    split_question,
    split_questions,
    split_template,
)
from formflow.models import (
    GO_TO_SECTION,
    SCHEDULE_ATTENDANCE,
    SCHEDULE_SURVEY,
    SHORT_TEXT,
    SUBMIT,
    LinkedSchedule,
    Option,
    Question,
    Section,
    TempIdAllocator,
    Template,
)


def test_consecutive_group_level_schedule_questions_collapse(schedule_question) -> None:
    """Schedule questions of the same kind merge into the first one."""
    flat = [
        schedule_question(11, 101, 1, title="Picnic"),
        schedule_question(12, 102, 2, title="Concert"),
        schedule_question(13, 103, 3, title="Hike"),
    ]

    grouped = group_questions(flat)

    assert len(grouped) == 1
    group = grouped[0]
    assert group.id == 11
    assert group.linked_schedule_id is None
    assert [s.id for s in group.linked_schedules] == [101, 102, 103]
    assert [s.question_id for s in group.linked_schedules] == [11, 12, 13]
    assert [s.title for s in group.linked_schedules] == ["Picnic", "Concert", "Hike"]


def test_grouping_sorts_by_order_index(schedule_question) -> None:
    flat = [
        schedule_question(13, 103, 3),
        schedule_question(11, 101, 1),
        schedule_question(12, 102, 2),
    ]

    grouped = group_questions(flat)

    assert [s.id for s in grouped[0].linked_schedules] == [101, 102, 103]


def test_member_specific_schedule_questions_never_merge(schedule_question) -> None:
    """Each member-specific schedule question stands alone with one schedule."""
    flat = [
        schedule_question(11, 101, 1, member_specific=True),
        schedule_question(12, 102, 2, member_specific=True),
    ]

    grouped = group_questions(flat)

    assert [q.id for q in grouped] == [11, 12]
    assert all(len(q.linked_schedules) == 1 for q in grouped)
    assert grouped[1].linked_schedules[0] == LinkedSchedule(
        id=102, title="Which events will you attend?", start_date="2026-03-01", question_id=12
    )


def test_member_specific_boundary_in_both_directions(schedule_question) -> None:
    flat = [
        schedule_question(11, 101, 1),
        schedule_question(12, 102, 2, member_specific=True),
        schedule_question(13, 103, 3),
        schedule_question(14, 104, 4),
    ]

    grouped = group_questions(flat)

    assert [q.id for q in grouped] == [11, 12, 13]
    assert [len(q.linked_schedules) for q in grouped] == [1, 1, 2]
    assert [q.member_specific for q in grouped] == [False, True, False]


def test_different_schedule_kinds_start_new_groups(schedule_question) -> None:
    flat = [
        schedule_question(11, 101, 1),
        schedule_question(12, 102, 2, input_type=SCHEDULE_SURVEY),
        schedule_question(13, 103, 3, input_type=SCHEDULE_SURVEY),
    ]

    grouped = group_questions(flat)

    assert [q.input_type for q in grouped] == [SCHEDULE_ATTENDANCE, SCHEDULE_SURVEY]
    assert [len(q.linked_schedules) for q in grouped] == [1, 2]


def test_other_questions_close_the_open_group(schedule_question) -> None:
    text = Question(id=20, label="Comments", input_type=SHORT_TEXT, order_index=2)
    flat = [schedule_question(11, 101, 1), text, schedule_question(12, 102, 3)]

    grouped = group_questions(flat)

    assert [q.id for q in grouped] == [11, 20, 12]
    assert grouped[1] is text


def test_schedule_question_without_link_passes_unchanged() -> None:
    unlinked = Question(id=30, label="Events", input_type=SCHEDULE_ATTENDANCE, order_index=1)

    assert group_questions([unlinked]) == (unlinked,)


def test_grouping_a_grouped_list_is_a_no_op(schedule_question) -> None:
    flat = [schedule_question(11, 101, 1), schedule_question(12, 102, 2, member_specific=True)]

    grouped = group_questions(flat)

    assert group_questions(grouped) == grouped


def test_recover_title_falls_back_to_label_on_bad_side_channel(logger) -> None:
    """Undecodable side-channel data is absorbed and the label used."""
    broken = Question(id=1, label="Picnic?", input_type=SCHEDULE_ATTENDANCE,
                      linked_schedule_id=5, options_json="{not json")
    wrong_shape = Question(id=2, label="Concert?", input_type=SCHEDULE_ATTENDANCE,
                           linked_schedule_id=6, options_json=json.dumps(["a", "b"]))

    assert recover_schedule_title(broken, logger) == "Picnic?"
    assert recover_schedule_title(wrong_shape, logger) == "Concert?"
    assert recover_schedule_title(broken) == "Picnic?"
    assert logger.warning_count == 2


def test_split_reuses_question_ids_and_allocates_for_new_entries() -> None:
    grouped = Question(
        id=11,
        label="Which events?",
        input_type=SCHEDULE_ATTENDANCE,
        order_index=2,
        linked_schedules=(
            LinkedSchedule(id=101, title="Picnic", start_date="2026-04-05", question_id=11),
            LinkedSchedule(id=102, title="Concert", start_date="2026-04-12"),
        ),
    )

    flat = split_question(grouped, TempIdAllocator(start=-50))

    assert [q.id for q in flat] == [11, -50]
    assert [q.label for q in flat] == ["Which events?", "Which events?"]
    assert [q.linked_schedule_id for q in flat] == [101, 102]
    assert [q.linked_schedule_date for q in flat] == ["2026-04-05", "2026-04-12"]
    assert all(q.linked_schedules == () for q in flat)
    assert json.loads(flat[1].options_json) == {"scheduleTitle": "Concert"}


def test_split_keeps_extra_entries_on_single_selection_question() -> None:
    """A member-specific question with two schedules is not silently trimmed."""
    grouped = Question(
        id=11,
        label="Attending?",
        input_type=SCHEDULE_ATTENDANCE,
        member_specific=True,
        linked_schedules=(
            LinkedSchedule(id=101, title="A", start_date="2026-04-05", question_id=11),
            LinkedSchedule(id=102, title="B", start_date="2026-04-12", question_id=12),
        ),
    )

    flat = split_questions([grouped], TempIdAllocator())

    assert [q.id for q in flat] == [11, 12]


def test_split_flattens_choice_options_into_options_json() -> None:
    question = Question(
        id=5,
        label="Need a ride?",
        input_type="SINGLE_CHOICE",
        options=(Option("Yes", GO_TO_SECTION, 2), Option("No", SUBMIT)),
    )

    (flat,) = split_question(question, TempIdAllocator())

    assert json.loads(flat.options_json) == [
        {"label": "Yes", "nextAction": GO_TO_SECTION, "targetSectionIndex": 2},
        {"label": "No", "nextAction": SUBMIT, "targetSectionIndex": None},
    ]


def test_split_of_group_restores_flat_schedule_tuples(schedule_question) -> None:
    """split(group(flat)) reproduces the (schedule id, date, label) tuples."""
    flat = [
        Question(id=1, label="Name", order_index=0),
        schedule_question(11, 101, 1, date="2026-04-05", title="Picnic"),
        schedule_question(12, 102, 2, date="2026-04-12", title="Concert"),
        schedule_question(13, 103, 3, member_specific=True),
    ]

    restored = split_questions(group_questions(flat), TempIdAllocator())

    assert schedule_signature(restored) == schedule_signature(flat)
    assert [q.id for q in restored] == [1, 11, 12, 13]
    assert [json.loads(q.options_json)["scheduleTitle"] for q in restored[1:3]] == ["Picnic", "Concert"]


def test_template_round_trip_reports_no_problems(schedule_question) -> None:
    template = Template(
        id=1,
        title="Events",
        sections=(Section(id=2, title="Only", questions=(
            schedule_question(11, 101, 1),
            schedule_question(12, 102, 2),
        )),),
    )

    assert check_round_trip(template) == []
    assert split_template(group_template(template)).sections[0].questions[1].id == 12


def test_allocator_for_never_collides_with_temporary_ids() -> None:
    template = Template(
        id=1,
        title="Draft",
        sections=(Section(id=-3, title="New", questions=(
            Question(id=-7, label="New question"),
        )),),
    )

    assert allocator_for(template).next_id() == -8

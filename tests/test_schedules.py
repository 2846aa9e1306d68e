# tests/test_schedules.py

from datetime import date, time

import pytest

from salon_scheduler.core import Weekday
from salon_scheduler.errors import BookingValidationError, NotFoundError, Reason
from salon_scheduler.schedules import working_hours_violation
from salon_scheduler.schemas import TimeBlockCreate, WorkingHoursCreate, WorkingHoursUpdate
from tests.conftest import MONDAY, at

TUESDAY = date(2025, 6, 3)


def reason_of(call, *args):
    with pytest.raises(BookingValidationError) as exc:
        call(*args)
    return exc.value.reason


# --- working hours


def test_list_working_hours(schedules, seed):
    rows = schedules.list_working_hours(seed.professional_id)
    assert [(r.day_of_week, r.start_time, r.break_start) for r in rows] == [(0, time(9), time(12))]


def test_create_working_hours(schedules, seed):
    hours = schedules.create_working_hours(
        seed.professional_id,
        WorkingHoursCreate(day_of_week=Weekday.tuesday, start_time=time(10), end_time=time(16)),
    )
    assert hours.id is not None
    assert hours.day_of_week == 1
    assert [r.day_of_week for r in schedules.list_working_hours(seed.professional_id)] == [0, 1]


def test_one_row_per_weekday(schedules, seed):
    data = WorkingHoursCreate(day_of_week=Weekday.monday, start_time=time(10), end_time=time(16))
    assert reason_of(schedules.create_working_hours, seed.professional_id, data) == Reason.working_hours_exists


@pytest.mark.parametrize("values", [
    dict(start_time=time(17), end_time=time(9)),
    dict(start_time=time(9), end_time=time(9)),
    dict(start_time=time(9), end_time=time(17), break_start=time(12)),
    dict(start_time=time(9), end_time=time(17), break_start=time(13), break_end=time(12)),
    dict(start_time=time(9), end_time=time(17), break_start=time(8), break_end=time(9, 30)),
])
def test_invalid_working_hours(values):
    violation = working_hours_violation(WorkingHoursUpdate(**values))
    assert violation.reason == Reason.invalid_working_hours


def test_valid_working_hours():
    assert working_hours_violation(WorkingHoursUpdate(start_time=time(9), end_time=time(17))) is None
    assert working_hours_violation(WorkingHoursUpdate(
        start_time=time(9), end_time=time(17), break_start=time(12), break_end=time(12),
    )) is None


def test_update_working_hours_changes_what_can_be_booked(schedules, book, seed):
    schedules.update_working_hours(
        seed.professional_id, Weekday.monday,
        WorkingHoursUpdate(start_time=time(10), end_time=time(18)),
    )
    # no break any more
    assert book(at(12, 30)).starts_at == at(12, 30)


def test_update_missing_day(schedules, seed):
    with pytest.raises(NotFoundError):
        schedules.update_working_hours(
            seed.professional_id, Weekday.sunday,
            WorkingHoursUpdate(start_time=time(10), end_time=time(18)),
        )


def test_deactivated_day_falls_back_to_salon_hours(schedules, book, seed):
    with pytest.raises(BookingValidationError):
        book(at(17, 15))

    schedules.deactivate_working_hours(seed.professional_id, Weekday.monday)

    assert schedules.list_working_hours(seed.professional_id) == []
    assert book(at(17, 15)).ends_at == at(17, 45)


def test_update_reactivates_the_day(schedules, seed):
    schedules.deactivate_working_hours(seed.professional_id, Weekday.monday)
    hours = schedules.update_working_hours(
        seed.professional_id, Weekday.monday,
        WorkingHoursUpdate(start_time=time(9), end_time=time(17)),
    )
    assert hours.active is True


def test_unknown_professional(schedules):
    with pytest.raises(NotFoundError):
        schedules.list_working_hours(9999)


# --- time blocks


def test_block_must_not_be_empty(schedules, seed):
    data = TimeBlockCreate(starts_at=at(15), ends_at=at(14))
    assert reason_of(schedules.create_block, seed.professional_id, data) == Reason.invalid_time_block


def test_overlapping_blocks_are_kept(schedules, seed):
    first = schedules.create_block(seed.professional_id, TimeBlockCreate(starts_at=at(14), ends_at=at(15)))
    second = schedules.create_block(
        seed.professional_id, TimeBlockCreate(starts_at=at(14, 30), ends_at=at(16), reason="Dentist"),
    )
    tomorrow = schedules.create_block(
        seed.professional_id, TimeBlockCreate(starts_at=at(9, day=MONDAY.replace(day=3)),
                                              ends_at=at(10, day=MONDAY.replace(day=3))),
    )

    assert [b.id for b in schedules.list_blocks(seed.professional_id)] == [first.id, second.id, tomorrow.id]
    assert [b.id for b in schedules.list_blocks(seed.professional_id, at(0), at(23))] == [first.id, second.id]


def test_removed_block_frees_the_time(schedules, book, seed):
    block = schedules.create_block(seed.professional_id, TimeBlockCreate(starts_at=at(14), ends_at=at(15)))
    with pytest.raises(BookingValidationError):
        book(at(14))

    schedules.remove_block(block.id)

    assert book(at(14)).starts_at == at(14)
    with pytest.raises(NotFoundError):
        schedules.remove_block(block.id)


# --- availability


def test_available_starts_on_monday(schedules, seed):
    starts = schedules.available_starts(seed.professional_id, MONDAY.date(), [seed.haircut_id])

    # lead time pushes the first slot to 10:00; lunch is 12:00 - 13:00; the day ends at 17:00
    assert starts[0] == "10:00"
    assert "11:30" in starts
    assert "11:45" not in starts
    assert "12:30" not in starts
    assert "13:00" in starts
    assert starts[-1] == "16:30"
    assert len(starts) == 7 + 15


def test_available_starts_skip_bookings_and_blocks(schedules, book, seed):
    book(at(10))
    schedules.create_block(seed.professional_id, TimeBlockCreate(starts_at=at(14), ends_at=at(15)))

    starts = schedules.available_starts(seed.professional_id, MONDAY.date(), [seed.haircut_id])

    assert "10:00" not in starts
    assert "10:15" not in starts
    assert "10:30" in starts
    assert "13:45" not in starts
    assert "14:45" not in starts
    assert "15:00" in starts


def test_available_starts_for_a_combined_booking(schedules, seed):
    starts = schedules.available_starts(
        seed.professional_id, MONDAY.date(), [seed.haircut_id, seed.coloring_id], prep_minutes=15,
    )
    assert "10:30" in starts
    assert "10:45" not in starts


def test_day_without_working_hours_uses_salon_hours(schedules, seed):
    starts = schedules.available_starts(seed.professional_id, TUESDAY, [seed.haircut_id])
    assert starts[0] == "08:00"
    assert starts[-1] == "17:30"
    assert len(starts) == 39


def test_availability_checks_services(schedules, seed):
    with pytest.raises(BookingValidationError) as exc:
        schedules.available_starts(seed.professional_id, TUESDAY, [seed.massage_id])
    assert exc.value.reason == Reason.service_not_offered


def test_racing_create_for_the_same_day_reports_exists(schedules, seed, monkeypatch):
    # the other request inserted its row after this one looked
    monkeypatch.setattr(schedules.hours, "find", lambda professional_id, day_of_week: None)
    data = WorkingHoursCreate(day_of_week=Weekday.monday, start_time=time(10), end_time=time(16))

    assert reason_of(schedules.create_working_hours, seed.professional_id, data) == Reason.working_hours_exists

    monkeypatch.undo()
    assert [r.start_time for r in schedules.list_working_hours(seed.professional_id)] == [time(9)]

# tests/test_durations.py

from datetime import timedelta

import pytest

from salon_scheduler.durations import check_services, plan_services, replan
from salon_scheduler.errors import MisuseError, Reason
from salon_scheduler.models import Service
from tests.conftest import at


def svc(id, minutes, price=1000, salon_id=1, active=True):
    return Service(id=id, salon_id=salon_id, name=f"service-{id}", duration_minutes=minutes,
                   price_cents=price, active=active)


def test_single_service_has_no_prep():
    plan = plan_services([svc(1, 30)], at(9), prep_minutes=15)
    assert plan.ends_at == at(9, 30)
    assert plan.items[0].prep_time_minutes == 0


def test_two_services_with_prep_end_at_1030():
    plan = plan_services([svc(1, 30, 2500), svc(2, 45, 8000)], at(9), prep_minutes=15)

    assert plan.ends_at == at(10, 30)
    assert plan.total_minutes == 90
    assert plan.charged_amount_cents == 10500
    assert [i.prep_time_minutes for i in plan.items] == [0, 15]
    # second service starts after the first one and its prep
    assert [i.offset_minutes for i in plan.items] == [0, 45]
    assert [i.position for i in plan.items] == [0, 1]


@pytest.mark.parametrize("durations,prep", [
    ([10], 0),
    ([20, 20], 5),
    ([15, 30, 60], 10),
    ([45, 45, 45, 45], 0),
])
def test_end_is_start_plus_durations_and_prep(durations, prep):
    services = [svc(i + 1, d) for i, d in enumerate(durations)]
    plan = plan_services(services, at(9), prep_minutes=prep)

    expected = sum(durations) + prep * (len(durations) - 1)
    assert plan.ends_at - plan.starts_at == timedelta(minutes=expected)
    assert plan.total_minutes == sum(i.duration_minutes + i.prep_time_minutes for i in plan.items)


def test_empty_service_list_is_misuse():
    with pytest.raises(MisuseError):
        plan_services([], at(9))


def test_negative_prep_is_misuse():
    with pytest.raises(MisuseError):
        plan_services([svc(1, 30)], at(9), prep_minutes=-5)


def test_zero_duration_is_misuse():
    with pytest.raises(MisuseError):
        plan_services([svc(1, 0)], at(9))


def test_replan_keeps_stored_durations_and_order():
    planned = plan_services([svc(1, 30), svc(2, 45)], at(9), prep_minutes=15)
    items = list(reversed(planned.line_items(appointment_id=7)))

    moved = replan(items, at(14))

    assert moved.starts_at == at(14)
    assert moved.ends_at == at(15, 30)
    assert [i.service_id for i in moved.items] == [1, 2]
    assert all(li.appointment_id == 7 for li in items)


def test_services_from_another_salon_are_rejected():
    violation = check_services([svc(1, 30), svc(2, 30, salon_id=2)], salon_id=1)
    assert violation.reason == Reason.service_salon_mismatch
    assert violation.context["service_id"] == 2


def test_inactive_service_is_rejected():
    violation = check_services([svc(1, 30, active=False)], salon_id=1)
    assert violation.reason == Reason.service_inactive


def test_service_outside_professional_offer_is_rejected():
    violation = check_services([svc(1, 30), svc(2, 30)], salon_id=1, offered_ids={1})
    assert violation.reason == Reason.service_not_offered


def test_no_configured_offer_means_no_restriction():
    assert check_services([svc(1, 30), svc(2, 30)], salon_id=1, offered_ids=set()) is None

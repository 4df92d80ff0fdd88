import random
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from school_views.domain.criteria import DateRange, FilterCriteria, NumericRange
from school_views.domain.fields import EVALUATION_FIELDS, PAYMENT_FIELDS
from school_views.domain.metrics import derive_evaluation, derive_payment
from school_views.domain.services import filter_records
from school_views.errors import UnknownFieldError
from school_views.infrastructure.parsing.evaluations import normalize_evaluation
from school_views.infrastructure.parsing.payments import normalize_payment

NOW = datetime(2025, 7, 15, 12, 0, tzinfo=timezone.utc)


def make_payment(**raw):
    return derive_payment(normalize_payment(raw, now=NOW))


def make_evaluation(**raw):
    return derive_evaluation(normalize_evaluation(raw, now=NOW))


@pytest.fixture
def payments():
    return (
        make_payment(
            id="p1",
            receipt_number="REC-001",
            amount=250000,
            amount_due=250000,
            payment_date="2025-07-01",
            payment_method="cash",
            payment_month=7,
            payment_year=2025,
            student={"id": "s1", "full_name": "Aminata Diallo", "student_number": "STU-001"},
        ),
        make_payment(
            id="p2",
            receipt_number="REC-002",
            amount=100000,
            amount_due=300000,
            payment_date="2025-06-10",
            payment_method="mobile_money",
            payment_month=6,
            payment_year=2025,
            notes="Balance promised next week",
            student={"id": "s2", "full_name": "Moussa Camara", "student_number": "STU-002"},
        ),
        make_payment(
            id="p3",
            receipt_number="REC-003",
            amount=0,
            amount_due=150000,
            payment_date="2025-05-20",
            payment_method="cash",
            payment_type="exam_fee",
            payment_month=5,
            payment_year=2025,
            student={"id": "s3", "full_name": "Fatoumata Bah", "student_number": "STU-003"},
        ),
    )


def ids(records):
    return [r.record.id for r in records]


def test_empty_criteria_matches_everything(payments):
    assert ids(filter_records(payments, FilterCriteria(), PAYMENT_FIELDS)) == ["p1", "p2", "p3"]


def test_all_and_blank_selectors_are_no_ops(payments):
    criteria = FilterCriteria(selectors={"status": "all", "payment_method": "", "period": None})

    assert ids(filter_records(payments, criteria, PAYMENT_FIELDS)) == ["p1", "p2", "p3"]


def test_search_is_case_insensitive_across_fields(payments):
    assert ids(filter_records(payments, FilterCriteria(search="diallo"), PAYMENT_FIELDS)) == ["p1"]
    assert ids(filter_records(payments, FilterCriteria(search="stu-00"), PAYMENT_FIELDS)) == ["p1", "p2", "p3"]
    assert ids(filter_records(payments, FilterCriteria(search="PROMISED"), PAYMENT_FIELDS)) == ["p2"]
    assert ids(filter_records(payments, FilterCriteria(search="exams"), PAYMENT_FIELDS)) == ["p3"]


def test_selectors_match_value_or_label(payments):
    by_value = FilterCriteria(selectors={"status": "partial"})
    by_label = FilterCriteria(selectors={"status": "Paid"})
    by_period = FilterCriteria(selectors={"period": "May 2025"})

    assert ids(filter_records(payments, by_value, PAYMENT_FIELDS)) == ["p2"]
    assert ids(filter_records(payments, by_label, PAYMENT_FIELDS)) == ["p1"]
    assert ids(filter_records(payments, by_period, PAYMENT_FIELDS)) == ["p3"]


def test_selector_accepts_several_values(payments):
    criteria = FilterCriteria(selectors={"status": ["paid", "pending"]})

    assert ids(filter_records(payments, criteria, PAYMENT_FIELDS)) == ["p1", "p3"]


def test_criteria_combine_with_and(payments):
    criteria = FilterCriteria(selectors={"payment_method": "cash"}, search="bah")

    assert ids(filter_records(payments, criteria, PAYMENT_FIELDS)) == ["p3"]


def test_numeric_range_is_inclusive(payments):
    criteria = FilterCriteria(value_range=NumericRange(minimum=100000, maximum=250000))

    assert ids(filter_records(payments, criteria, PAYMENT_FIELDS)) == ["p1", "p2"]


def test_numeric_range_on_other_field(payments):
    criteria = FilterCriteria(value_range=NumericRange(maximum=-1, field="difference"))

    assert ids(filter_records(payments, criteria, PAYMENT_FIELDS)) == ["p2", "p3"]


def test_date_range_is_inclusive_on_calendar_days(payments):
    criteria = FilterCriteria(date_range=DateRange(start=date(2025, 6, 10), end="2025-07-01"))

    assert ids(filter_records(payments, criteria, PAYMENT_FIELDS)) == ["p1", "p2"]


def test_open_ended_date_range(payments):
    criteria = FilterCriteria(date_range=DateRange(end=date(2025, 6, 1)))

    assert ids(filter_records(payments, criteria, PAYMENT_FIELDS)) == ["p3"]


def test_evaluation_date_range_uses_evaluation_date():
    evaluations = (
        make_evaluation(id="march", evaluation_date="2025-03-31T23:30:00Z", created_at="2025-04-02"),
        make_evaluation(id="april", evaluation_date="2025-04-01", created_at="2025-03-01"),
        make_evaluation(id="may", evaluation_date="2025-05-01T00:00:00Z"),
    )
    criteria = FilterCriteria(date_range=DateRange(start="2025-04-01", end=date(2025, 4, 30)))

    assert ids(filter_records(evaluations, criteria, EVALUATION_FIELDS)) == ["april"]


def test_unparsable_date_is_excluded_when_range_active(payments):
    broken = replace(payments[0], record=replace(payments[0].record, payment_date="not a date"))
    records = (broken,) + payments[1:]

    assert ids(filter_records(records, FilterCriteria(), PAYMENT_FIELDS)) == ["p1", "p2", "p3"]
    criteria = FilterCriteria(date_range=DateRange(start=date(2000, 1, 1)))
    assert ids(filter_records(records, criteria, PAYMENT_FIELDS)) == ["p2", "p3"]


def test_missing_grade_excluded_only_when_range_given():
    graded = make_evaluation(id="e1", memorization_grade=17)
    ungraded = make_evaluation(id="e2")
    records = (graded, ungraded)

    assert ids(filter_records(records, FilterCriteria(), EVALUATION_FIELDS)) == ["e1", "e2"]
    criteria = FilterCriteria(value_range=NumericRange(minimum=0))
    assert ids(filter_records(records, criteria, EVALUATION_FIELDS)) == ["e1"]


def test_evaluation_boolean_and_enum_selectors():
    records = (
        make_evaluation(id="e1", is_validated=True, teacher_comment="Good progress", memorization_grade=16),
        make_evaluation(id="e2", is_validated=False, memorization_grade=11),
    )

    assert ids(filter_records(records, FilterCriteria(selectors={"validated": "true"}), EVALUATION_FIELDS)) == ["e1"]
    assert ids(filter_records(records, FilterCriteria(selectors={"has_comments": False}), EVALUATION_FIELDS)) == ["e2"]
    assert ids(filter_records(records, FilterCriteria(selectors={"mention": "Excellent"}), EVALUATION_FIELDS)) == ["e1"]


def test_unknown_selector_is_a_configuration_error(payments):
    with pytest.raises(UnknownFieldError):
        filter_records(payments, FilterCriteria(selectors={"colour": "red"}), PAYMENT_FIELDS)


def test_adding_criteria_never_grows_the_result():
    rng = random.Random(7)
    records = tuple(
        make_payment(
            id=f"p{i}",
            amount=rng.randint(0, 300000),
            amount_due=rng.choice([0, 150000, 300000]),
            payment_method=rng.choice(["cash", "card", "mobile_money"]),
            payment_date=f"2025-0{rng.randint(1, 9)}-1{rng.randint(0, 9)}",
            student={"id": f"s{i % 40}", "full_name": rng.choice(["Aminata", "Moussa", "Fatoumata"])},
        )
        for i in range(300)
    )
    base = FilterCriteria(selectors={"payment_method": "cash"})
    narrower = FilterCriteria(
        selectors={"payment_method": "cash", "status": "partial"},
        search="a",
        value_range=NumericRange(minimum=Decimal("1000")),
        date_range=DateRange(start="2025-03-01"),
    )

    wide = filter_records(records, base, PAYMENT_FIELDS)
    narrow = filter_records(records, narrower, PAYMENT_FIELDS)

    assert set(ids(narrow)) <= set(ids(wide))
    assert ids(narrow) == [i for i in ids(wide) if i in set(ids(narrow))]

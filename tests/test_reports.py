import datetime as dt
from decimal import Decimal

import pytest

from worktrack.core.exceptions import ValidationError
from worktrack.models.report import (
    NO_CLIENT,
    DateRange,
    GroupFilter,
    GroupKind,
    ReportMode,
    ReportRow,
    SortDirection,
    SortField,
)
from worktrack.services import clients, ledger, profiles, requests
from worktrack.services.reports import (
    aggregate_rows,
    build_report,
    default_date_range,
    sort_rows,
)

JANUARY = DateRange(start=dt.date(2024, 1, 1), end=dt.date(2024, 1, 31))


def test_example_scenario(db, alice):
    request_a = requests.create_request(db, {"title": "A"}, alice)
    assert request_a.request_number == "0001"
    ledger.add_entry(db, request_a.id, alice.id, dt.date(2024, 1, 5), 2.5)
    ledger.add_entry(db, request_a.id, alice.id, dt.date(2024, 1, 10), 1.0)

    assert ledger.total_for(db, request_a.id) == Decimal("3.5")

    report = build_report(db, JANUARY)
    assert len(report.rows) == 2
    assert report.total_hours == Decimal("3.5")

    report = build_report(db, DateRange(start=dt.date(2024, 1, 6), end=dt.date(2024, 1, 31)))
    assert [row.date for row in report.rows] == [dt.date(2024, 1, 10)]
    assert report.total_hours == Decimal("1.0")


def test_single_day_range(db, alice):
    job = requests.create_request(db, {"title": "job"}, alice)
    for day in (4, 5, 5, 6):
        ledger.add_entry(db, job.id, alice.id, dt.date(2024, 1, day), 1)

    day = dt.date(2024, 1, 5)
    report = build_report(db, DateRange(start=day, end=day))

    assert [row.date for row in report.rows] == [day, day]
    assert report.total_hours == Decimal("2")


def test_inverted_range_rejected(db):
    with pytest.raises(ValidationError):
        build_report(db, DateRange(start=dt.date(2024, 2, 1), end=dt.date(2024, 1, 1)))


def test_member_filter(db, alice, bob):
    job = requests.create_request(db, {"title": "job"}, alice)
    ledger.add_entry(db, job.id, alice.id, dt.date(2024, 1, 5), 1)
    ledger.add_entry(db, job.id, bob.id, dt.date(2024, 1, 5), 2)
    ledger.add_entry(db, job.id, bob.id, dt.date(2024, 1, 6), 0.5)

    report = build_report(db, JANUARY, GroupFilter.member(bob.id))

    assert {row.user_id for row in report.rows} == {bob.id}
    assert {row.team_member for row in report.rows} == {"Bob Brown"}
    assert report.total_hours == Decimal("2.5")


def test_group_filter_needs_a_value(db):
    with pytest.raises(ValidationError):
        build_report(db, JANUARY, GroupFilter(kind=GroupKind.CLIENT))


def test_client_filter_and_labels(db, alice, acme):
    other = clients.create_client(db, {"company": "Globex"}, alice)
    for_acme = requests.create_request(db, {"title": "acme job", "client_id": acme.id}, alice)
    for_globex = requests.create_request(db, {"title": "globex job", "client_id": other.id}, alice)
    internal = requests.create_request(db, {"title": "internal"}, alice)
    for request in (for_acme, for_globex, internal):
        ledger.add_entry(db, request.id, alice.id, dt.date(2024, 1, 5), 1)

    report = build_report(db, JANUARY, GroupFilter.client(acme.id))
    assert [row.request_id for row in report.rows] == [for_acme.id]
    assert report.rows[0].client == "Acme Corp"

    everyone = build_report(db, JANUARY)
    labels = {row.request_id: row.client for row in everyone.rows}
    assert labels == {for_acme.id: "Acme Corp", for_globex.id: "Globex", internal.id: NO_CLIENT}


def test_client_label_follows_current_client_name(db, alice, acme):
    job = requests.create_request(db, {"title": "job", "client_id": acme.id}, alice)
    ledger.add_entry(db, job.id, alice.id, dt.date(2024, 1, 5), 1)

    clients.update_client(db, acme.id, {"company": "Acme Industries"}, alice)

    assert build_report(db, JANUARY).rows[0].client == "Acme Industries"


def test_team_member_keeps_name_at_time_of_entry(db, alice):
    job = requests.create_request(db, {"title": "job"}, alice)
    ledger.add_entry(db, job.id, alice.id, dt.date(2024, 1, 5), 1)
    profiles.update_profile(db, alice.id, "Alice Archer")

    assert build_report(db, JANUARY).rows[0].team_member == "Alice Adams"


def test_entries_of_deleted_requests_are_excluded(db, alice):
    kept = requests.create_request(db, {"title": "kept"}, alice)
    gone = requests.create_request(db, {"title": "gone"}, alice)
    ledger.add_entry(db, kept.id, alice.id, dt.date(2024, 1, 5), 1)
    ledger.add_entry(db, gone.id, alice.id, dt.date(2024, 1, 5), 4)

    requests.delete_request(db, gone.id, alice)

    report = build_report(db, JANUARY)
    assert [row.request_id for row in report.rows] == [kept.id]
    assert report.total_hours == Decimal("1")
    # The orphan itself is untouched
    assert ledger.total_for(db, gone.id) == Decimal("4")


def test_report_is_read_only(db, alice):
    job = requests.create_request(db, {"title": "job"}, alice)
    entry = ledger.add_entry(db, job.id, alice.id, dt.date(2024, 1, 5), 1)
    before = ledger.get_entry(db, entry.id).model_dump()

    build_report(db, JANUARY, mode=ReportMode.AGGREGATED)

    assert ledger.get_entry(db, entry.id).model_dump() == before


def test_sort_by_date_and_request_number(db, alice):
    first = requests.create_request(db, {"title": "first"}, alice)
    second = requests.create_request(db, {"title": "second"}, alice)
    ledger.add_entry(db, second.id, alice.id, dt.date(2024, 1, 3), 1)
    ledger.add_entry(db, first.id, alice.id, dt.date(2024, 1, 9), 1)

    newest_first = build_report(db, JANUARY)
    assert [row.date.day for row in newest_first.rows] == [9, 3]

    oldest_first = build_report(db, JANUARY, direction=SortDirection.ASC)
    assert [row.date.day for row in oldest_first.rows] == [3, 9]

    by_number = build_report(db, JANUARY, sort_field=SortField.REQUEST_NUMBER, direction="asc")
    assert [row.request_number for row in by_number.rows] == ["0001", "0002"]


def _row(number, day, hours="1", user="u1", request_id=None, notes=""):
    return ReportRow(
        request_id=request_id or f"r{number}",
        request_number=number,
        team_member=user.upper(),
        user_id=user,
        client=NO_CLIENT,
        hours_spent=Decimal(hours),
        date=dt.date(2024, 1, day),
        notes=notes,
    )


def test_sort_request_numbers_numerically_past_9999():
    rows = [_row("10000", 1), _row("9999", 2), _row("0002", 3)]
    ordered = sort_rows(rows, SortField.REQUEST_NUMBER, SortDirection.ASC)
    assert [row.request_number for row in ordered] == ["0002", "9999", "10000"]


def test_sort_is_stable_for_equal_keys():
    rows = [_row("0001", 5, notes="a"), _row("0002", 5, notes="b"), _row("0003", 5, notes="c")]
    assert [row.notes for row in sort_rows(rows, "date", "asc")] == ["a", "b", "c"]
    assert [row.notes for row in sort_rows(rows, "date", "desc")] == ["a", "b", "c"]


def test_aggregate_rows_groups_by_request_and_member():
    rows = [
        _row("0001", 2, "1.25", notes="draft"),
        _row("0001", 4, "2", notes=""),
        _row("0001", 3, "1", user="u2"),
        _row("0002", 1, "5"),
    ]

    aggregated = aggregate_rows(rows)

    assert [(row.request_number, row.user_id, row.hours_spent) for row in aggregated] == [
        ("0002", "u1", Decimal("5")),
        ("0001", "u1", Decimal("3.25")),
        ("0001", "u2", Decimal("1")),
    ]
    assert aggregated[1].date == dt.date(2024, 1, 4)
    assert aggregated[1].notes == "draft"


def test_aggregated_mode_total_matches_entries_mode(db, alice, bob):
    job = requests.create_request(db, {"title": "job"}, alice)
    ledger.add_entry(db, job.id, alice.id, dt.date(2024, 1, 5), 1.5)
    ledger.add_entry(db, job.id, alice.id, dt.date(2024, 1, 6), 2)
    ledger.add_entry(db, job.id, bob.id, dt.date(2024, 1, 6), 0.25)

    entries = build_report(db, JANUARY)
    aggregated = build_report(db, JANUARY, mode="aggregated")

    assert len(aggregated.rows) == 2
    assert aggregated.total_hours == entries.total_hours == Decimal("3.75")


def test_default_date_ranges():
    today = dt.date(2024, 2, 14)

    team = default_date_range(GroupKind.ALL, today)
    assert team.start == dt.date(2024, 1, 15)
    assert team.end == today

    member = default_date_range("member", today)
    assert member == team

    client = default_date_range(GroupKind.CLIENT, today)
    assert client.start == dt.date(2024, 2, 1)
    assert client.end == dt.date(2024, 2, 29)


def test_entries_logged_in_the_same_instant_keep_insertion_order(db, alice):
    job = requests.create_request(db, {"title": "job"}, alice)
    notes = [f"pass {n}" for n in range(1, 7)]
    entries = [ledger.add_entry(db, job.id, alice.id, dt.date(2024, 1, 5), 1, notes=n) for n in notes]
    assert [entry.seq for entry in entries] == [1, 2, 3, 4, 5, 6]

    for entry in entries:
        entry.created_at = "2024-01-05T09:00:00+00:00"
        db.add(entry)
    db.commit()

    report = build_report(db, JANUARY)
    assert [row.notes for row in report.rows] == notes

    aggregated = build_report(db, JANUARY, mode=ReportMode.AGGREGATED)
    assert [row.notes for row in aggregated.rows] == ["pass 6"]

    assert [entry.notes for entry in ledger.list_entries(db, job.id)] == notes[::-1]

"""Tests for the shared workflow layer."""

from dataclasses import replace
from datetime import date, time
from itertools import count
from pathlib import Path

import pytest

from almanac.adapters.json_store import JsonEventStore
from almanac.config import DATA_DIR, Config
from almanac.core.errors import (
    EventNotFound,
    InvalidRecurrenceRule,
    InvalidTimeRange,
    OverlapDetected,
)
from almanac.core.events import EventTemplate, Frequency, RecurrenceRule
from almanac.workflows import (
    create_event,
    delete_event,
    delete_series,
    edit_instance,
    edit_series,
    get_notification_log,
    get_store,
    horizon_for,
    list_events,
    series_instances,
    series_template,
)


@pytest.fixture
def store(tmp_path):
    return JsonEventStore(tmp_path / "events.json")


@pytest.fixture
def ids():
    counter = count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def make_template():
    def _make(
        title: str = "Meeting",
        on_date: date = date(2024, 5, 20),
        start: time = time(10, 0),
        end: time = time(11, 0),
        recurrence: RecurrenceRule | None = None,
    ) -> EventTemplate:
        return EventTemplate(
            title=title,
            date=on_date,
            start_time=start,
            end_time=end,
            recurrence=recurrence or RecurrenceRule(),
        )
    return _make


@pytest.fixture
def weekly():
    return RecurrenceRule(Frequency.WEEKLY, 1, date(2024, 6, 10))


class TestStoreResolution:
    def test_uses_configured_dir(self, tmp_path):
        config = Config(data_dir=str(tmp_path))
        assert get_store(config).path == tmp_path / "events.json"
        assert get_notification_log(config).path == tmp_path / "notified.json"

    def test_expands_user_path(self):
        config = Config(data_dir="~/some/almanac")
        assert config.data_path == Path.home() / "some" / "almanac"

    def test_falls_back_to_default(self):
        assert Config().data_path == DATA_DIR

    def test_horizon_for(self):
        assert horizon_for(Config(horizon_years=2), date(2024, 5, 1)) == date(2026, 12, 31)


class TestCreateEvent:
    def test_single_event(self, store, make_template, ids):
        created = create_event(store, make_template(), id_factory=ids)
        assert len(created) == 1
        assert created[0].series_id is None
        assert store.list() == created

    def test_recurring_series(self, store, make_template, weekly, ids):
        created = create_event(store, make_template(recurrence=weekly), id_factory=ids)
        assert [e.date for e in created] == [
            date(2024, 5, 20),
            date(2024, 5, 27),
            date(2024, 6, 3),
            date(2024, 6, 10),
        ]
        assert len({e.series_id for e in created}) == 1
        assert len(store.list()) == 4

    def test_overlap_raises_without_writing(self, store, make_template, ids):
        create_event(store, make_template("First"), id_factory=ids)

        with pytest.raises(OverlapDetected) as exc_info:
            create_event(store, make_template("Second", start=time(10, 30), end=time(11, 30)), id_factory=ids)

        assert [c.title for c in exc_info.value.conflicts] == ["First"]
        assert [e.title for e in store.list()] == ["First"]

    def test_overlap_confirmed(self, store, make_template, ids):
        create_event(store, make_template("First"), id_factory=ids)
        create_event(
            store,
            make_template("Second", start=time(10, 30), end=time(11, 30)),
            confirm_overlap=True,
            id_factory=ids,
        )
        assert len(store.list()) == 2

    def test_back_to_back_is_allowed(self, store, make_template, ids):
        create_event(store, make_template("First"), id_factory=ids)
        create_event(store, make_template("Second", start=time(11, 0), end=time(12, 0)), id_factory=ids)
        assert len(store.list()) == 2

    def test_recurring_creation_skips_overlap_check(self, store, make_template, weekly, ids):
        create_event(store, make_template("Single"), id_factory=ids)
        created = create_event(store, make_template("Series", recurrence=weekly), id_factory=ids)
        assert len(created) == 4
        assert len(store.list()) == 5

    def test_overlap_checked_against_other_store_objects(self, store, make_template, ids):
        """Each command opens its own store; checks still see the shared file."""
        create_event(store, make_template("First"), id_factory=ids)
        other = JsonEventStore(store.path)

        with pytest.raises(OverlapDetected):
            create_event(other, make_template("Second", start=time(10, 30), end=time(11, 30)), id_factory=ids)
        assert [e.title for e in store.list()] == ["First"]

    def test_invalid_time_range_writes_nothing(self, store, make_template):
        with pytest.raises(InvalidTimeRange):
            create_event(store, make_template(start=time(11, 0), end=time(10, 0)))
        assert store.list() == []

    def test_invalid_rule_writes_nothing(self, store, make_template):
        rule = RecurrenceRule(Frequency.DAILY, 0)
        with pytest.raises(InvalidRecurrenceRule):
            create_event(store, make_template(recurrence=rule))
        assert store.list() == []

    def test_horizon(self, store, make_template, ids):
        rule = RecurrenceRule(Frequency.DAILY)
        created = create_event(
            store, make_template(recurrence=rule), horizon_end=date(2024, 5, 22), id_factory=ids
        )
        assert len(created) == 3


class TestEditInstance:
    def test_edit_in_place(self, store, make_template, ids):
        [event] = create_event(store, make_template(), id_factory=ids)
        updated = edit_instance(store, event.id, make_template("Renamed"))
        assert updated.id == event.id
        assert store.get(event.id).title == "Renamed"

    def test_unchanged_edit_does_not_conflict_with_itself(self, store, make_template, ids):
        [event] = create_event(store, make_template(), id_factory=ids)
        edit_instance(store, event.id, make_template())

    def test_edit_into_overlap(self, store, make_template, ids):
        create_event(store, make_template("First"), id_factory=ids)
        [second] = create_event(store, make_template("Second", start=time(12, 0), end=time(13, 0)), id_factory=ids)

        moved = make_template("Second", start=time(10, 30), end=time(11, 30))
        with pytest.raises(OverlapDetected):
            edit_instance(store, second.id, moved)
        assert store.get(second.id).start_time == time(12, 0)

        edit_instance(store, second.id, moved, confirm_overlap=True)
        assert store.get(second.id).start_time == time(10, 30)

    def test_single_occurrence_stays_in_series(self, store, make_template, weekly, ids):
        created = create_event(store, make_template(recurrence=weekly), id_factory=ids)
        target = created[1]

        edit_instance(store, target.id, replace(target.to_template(), title="Moved"))

        assert store.get(target.id).series_id == target.series_id
        titles = [e.title for e in series_instances(store, target.series_id)]
        assert titles == ["Meeting", "Moved", "Meeting", "Meeting"]

    def test_invalid_edit(self, store, make_template, ids):
        [event] = create_event(store, make_template(), id_factory=ids)
        with pytest.raises(InvalidTimeRange):
            edit_instance(store, event.id, make_template(start=time(12, 0), end=time(9, 0)))
        assert store.get(event.id).start_time == time(10, 0)

    def test_missing(self, store, make_template):
        with pytest.raises(EventNotFound):
            edit_instance(store, "nope", make_template())


class TestEditSeries:
    def test_replaces_every_instance(self, store, make_template, weekly, ids):
        created = create_event(store, make_template(recurrence=weekly), id_factory=ids)
        series_id = created[0].series_id

        new_template = make_template("Team sync", start=time(14, 0), end=time(15, 0), recurrence=weekly)
        replaced = edit_series(store, series_id, new_template, id_factory=ids)

        remaining = series_instances(store, series_id)
        assert remaining == replaced
        assert {e.title for e in remaining} == {"Team sync"}
        assert {e.start_time for e in remaining} == {time(14, 0)}
        assert not {e.id for e in created} & {e.id for e in remaining}

    def test_changing_frequency(self, store, make_template, weekly, ids):
        created = create_event(store, make_template(recurrence=weekly), id_factory=ids)
        series_id = created[0].series_id

        daily = RecurrenceRule(Frequency.DAILY, 1, date(2024, 5, 22))
        edit_series(store, series_id, make_template(recurrence=daily), id_factory=ids)

        assert [e.date for e in series_instances(store, series_id)] == [
            date(2024, 5, 20),
            date(2024, 5, 21),
            date(2024, 5, 22),
        ]

    def test_leaves_other_events(self, store, make_template, weekly, ids):
        create_event(store, make_template("Other", start=time(8, 0), end=time(9, 0)), id_factory=ids)
        created = create_event(store, make_template(recurrence=weekly), id_factory=ids)
        edit_series(store, created[0].series_id, make_template("New", recurrence=weekly), id_factory=ids)
        assert [e.title for e in store.list() if e.series_id is None] == ["Other"]

    def test_single_edit_does_not_move_series_anchor(self, store, make_template, ids):
        rule = RecurrenceRule(Frequency.WEEKLY, 1, date(2024, 1, 29))
        created = create_event(store, make_template(on_date=date(2024, 1, 1), recurrence=rule), id_factory=ids)
        series_id = created[0].series_id

        first = created[0].to_template()
        edit_instance(store, created[0].id, replace(first, title="Moved", date=date(2024, 1, 3)))

        template = series_template(store, series_id)
        assert template.date == date(2024, 1, 1)
        assert template.title == "Meeting"

        edit_series(store, series_id, replace(template, title="Renamed"), id_factory=ids)

        remaining = series_instances(store, series_id)
        assert [e.date for e in remaining] == [
            date(2024, 1, 1),
            date(2024, 1, 8),
            date(2024, 1, 15),
            date(2024, 1, 22),
            date(2024, 1, 29),
        ]
        assert {e.title for e in remaining} == {"Renamed"}

    def test_series_template_follows_series_edit(self, store, make_template, weekly, ids):
        created = create_event(store, make_template(recurrence=weekly), id_factory=ids)
        series_id = created[0].series_id
        edit_series(store, series_id, make_template("Team sync", on_date=date(2024, 5, 21), recurrence=weekly))
        assert series_template(store, series_id).date == date(2024, 5, 21)

    def test_series_expanding_to_nothing_is_removed(self, store, make_template, weekly, ids):
        created = create_event(store, make_template(recurrence=weekly), id_factory=ids)
        series_id = created[0].series_id

        result = edit_series(store, series_id, make_template(recurrence=weekly), horizon_end=date(2024, 1, 1))

        assert result == []
        assert series_instances(store, series_id) == []
        with pytest.raises(EventNotFound):
            series_template(store, series_id)

    def test_missing_series(self, store, make_template, weekly):
        with pytest.raises(EventNotFound):
            edit_series(store, "nope", make_template(recurrence=weekly))

    def test_series_template(self, store, make_template, weekly, ids):
        created = create_event(store, make_template(recurrence=weekly), id_factory=ids)
        template = series_template(store, created[0].series_id)
        assert template.date == date(2024, 5, 20)
        assert template.recurrence == weekly


class TestDelete:
    def test_delete_single_occurrence(self, store, make_template, weekly, ids):
        created = create_event(store, make_template(recurrence=weekly), id_factory=ids)
        delete_event(store, created[0].id)
        assert len(series_instances(store, created[0].series_id)) == 3

    def test_delete_series(self, store, make_template, weekly, ids):
        create_event(store, make_template("Keep", start=time(8, 0), end=time(9, 0)), id_factory=ids)
        created = create_event(store, make_template(recurrence=weekly), id_factory=ids)
        assert delete_series(store, created[0].series_id) == 4
        assert [e.title for e in store.list()] == ["Keep"]

    def test_delete_missing_series(self, store):
        with pytest.raises(EventNotFound):
            delete_series(store, "nope")

    def test_delete_missing_event(self, store):
        with pytest.raises(EventNotFound):
            delete_event(store, "nope")


class TestListEvents:
    def test_view_and_search(self, store, make_template, ids):
        create_event(store, make_template("Design review", on_date=date(2024, 5, 20)), id_factory=ids)
        create_event(store, make_template("Dev standup", on_date=date(2024, 5, 21)), id_factory=ids)
        create_event(store, make_template("Design sync", on_date=date(2024, 6, 3)), id_factory=ids)

        month = list_events(store, current=date(2024, 5, 1), view="month", term="design")
        assert [e.title for e in month] == ["Design review"]

        everything = list_events(store, term="design")
        assert [e.title for e in everything] == ["Design review", "Design sync"]

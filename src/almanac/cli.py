"""Almanac CLI - personal calendar."""

import asyncio
import json
import logging
import sys
from dataclasses import replace
from datetime import date, datetime

import click

from .config import load_config
from .core.dates import (
    format_date,
    format_month,
    format_week,
    month_grid,
    parse_date,
    parse_time,
)
from .core.errors import CalendarError, OverlapDetected
from .core.events import (
    NOTIFICATION_CHOICES,
    Category,
    EventInstance,
    EventTemplate,
    Frequency,
    RecurrenceRule,
)
from .core.notifications import due_notifications, next_notification_at, notification_message
from .core.search import events_for_day
from .ports.holiday_source import HolidaySource
from .workflows import (
    create_event,
    delete_event,
    delete_series,
    edit_instance,
    edit_series,
    get_notification_log,
    get_store,
    horizon_for,
    list_events,
    series_template,
)

WEEKDAY_HEADER = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def _date_option(ctx, param, value):
    if value is None:
        return None
    try:
        return parse_date(value)
    except CalendarError as e:
        raise click.BadParameter(str(e))


def _time_option(ctx, param, value):
    if value is None:
        return None
    try:
        return parse_time(value)
    except CalendarError as e:
        raise click.BadParameter(str(e))


def _fail(e: Exception | str) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


def _show_events(events: list[EventInstance], as_json: bool, empty_msg: str = "No events.") -> None:
    """Shared event display logic."""
    if as_json:
        click.echo(json.dumps([e.to_dict() for e in events], indent=2))
        return

    if not events:
        click.echo(empty_msg)
        return

    current_date = None
    for event in events:
        if event.date != current_date:
            if current_date is not None:
                click.echo()
            click.echo(f"### {event.date.strftime('%A, %B %d, %Y')}")
            current_date = event.date

        loc = f" @ {event.location}" if event.location else ""
        repeat = f" ↻ {event.recurrence.describe()}" if event.is_recurring else ""
        click.echo(f"  {event.format_time():11} {event.title}{loc} [{event.category.value}]{repeat}")
        click.echo(f"  {'':11} id={event.id}" + (f" series={event.series_id}" if event.series_id else ""))


def _holiday_source(country: str) -> HolidaySource | None:
    if not country:
        return None
    from .adapters.holiday_api import NagerHolidayAdapter

    return NagerHolidayAdapter(country)


def _show_conflicts(error: OverlapDetected) -> None:
    click.echo("This event overlaps with:", err=True)
    for c in error.conflicts:
        click.echo(f"  {format_date(c.date)} {c.format_time()} {c.title}", err=True)


def event_options(f):
    """Options shared by add/edit commands. All default to None so edits only touch what's given."""
    options = [
        click.option("--title", "-t", default=None, help="Event title"),
        click.option("--date", "-d", "on_date", default=None, callback=_date_option,
                     help="Date (YYYY-MM-DD)"),
        click.option("--start", "start_time", default=None, callback=_time_option,
                     help="Start time (HH:MM)"),
        click.option("--end", "end_time", default=None, callback=_time_option,
                     help="End time (HH:MM)"),
        click.option("--description", default=None, help="Description"),
        click.option("--location", default=None, help="Location"),
        click.option("--category", type=click.Choice([c.value for c in Category]), default=None),
        click.option("--notify", "notification_minutes", type=click.IntRange(min=0), default=None,
                     help=f"Minutes before start to notify, 0 for none "
                          f"(presets: {', '.join(map(str, NOTIFICATION_CHOICES))})"),
        click.option("--force", is_flag=True, help="Save even if the event overlaps others"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def recurrence_options(f):
    options = [
        click.option("--repeat", type=click.Choice([fr.value for fr in Frequency]), default=None,
                     help="Repeat frequency"),
        click.option("--interval", type=int, default=None, help="Repeat every N days/weeks/..."),
        click.option("--until", "end_date", default=None, callback=_date_option,
                     help="Last date of the series (YYYY-MM-DD)"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _apply_changes(template: EventTemplate, **changes) -> EventTemplate:
    """Overlay the given (non-None) fields on a template."""
    if changes.get("category") is not None:
        changes["category"] = Category(changes["category"])
    if changes.get("on_date") is not None:
        changes["date"] = changes["on_date"]
    changes.pop("on_date", None)
    return replace(template, **{k: v for k, v in changes.items() if v is not None})


def _apply_recurrence(rule: RecurrenceRule, repeat, interval, end_date) -> RecurrenceRule:
    if repeat is not None:
        rule = replace(rule, frequency=Frequency(repeat))
    if interval is not None:
        rule = replace(rule, interval=interval)
    if end_date is not None:
        rule = replace(rule, end_date=end_date)
    return rule


@click.group()
@click.version_option(package_name="almanac")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Almanac - personal calendar."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


@main.command()
@event_options
@recurrence_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def add(title, on_date, start_time, end_time, description, location, category,
        notification_minutes, force, repeat, interval, end_date, as_json):
    """Create an event or recurring series."""
    config = load_config()
    if title is None or start_time is None or end_time is None:
        _fail(click.UsageError("--title, --start and --end are required"))

    on_date = on_date or date.today()
    template = EventTemplate(
        title=title,
        date=on_date,
        start_time=start_time,
        end_time=end_time,
        description=description or "",
        location=location or "",
        category=Category(category) if category else Category.WORK,
        recurrence=_apply_recurrence(RecurrenceRule(), repeat, interval, end_date),
        notification_minutes=(
            notification_minutes if notification_minutes is not None
            else config.default_notification_minutes
        ),
    )

    store = get_store(config)
    horizon = horizon_for(config, on_date)
    try:
        try:
            created = create_event(store, template, confirm_overlap=force, horizon_end=horizon)
        except OverlapDetected as e:
            _show_conflicts(e)
            if not click.confirm("Save anyway?"):
                click.echo("Not saved.")
                return
            created = create_event(store, template, confirm_overlap=True, horizon_end=horizon)
    except (CalendarError, RuntimeError) as e:
        _fail(e)

    if as_json:
        _show_events(created, as_json=True)
    elif len(created) == 1:
        click.echo(f"✓ Created {created[0].title} on {format_date(created[0].date)} (id={created[0].id})")
    elif created:
        click.echo(
            f"✓ Created {len(created)} occurrences of {template.title}, "
            f"{format_date(created[0].date)} to {format_date(created[-1].date)} "
            f"(series={created[0].series_id})"
        )
    else:
        click.echo("No occurrences fall within the horizon; nothing created.")


@main.command("list")
@click.option("--date", "-d", "on_date", default=None, callback=_date_option,
              help="Date inside the week/month to show (YYYY-MM-DD), defaults to today")
@click.option("--view", type=click.Choice(["week", "month", "all"]), default="month")
@click.option("--search", "-s", "term", default="", help="Filter by title, description or location")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_cmd(on_date, view, term, as_json):
    """List events in a week or month."""
    config = load_config()
    current = on_date or date.today()
    try:
        events = list_events(
            get_store(config),
            current=current,
            view=None if view == "all" else view,
            term=term,
        )
    except RuntimeError as e:
        _fail(e)

    if not as_json and view != "all":
        heading = format_week(current) if view == "week" else format_month(current)
        click.echo(f"{heading}\n")
    empty = "No matching events." if term else "No events."
    _show_events(events, as_json, empty)


@main.command()
@click.option("--date", "-d", "on_date", default=None, callback=_date_option,
              help="Any date in the month (YYYY-MM-DD), defaults to today")
def month(on_date):
    """Show a month grid with event counts and holidays."""
    config = load_config()
    current = on_date or date.today()
    try:
        events = list_events(get_store(config), current=current, view="month")
    except RuntimeError as e:
        _fail(e)

    source = _holiday_source(config.holiday_country)
    holidays = source.holidays(current.year) if source else {}

    click.echo(format_month(current).center(7 * 6))
    click.echo("".join(f"{d:>6}" for d in WEEKDAY_HEADER))
    for week in month_grid(current):
        cells = []
        for day in week:
            if day is None:
                cells.append(" " * 6)
                continue
            d = current.replace(day=day)
            count = len(events_for_day(events, d))
            marker = "*" if d in holidays else " "
            cells.append(f"{day:>3}{marker}{count if count else '':<2}")
        click.echo("".join(cells))

    month_holidays = sorted((d, name) for d, name in holidays.items() if d.month == current.month)
    if month_holidays:
        click.echo()
        for d, name in month_holidays:
            click.echo(f"  * {format_date(d)} {name}")


@main.command()
@click.argument("event_id")
@event_options
def edit(event_id, title, on_date, start_time, end_time, description, location, category,
         notification_minutes, force):
    """Edit a single event (one occurrence of a series stays linked)."""
    config = load_config()
    store = get_store(config)
    try:
        existing = store.get(event_id)
        if existing is None:
            _fail(f"No event with id {event_id}")
        template = _apply_changes(
            existing.to_template(),
            title=title, on_date=on_date, start_time=start_time, end_time=end_time,
            description=description, location=location, category=category,
            notification_minutes=notification_minutes,
        )
        try:
            updated = edit_instance(store, event_id, template, confirm_overlap=force)
        except OverlapDetected as e:
            _show_conflicts(e)
            if not click.confirm("Save anyway?"):
                click.echo("Not saved.")
                return
            updated = edit_instance(store, event_id, template, confirm_overlap=True)
    except (CalendarError, RuntimeError) as e:
        _fail(e)

    click.echo(f"✓ Updated {updated.title} on {format_date(updated.date)} {updated.format_time()}")


@main.command("edit-series")
@click.argument("series_id")
@event_options
@recurrence_options
def edit_series_cmd(series_id, title, on_date, start_time, end_time, description, location,
                    category, notification_minutes, force, repeat, interval, end_date):
    """Edit every occurrence of a series."""
    config = load_config()
    store = get_store(config)
    try:
        template = _apply_changes(
            series_template(store, series_id),
            title=title, on_date=on_date, start_time=start_time, end_time=end_time,
            description=description, location=location, category=category,
            notification_minutes=notification_minutes,
        )
        template = replace(
            template,
            recurrence=_apply_recurrence(template.recurrence, repeat, interval, end_date),
        )
        instances = edit_series(
            store, series_id, template, horizon_end=horizon_for(config, template.date)
        )
    except (CalendarError, RuntimeError) as e:
        _fail(e)

    click.echo(f"✓ Series now has {len(instances)} occurrence(s)")


@main.command()
@click.argument("event_id")
@click.option("--series", is_flag=True, help="Treat the id as a series id and delete every occurrence")
def delete(event_id, series):
    """Delete an event, or a whole series with --series."""
    config = load_config()
    store = get_store(config)
    try:
        if series:
            removed = delete_series(store, event_id)
            click.echo(f"✓ Deleted {removed} occurrence(s)")
        else:
            delete_event(store, event_id)
            click.echo("✓ Deleted")
    except (CalendarError, RuntimeError) as e:
        _fail(e)


@main.command()
@click.option("--at", "at_time", default=None, help="Evaluate at YYYY-MM-DDTHH:MM instead of now")
@click.option("--mark", is_flag=True, help="Record the due events as notified")
def due(at_time, mark):
    """Show events whose notification window is open."""
    config = load_config()
    try:
        now = datetime.fromisoformat(at_time) if at_time else datetime.now()
    except ValueError:
        _fail(f"Invalid --at value: {at_time}")

    log = get_notification_log(config)
    with log.lock:
        notified = log.load()
        try:
            events = get_store(config).list()
        except RuntimeError as e:
            _fail(e)

        due_events = due_notifications(now, events, notified)
        if mark and due_events:
            log.record([e.id for e in due_events])

    if not due_events:
        click.echo("No notifications due.")
        next_at = next_notification_at(now, events, notified)
        if next_at:
            click.echo(f"Next notification at {next_at.strftime('%Y-%m-%d %H:%M')}.")
        return

    for event in due_events:
        click.echo(f"🔔 {notification_message(event)} ({event.start.strftime('%H:%M')})")


@main.command()
def watch():
    """Poll for notifications until interrupted."""
    from .scheduler import run_watcher

    config = load_config()
    click.echo(f"Watching for notifications every {config.poll_seconds}s")
    click.echo("Press Ctrl+C to stop")
    try:
        run_watcher(config)
    except ValueError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except (KeyboardInterrupt, asyncio.CancelledError):
        click.echo("\nStopped.")


@main.command()
@click.option("--year", type=int, default=None, help="Year, defaults to this year")
@click.option("--country", default=None, help="ISO country code, defaults to HOLIDAY_COUNTRY")
def holidays(year, country):
    """List public holidays."""
    config = load_config()
    source = _holiday_source(country or config.holiday_country)
    if source is None:
        _fail("No country given. Pass --country or set HOLIDAY_COUNTRY in almanac.conf")

    result = source.holidays(year or date.today().year)
    if not result:
        click.echo("No holidays found.")
        return
    for d, name in sorted(result.items()):
        click.echo(f"{format_date(d)}  {name}")


if __name__ == "__main__":
    main()

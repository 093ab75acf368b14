"""CLI tools for calendar administration."""

from datetime import date, datetime
from uuid import UUID

import click

from booking_api.db.enums import TimeperiodType
from booking_api.db.session import SessionLocal
from booking_api.services import availability_service, calendar_service
from booking_api.services.errors import SchedulingError


@click.group()
def cli():
    """Booking CLI tools."""
    pass


@cli.command()
@click.option("--name", required=True, help="Location name")
def create_location(name: str):
    """
    Create a location.

    Example:
        python -m booking_api.cli create-location --name "Downtown"
    """
    db = SessionLocal()
    try:
        location = calendar_service.create_location(db, name=name)
        db.commit()
        click.echo(f"✓ Created location: {location.name}")
        click.echo(f"  ID: {location.id}")
    finally:
        db.close()


@cli.command()
@click.option("--name", required=True, help="Calendar name (staff member, chair, room)")
@click.option("--location-id", type=click.UUID, default=None, help="Owning location")
@click.option("--color", default=None, help="Hex display color, e.g. #FFAA00")
def create_calendar(name: str, location_id: UUID | None, color: str | None):
    """Create a calendar, optionally attached to a location."""
    db = SessionLocal()
    try:
        calendar = calendar_service.create_calendar(
            db, name=name, location_id=location_id, color=color
        )
        db.commit()
        click.echo(f"✓ Created calendar: {calendar.name}")
        click.echo(f"  ID: {calendar.id}")
    except SchedulingError as e:
        db.rollback()
        raise click.ClickException(str(e))
    finally:
        db.close()


@cli.command()
@click.option("--calendar-id", type=click.UUID, required=True)
@click.option(
    "--type",
    "period_type",
    type=click.Choice([t.value for t in TimeperiodType]),
    default=TimeperiodType.WORKING_HOUR.value,
    show_default=True,
)
@click.option("--start", type=click.DateTime(), required=True, help="UTC start, e.g. 2030-01-07T09:00:00")
@click.option("--end", type=click.DateTime(), required=True, help="UTC end")
@click.option("--title", default=None)
def add_period(
    calendar_id: UUID,
    period_type: str,
    start: datetime,
    end: datetime,
    title: str | None,
):
    """Add working hours, a break, a block, or time off to a calendar."""
    db = SessionLocal()
    try:
        period = calendar_service.create_timeperiod(
            db,
            calendar_id=calendar_id,
            type=period_type,
            start_at=start,
            end_at=end,
            title=title,
        )
        db.commit()
        click.echo(f"✓ Added {period.type} {period.start_at.isoformat()} - {period.end_at.isoformat()}")
        click.echo(f"  ID: {period.id}")
    except SchedulingError as e:
        db.rollback()
        raise click.ClickException(str(e))
    finally:
        db.close()


@cli.command()
@click.option("--calendar-id", type=click.UUID, required=True)
@click.option("--start", "date_start", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--end", "date_end", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
def availability(calendar_id: UUID, date_start: datetime | None, date_end: datetime | None):
    """Print free slot times per day for a calendar."""
    start_day: date | None = date_start.date() if date_start else None
    end_day: date | None = date_end.date() if date_end else None

    db = SessionLocal()
    try:
        days = availability_service.get_calendar_availability(db, calendar_id, start_day, end_day)
    except SchedulingError as e:
        raise click.ClickException(str(e))
    finally:
        db.close()

    if not days:
        click.echo("No working hours in range")
        return
    for day in days:
        slots = ", ".join(s.strftime("%H:%M") for s in day.slot_times) or "fully booked"
        click.echo(f"{day.date.isoformat()}: {slots}")


if __name__ == "__main__":
    cli()

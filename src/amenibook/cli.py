#!/usr/bin/env python3
"""
CLI for amenibook automated amenity booking.

Example usage:
    amenibook --amenities
    amenibook --check --amenity-id abc123 --date 2026-11-05 --unit 204
    amenibook --create one_time --email me@example.com --last-name Doe --unit 204 \\
        --amenity-id abc123 --date 2026-11-05 --time 18:00
    amenibook --create recurring --email me@example.com --last-name Doe --unit 204 \\
        --amenity-id abc123 --frequency weekly --time 18:00 --days 2,4
    amenibook --process
"""

import argparse
import sys
from datetime import date, datetime

from .api.base import BookingClientError
from .app import create_app
from .config import ConfigError, DEFAULT_CONFIG_PATH, load_config
from .daemon import configure_logging, run as run_daemon
from .jobs.models import BookingJob, is_valid_time
from .jobs.service import InvalidTransitionError, JobNotFoundError


def validate_date(date_str: str) -> str:
    """Validate date format and ensure it's not in the past."""
    try:
        res_date = datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        print(f"Error: Invalid date format '{date_str}'. Use YYYY-MM-DD.")
        sys.exit(1)

    if res_date < date.today():
        print(f"Error: Date '{date_str}' is in the past.")
        sys.exit(1)

    return date_str


def validate_time(time_str: str) -> str:
    if not is_valid_time(time_str):
        print(f"Error: Invalid time '{time_str}'. Use HH:MM (24-hour).")
        sys.exit(1)
    return time_str


def print_job(job: BookingJob) -> None:
    print(f"  {job.id}")
    print(f"    Amenity:  {job.amenity_name} ({job.amenity_id})")
    print(f"    Type:     {job.booking_type.value}")
    print(f"    Status:   {job.status.value}{'' if job.is_active else ' (inactive)'}")
    if job.target_date:
        print(f"    Target:   {job.target_date.isoformat()} {job.target_time}")
    if job.recurrence_frequency:
        days = ",".join(str(day) for day in sorted(job.preferred_days_of_week)) or "any"
        print(f"    Repeats:  {job.recurrence_frequency.value} at {job.preferred_time} (days: {days})")
        if job.end_date:
            print(f"    Until:    {job.end_date.isoformat()}")
    print(f"    Party:    {job.party_size}")
    print(f"    Booked:   {job.successful_bookings}  Failures: {job.failed_attempts}")
    if job.error_message:
        print(f"    Error:    {job.error_message}")
    for slot in job.booked_slots:
        print(f"    Slot:     {slot.booked_date} {slot.booked_time}  "
              f"reservation={slot.reservation_id} access={slot.access_code} (id {slot.id})")
    print()


def require_args(args, parser, names: dict) -> None:
    missing = [flag for flag, value in names.items() if value is None]
    if missing:
        parser.error(f"the following arguments are required: {', '.join(missing)}")


def create_job(app, args, parser) -> int:
    require_args(args, parser, {
        "--email": args.email,
        "--last-name": args.last_name,
        "--unit": args.unit,
        "--amenity-id": args.amenity_id,
        "--time": args.time,
    })
    validate_time(args.time)

    if args.guests is not None and args.guests < 1:
        parser.error("Party size must be at least 1.")

    amenity_name = args.amenity_name
    if amenity_name is None:
        amenity = app.client.get_amenity(args.amenity_id)
        if amenity is None:
            print(f"Error: Unknown amenity '{args.amenity_id}'. Use --amenities to list them.")
            return 1
        amenity_name = amenity.name

    fields = {
        "user_email": args.email,
        "user_last_name": args.last_name,
        "user_unit_number": args.unit,
        "amenity_id": args.amenity_id,
        "amenity_name": amenity_name,
        "booking_type": args.create,
        "party_size": args.guests,
    }

    if args.create == "one_time":
        require_args(args, parser, {"--date": args.date})
        fields["target_date"] = validate_date(args.date)
        fields["target_time"] = args.time
    else:
        require_args(args, parser, {"--frequency": args.frequency})
        fields["recurrence_frequency"] = args.frequency
        fields["preferred_time"] = args.time
        fields["preferred_days_of_week"] = args.days
        if args.end_date:
            fields["end_date"] = validate_date(args.end_date)

    job = app.service.create_job(**fields)
    print("Booking job created!")
    print_job(job)
    return 0


def list_amenities(app) -> int:
    amenities = app.client.list_amenities()
    if not amenities:
        print("No amenities found.")
        return 0

    print(f"Amenities ({len(amenities)}):\n")
    for amenity in amenities:
        print(f"  {amenity.name}")
        print(f"    ID:        {amenity.id}")
        print(f"    Max party: {amenity.max_party_size}  Capacity: {amenity.max_capacity}")
        print(f"    Limits:    {amenity.per_day_limit}/day, {amenity.per_week_limit}/week")
        print(f"    Waitlist:  {'yes' if amenity.waitlist_enabled else 'no'}")
        print()
    return 0


def check_availability(app, args, parser) -> int:
    require_args(args, parser, {"--amenity-id": args.amenity_id, "--date": args.date, "--unit": args.unit})
    validate_date(args.date)

    info = app.evaluator.check_for_user(args.amenity_id, args.date, args.guests or 1, args.unit)

    open_slots = [slot for slot in info.time_slots if slot.available_capacity > 0]
    print(f"Availability for {args.amenity_id} on {args.date}:")
    print(f"  Available: {'yes' if info.has_available_slots else 'no'}")
    print(f"  Waitlist:  {'yes' if info.has_waitlist else 'no'}")
    for slot in info.time_slots:
        print(f"    {slot.timeslot}  capacity {slot.available_capacity}")
    if not info.time_slots:
        print("  No time slots defined for this date.")
    return 0 if open_slots else 1


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="amenibook - Automated amenity booking",
        epilog="Example: amenibook --create recurring --email me@example.com --last-name Doe --unit 204 "
               "--amenity-id abc123 --frequency weekly --time 18:00 --days 2",
    )
    parser.add_argument("--config", default=None,
                        help=f"Path to config.json (default: {DEFAULT_CONFIG_PATH})")

    # Platform lookups
    parser.add_argument("--amenities", action="store_true",
                        help="List bookable amenities")
    parser.add_argument("--check", action="store_true",
                        help="Check availability for --amenity-id on --date with your real unit number")
    parser.add_argument("--date-filters", action="store_true",
                        help="Show the platform's date filters for --amenity-id from --date")

    # Job management
    parser.add_argument("--create", choices=["one_time", "recurring"],
                        help="Create a booking job")
    parser.add_argument("--list-jobs", action="store_true",
                        help="List booking jobs for --email")
    parser.add_argument("--pause-job", metavar="JOB_ID", help="Pause a booking job")
    parser.add_argument("--resume-job", metavar="JOB_ID", help="Resume a paused or failed booking job")
    parser.add_argument("--delete-job", metavar="JOB_ID", help="Delete a booking job and its slots")
    parser.add_argument("--delete-slot", metavar="SLOT_ID", help="Delete a single booked slot")

    # Processing
    parser.add_argument("--process", action="store_true",
                        help="Run one processing pass over all active jobs now")
    parser.add_argument("--daemon", action="store_true",
                        help="Run the scheduler until interrupted")

    # Job fields
    parser.add_argument("--email", help="Your email address")
    parser.add_argument("--last-name", help="Your last name as registered with the property")
    parser.add_argument("--unit", help="Your unit number")
    parser.add_argument("--amenity-id", help="Amenity ID (see --amenities)")
    parser.add_argument("--amenity-name", help="Amenity name (looked up if omitted)")
    parser.add_argument("--date", help="Target date in YYYY-MM-DD format")
    parser.add_argument("--time", help="Target or preferred time, e.g. '18:00'")
    parser.add_argument("--frequency", choices=["daily", "weekly", "monthly", "always"],
                        help="Recurrence frequency for recurring jobs")
    parser.add_argument("--days", help="Allowed days of week, comma-separated (0=Sunday .. 6=Saturday)")
    parser.add_argument("--end-date", help="Stop recurring bookings after this date (YYYY-MM-DD)")
    parser.add_argument("--guests", type=int, help="Party size (default: 1)")

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    configure_logging(config["log_level"], config.get("log_file"))

    if args.daemon:
        run_daemon(config)
        sys.exit(0)

    app = create_app(config)

    try:
        if args.amenities:
            code = list_amenities(app)
        elif args.check:
            code = check_availability(app, args, parser)
        elif args.date_filters:
            require_args(args, parser, {"--amenity-id": args.amenity_id, "--date": args.date})
            print(app.client.get_date_filters(args.amenity_id, args.date))
            code = 0
        elif args.create:
            code = create_job(app, args, parser)
        elif args.list_jobs:
            require_args(args, parser, {"--email": args.email})
            jobs = app.service.list_jobs_for_user(args.email)
            if not jobs:
                print("No booking jobs.")
            else:
                print(f"Booking jobs ({len(jobs)}):\n")
                for job in jobs:
                    print_job(job)
            code = 0
        elif args.pause_job:
            job = app.service.pause_job(args.pause_job)
            print(f"Paused: {job.id}")
            code = 0
        elif args.resume_job:
            job = app.service.resume_job(args.resume_job)
            print(f"Resumed: {job.id}")
            code = 0
        elif args.delete_job:
            deleted = app.service.delete_job(args.delete_job)
            print(f"Deleted: {args.delete_job}" if deleted else f"Booking job not found: {args.delete_job}")
            code = 0 if deleted else 1
        elif args.delete_slot:
            deleted = app.service.delete_booked_slot(args.delete_slot)
            print(f"Deleted slot: {args.delete_slot}" if deleted else f"Booked slot not found: {args.delete_slot}")
            code = 0 if deleted else 1
        elif args.process:
            summary = app.scheduler.trigger()
            print(f"Processed {summary['processed']} jobs: "
                  f"{summary['booked']} booked, {summary['failed']} failed")
            code = 0
        else:
            parser.print_help()
            code = 1
    except (BookingClientError, JobNotFoundError, InvalidTransitionError, ValueError) as e:
        print(f"Error: {e}")
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()

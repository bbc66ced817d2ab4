#!/usr/bin/env python
"""
CLI entry point for the availability engine.

Run this script directly against a tenant snapshot file:
    python availability/cli.py --tenant config/tenant.example.yaml --mode slots --date 2026-03-02

Execution Modes:
    --mode slots      Effective hours and bookable slot starts (default)
    --mode validate   Check one booking request
    --mode agenda     Day grid with the reservations starting in each slot

Options via environment variables:
    BOOKING_STRICT_MODE=1                 Reject when configuration is missing
    BOOKING_PAST_GRACE_MINUTES=5          Minutes in the past still accepted
    BOOKING_DEFAULT_DURATION_MINUTES=60   Duration when nothing else defines one
    AGENDA_LOG_LEVEL=DEBUG                Per-check tracing

Command line arguments:
    --tenant, -t      Tenant YAML file (profile, reservations, engine)
    --mode, -m        slots | validate | agenda (default: slots)
    --date, -d        Date "YYYY-MM-DD" (default: today)
    --time            Start time "HH:MM" [validate mode only]
    --duration        Booking length in minutes (default: service or 60)
    --staff, -s       Staff id (default: business hours / auto-assign)
    --service         Service id
    --now             Override current time "YYYY-MM-DD HH:MM"
"""

import argparse
import sys
from datetime import date, datetime
from pathlib import Path

# Add project root to path for direct script execution
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from agenda_core.config_loader import load_tenant_file
from agenda_core.contracts.booking import BookingRequest
from agenda_core.logger import get_logger
from availability.booking_validator import BookingContext, request_duration, validate_booking
from availability.config import ENGINE_NAME, settings_from_mapping
from availability.conflict_detector import find_conflicts
from availability.day_agenda import available_slots, build_day_agenda, get_next_working_date
from availability.profile import normalize_business_profile, normalize_reservations
from availability.schedule_resolver import generate_slots_for_hours, resolve_effective_hours
from availability.service_catalog import format_duration, format_time_range, get_reservation_end_time
from availability.staff_selector import auto_select_staff, find_available_staff
from availability.time_arithmetic import add_minutes_to_time, format_date_id

logger = get_logger(__name__)

VALID_MODES = {"slots", "validate", "agenda"}


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Availability engine - inspect slots and validate bookings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  slots     Effective hours and bookable slot starts (default)
  validate  Check one booking request
  agenda    Day grid with reservations

Examples:
  # Slots for a staff member
  python cli.py -t tenant.yaml --date 2026-03-02 --staff s-ana

  # Validate a request, auto-assigning staff
  python cli.py -t tenant.yaml -m validate --date 2026-03-02 --time 10:30 --service corte
        """,
    )

    parser.add_argument(
        "-t", "--tenant",
        required=True,
        help="Tenant YAML file with profile, reservations and engine sections",
    )
    parser.add_argument(
        "-m", "--mode",
        choices=sorted(VALID_MODES),
        default="slots",
        help="Execution mode (default: slots)",
    )
    parser.add_argument(
        "-d", "--date",
        default=None,
        help="Date YYYY-MM-DD (default: today)",
    )
    parser.add_argument(
        "--time",
        default=None,
        help="Start time HH:MM [validate mode only]",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=None,
        help="Booking length in minutes (default: service duration or 60)",
    )
    parser.add_argument(
        "-s", "--staff",
        default=None,
        help="Staff id",
    )
    parser.add_argument(
        "--service",
        default=None,
        help="Service id",
    )
    parser.add_argument(
        "--now",
        default=None,
        help="Override current time as 'YYYY-MM-DD HH:MM'",
    )

    return parser.parse_args(argv)


def load_context(args) -> BookingContext:
    """Build a BookingContext from the tenant file and CLI options."""
    tenant = load_tenant_file(args.tenant)
    profile = normalize_business_profile(tenant["profile"])
    date_id = args.date or format_date_id(date.today())

    reservations = [
        r for r in normalize_reservations(tenant["reservations"])
        if r.get("date_id") == date_id
    ]
    now = datetime.strptime(args.now, "%Y-%m-%d %H:%M") if args.now else None

    return BookingContext(
        business_hours=profile["business_hours"] if profile else None,
        staff=profile["staff"] if profile else [],
        services=profile["services"] if profile else [],
        reservations=reservations,
        now=now,
        settings=settings_from_mapping(tenant["engine"]),
        client_id=profile["client_id"] if profile else None,
    )


def main(argv=None):
    """
    Main entry point.

    Returns:
        0 on success, 1 when the requested booking is rejected or the
        input is unusable.
    """
    args = parse_args(argv)

    try:
        context = load_context(args)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1

    date_id = args.date or format_date_id(date.today())

    logger.info("=" * 60)
    logger.info(f"Running {ENGINE_NAME}")
    logger.info(f"MODE: {args.mode.upper()}  DATE: {date_id}")
    logger.info("=" * 60)

    if args.mode == "validate":
        return _run_validate_mode(args, context, date_id)
    if args.mode == "agenda":
        return _run_agenda_mode(context, date_id)
    return _run_slots_mode(args, context, date_id)


def _run_slots_mode(args, context: BookingContext, date_id: str) -> int:
    """Log effective hours and the starts still bookable."""
    staff = context.find_staff(args.staff)
    if args.staff and staff is None:
        logger.error(f"Staff {args.staff} not found in roster")
        return 1

    hours = resolve_effective_hours(context.business_hours, date_id, staff)
    if hours is None:
        logger.info("  Closed this day")
        next_open = get_next_working_date(context.business_hours, date_id)
        if next_open is not None:
            logger.info(f"  Next working date: {format_date_id(next_open)}")
        return 0

    logger.info(f"  Hours: {format_time_range(hours['open'], hours['close'])} every {hours['slot_minutes']} min")
    all_slots = list(generate_slots_for_hours(hours))
    logger.info(f"  Slots ({len(all_slots)}): {', '.join(all_slots)}")

    if staff is not None:
        request = BookingRequest(duration_minutes=args.duration or 0, service_id=args.service or "")
        duration = request_duration(request, context)
        free = available_slots(
            staff, date_id, duration, context.business_hours, context.reservations,
            service_id=args.service, now=context.now, settings=context.settings,
        )
        logger.info(f"  Bookable for {staff.get('name') or staff['id']} ({format_duration(duration)}): {', '.join(free) or '(none)'}")
    return 0


def _run_validate_mode(args, context: BookingContext, date_id: str) -> int:
    """Validate one request and explain the decision."""
    if not args.time:
        logger.error("Validate mode requires --time")
        return 1

    request = BookingRequest(client_id=context.client_id or "", date_id=date_id, time=args.time)
    if args.duration:
        request["duration_minutes"] = args.duration
    if args.service:
        request["service_id"] = args.service
    if args.staff:
        request["staff_id"] = args.staff

    duration = request_duration(request, context)
    end_time = add_minutes_to_time(args.time, duration)
    logger.info(f"  Request: {format_time_range(args.time, end_time)} ({format_duration(duration)})")

    result = validate_booking(request, context)
    if not result.get("can_book"):
        logger.info(f"✗ Rejected [{result.get('code')}]: {result.get('reason')}")
        if args.staff:
            for conflict in find_conflicts(
                args.staff, date_id, args.time, end_time, context.reservations,
                default_duration=context.settings.default_duration_minutes,
            ):
                conflict_end = get_reservation_end_time(conflict, context.settings.default_duration_minutes)
                logger.info(
                    f"    Overlaps {conflict.get('name') or conflict.get('id')}: "
                    f"{format_time_range(conflict['time'], conflict_end)}"
                )
        return 1

    if not args.staff and context.staff:
        available = find_available_staff(
            context.staff, date_id, args.time, duration, context.business_hours,
            context.reservations, service_id=args.service, now=context.now, settings=context.settings,
        )
        selected = auto_select_staff(
            context.staff, date_id, args.time, duration, context.business_hours,
            context.reservations, service_id=args.service, now=context.now, settings=context.settings,
        )
        logger.info(f"  Available staff: {', '.join(m['id'] for m in available) or '(none)'}")
        if selected is None:
            logger.info("✗ Rejected [NO_STAFF_AVAILABLE]: No hay empleados disponibles en ese horario")
            return 1
        logger.info(f"  Auto-selected: {selected['id']}")

    logger.info("✓ Booking allowed")
    return 0


def _run_agenda_mode(context: BookingContext, date_id: str) -> int:
    """Log the day grid."""
    agenda = build_day_agenda(date_id, context.business_hours, context.reservations, context.staff)
    if agenda["closed"]:
        logger.info("  Closed this day")
        return 0

    for slot in agenda["slots"]:
        names = [
            f"{r.get('name') or r.get('id')} ({r.get('staff_name') or 'sin asignar'}, {r.get('status')})"
            for r in slot["reservations"]
        ]
        logger.info(f"  {slot['time']}  {'; '.join(names) or '-'}")
    return 0


if __name__ == "__main__":
    sys.exit(main() or 0)

"""Extend an offering's bookable schedule from a weekly JSON template.

The template file holds a list of ``{"day_of_week", "start_time", "end_time",
"capacity"}`` entries (``day_of_week`` 0 = Sunday). Existing slots are never
touched, so the script can run nightly from cron.
"""
from __future__ import annotations

import argparse
import asyncio
import datetime
import json
import logging
import uuid
from pathlib import Path

from bizconfig.core.config import get_settings
from bizconfig.core.errors import ServiceError
from bizconfig.core.logging import configure_logging
from bizconfig.db.session import dispose_engine, get_sessionmaker
from bizconfig.schemas.availability import GenerateAvailabilityRequest, SlotTemplate
from bizconfig.services import availability_service

logger = logging.getLogger("bizconfig.scripts.generate_weekly_availability")


def load_template(path: Path) -> list[SlotTemplate]:
    entries = json.loads(path.read_text(encoding="utf-8"))
    return [SlotTemplate.model_validate(entry) for entry in entries]


async def extend_schedule(
    *,
    tenant_id: uuid.UUID,
    offering_id: uuid.UUID,
    template: list[SlotTemplate],
    days: int,
    start: datetime.date,
    exclude_dates: list[datetime.date],
) -> int:
    request = GenerateAvailabilityRequest(
        offering_id=offering_id,
        start_date=start,
        end_date=start + datetime.timedelta(days=days - 1),
        time_slots=template,
        exclude_dates=exclude_dates,
    )
    sessionmaker = get_sessionmaker()
    try:
        async with sessionmaker() as session:
            return await availability_service.generate_availability(
                session, tenant_id=tenant_id, request=request
            )
    finally:
        await dispose_engine()


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Generate availability slots from a weekly template"
    )
    parser.add_argument("--tenant-id", type=uuid.UUID, required=True)
    parser.add_argument("--offering-id", type=uuid.UUID, required=True)
    parser.add_argument(
        "--template",
        type=Path,
        required=True,
        help="JSON file with the weekly slot template",
    )
    parser.add_argument(
        "--days", type=int, default=28, help="Number of days to cover (default: 28)"
    )
    parser.add_argument(
        "--start",
        type=datetime.date.fromisoformat,
        default=None,
        help="First date to generate (default: today)",
    )
    parser.add_argument(
        "--exclude",
        type=datetime.date.fromisoformat,
        action="append",
        default=[],
        help="Date to skip; may be repeated",
    )
    args = parser.parse_args()

    configure_logging(get_settings().log_level)
    if args.days < 1:
        parser.error("--days must be at least 1")

    try:
        created = asyncio.run(
            extend_schedule(
                tenant_id=args.tenant_id,
                offering_id=args.offering_id,
                template=load_template(args.template),
                days=args.days,
                start=args.start or datetime.date.today(),
                exclude_dates=args.exclude,
            )
        )
    except ServiceError as exc:
        logger.error("Generation failed: %s %s", exc.code, exc.details or exc.message)
        raise SystemExit(1) from exc
    print(f"Created {created} availability slot(s).")


if __name__ == "__main__":
    main()

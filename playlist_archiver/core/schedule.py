"""
Wake time computation for the refresh scheduler.

Cron expressions are evaluated with APScheduler's CronTrigger in an IANA
timezone. Only the trigger arithmetic is used; the daemon runs its own
blocking loop (see playlist_archiver.sync.scheduler).

Accepted expression forms:
    "0 4 * * *"        5 fields: minute hour day month day_of_week
    "30 0 4 * * *"     6 fields: second minute hour day month day_of_week

Without an expression the next wake is 24 hours after `now`.
"""

from datetime import datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from apscheduler.triggers.cron import CronTrigger

from playlist_archiver.core.exceptions import ConfigError

DEFAULT_INTERVAL = timedelta(hours=24)


def resolve_timezone(name: str) -> tzinfo:
    """
    Resolve an IANA timezone name.

    Raises:
        ConfigError: If the zone is unknown.
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(
            f"Unknown timezone '{name}'",
            details={"field": "schedule.timezone", "value": name}
        ) from e


def build_trigger(expression: str | None, timezone: str) -> CronTrigger | None:
    """
    Build the cron trigger for a schedule, or None when unscheduled.

    Also validates the timezone when no expression is given.

    Raises:
        ConfigError: On an unknown timezone or an invalid expression.
    """
    zone = resolve_timezone(timezone)

    if expression is None:
        return None

    fields = expression.split()
    try:
        if len(fields) == 5:
            return CronTrigger.from_crontab(expression, timezone=zone)
        if len(fields) == 6:
            second, minute, hour, day, month, day_of_week = fields
            return CronTrigger(
                second=second,
                minute=minute,
                hour=hour,
                day=day,
                month=month,
                day_of_week=day_of_week,
                timezone=zone,
            )
    except ValueError as e:
        raise ConfigError(
            f"Invalid cron expression '{expression}': {e}",
            details={"field": "schedule.cron", "value": expression}
        ) from e

    raise ConfigError(
        f"Cron expression must have 5 or 6 fields, got {len(fields)}",
        details={"field": "schedule.cron", "value": expression}
    )


def next_wake_time(
    trigger: CronTrigger | None,
    now: datetime,
) -> datetime:
    """
    Earliest future occurrence of the schedule after `now`.

    Args:
        trigger: Trigger from build_trigger(), or None for the 24h default.
        now: Timezone-aware current time.

    Returns:
        Timezone-aware datetime strictly after `now`. Falls back to
        now + 24h when the expression has no future occurrence.
    """
    if trigger is None:
        return now + DEFAULT_INTERVAL

    next_fire = trigger.get_next_fire_time(None, now)

    # CronTrigger may return `now` itself when it matches exactly
    if next_fire is not None and next_fire <= now:
        next_fire = trigger.get_next_fire_time(next_fire, now + timedelta(seconds=1))

    if next_fire is None:
        return now + DEFAULT_INTERVAL

    return next_fire

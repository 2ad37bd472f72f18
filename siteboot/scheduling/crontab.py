"""Declarative crontab rendering of a scheduled task."""

from __future__ import annotations

import shlex

from ..core.models import ScheduledTask


def cron_schedule(interval: float) -> str:
    """Convert an interval in seconds to a crontab schedule expression."""
    if interval % 60:
        raise ValueError(f"Cron cannot express an interval of {interval:g}s")
    minutes = int(interval // 60)
    if minutes == 1:
        return "* * * * *"
    if minutes < 60 and 60 % minutes == 0:
        return f"*/{minutes} * * * *"
    if minutes == 60:
        return "0 * * * *"
    raise ValueError(f"Cron cannot express an interval of {minutes} minutes")


def render_crontab(task: ScheduledTask) -> str:
    """Render ``task`` as a single crontab line redirecting output to its log."""
    command = shlex.join(task.command)
    log = shlex.quote(str(task.log_path))
    return f"{cron_schedule(task.interval)} {command} >> {log} 2>&1\n"

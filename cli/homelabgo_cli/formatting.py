from __future__ import annotations

from datetime import datetime, timezone

STATUS_STYLES = {
    "running": "green",
    "deploying": "cyan",
    "pending": "yellow",
    "created": "yellow",
    "restarting": "yellow",
    "paused": "yellow",
    "failed": "red",
    "stopped": "red",
    "exited": "red",
    "dead": "red",
}


def format_uptime(seconds: int | float | None) -> str:
    if seconds is None:
        return "-"
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m{seconds % 60:02d}s"
    if seconds < 86400:
        return f"{seconds // 3600}h{(seconds % 3600) // 60:02d}m"
    return f"{seconds // 86400}d{(seconds % 86400) // 3600:02d}h"


def format_timestamp(value: datetime | str | None) -> str:
    if value is None or value == "":
        return "-"
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value)
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return text
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%SZ")


def format_percent(value: float | None) -> str:
    if value is None:
        return "-"
    return f"{value:.1f}%"


def styled_status(status: str | None) -> str:
    text = status or "-"
    style = STATUS_STYLES.get(text.lower())
    if not style:
        return text
    return f"[{style}]{text}[/{style}]"

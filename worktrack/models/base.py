from datetime import datetime, timezone


def utcnow_iso() -> str:
    """Current UTC time as an ISO 8601 string (the timestamp format of every table)."""
    return datetime.now(timezone.utc).isoformat()

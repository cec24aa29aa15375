import datetime as dt

TEST_PASSWORD = "secret123"


def in_days(days: float) -> dt.datetime:
    """Aware UTC datetime ``days`` from now; negative values are in the past."""
    return dt.datetime.now(dt.timezone.utc) + dt.timedelta(days=days)

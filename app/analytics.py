"""Click breakdowns for the statistics endpoint."""

from collections import Counter

from app.models import Click
from app.schemas import ClickAnalytics

__all__ = ["summarize_clicks"]


def summarize_clicks(clicks: list[Click]) -> ClickAnalytics:
    """Count clicks per source, per location and per hour of day (``"H:00"``, UTC)."""
    sources: Counter[str] = Counter()
    locations: Counter[str] = Counter()
    hourly: Counter[str] = Counter()
    for click in clicks:
        sources[click.source] += 1
        locations[click.location] += 1
        hourly[f"{click.timestamp.hour}:00"] += 1
    return ClickAnalytics(
        by_source=dict(sources),
        by_location=dict(locations),
        by_hour=dict(hourly),
    )

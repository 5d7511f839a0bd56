"""Click breakdown tests."""

import datetime

from app.analytics import summarize_clicks
from app.models import Click


def _click(hour: int, source: str = "direct", location: str = "Unknown") -> Click:
    return Click(
        id=f"c{hour}{source}",
        timestamp=datetime.datetime(2026, 1, 1, hour, 15, tzinfo=datetime.timezone.utc),
        source=source,
        location=location,
    )


def test_summarize_no_clicks() -> None:
    analytics = summarize_clicks([])
    assert analytics.by_source == {}
    assert analytics.by_location == {}
    assert analytics.by_hour == {}


def test_summarize_groups_by_source_location_and_hour() -> None:
    clicks = [
        _click(9, source="twitter", location="Berlin"),
        _click(9),
        _click(14, source="twitter"),
        _click(0, source="email", location="Berlin"),
    ]
    analytics = summarize_clicks(clicks)
    assert analytics.by_source == {"twitter": 2, "direct": 1, "email": 1}
    assert analytics.by_location == {"Berlin": 2, "Unknown": 2}
    assert analytics.by_hour == {"9:00": 2, "14:00": 1, "0:00": 1}

from dataclasses import dataclass
from datetime import datetime, timezone
import uuid

# pathname -> label shown on the track buttons
TRACKED_PAGES = {
    "/home": "Home",
    "/pricing": "Pricing",
    "/about": "About",
    "/docs": "Docs",
}


@dataclass(frozen=True)
class PageViewEvent:
    timestamp: datetime
    session_id: str
    pathname: str
    referrer: str | None = None

    @classmethod
    def now(cls, pathname: str) -> "PageViewEvent":
        """
        A synthetic page view for a tracked click: current time, fresh session.
        """
        return cls(
            timestamp=datetime.now(timezone.utc),
            session_id=str(uuid.uuid4()),
            pathname=pathname,
            referrer=None,
        )

    def to_json(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "session_id": self.session_id,
            "pathname": self.pathname,
            "referrer": self.referrer,
        }

    def to_row(self) -> dict:
        """
        Row for the page_views datasource. Timestamps go out as naive UTC.
        """
        ts = self.timestamp.astimezone(timezone.utc).replace(tzinfo=None)
        return {
            "timestamp": ts.isoformat(sep=" ", timespec="milliseconds"),
            "session_id": self.session_id,
            "pathname": self.pathname,
            "referrer": self.referrer,
        }


@dataclass(frozen=True)
class TopPageEntry:
    pathname: str
    views: int

    @classmethod
    def from_row(cls, row: dict) -> "TopPageEntry":
        """
        Views must be a whole, non-negative count ("12" and 12.0 are fine).
        """
        raw = row["views"]
        if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
            raise ValueError(f"Invalid views for {row['pathname']}: {raw!r}")
        views = int(raw)
        if views < 0:
            raise ValueError(f"Invalid views for {row['pathname']}: {raw!r}")
        return cls(pathname=str(row["pathname"]), views=views)

    def to_json(self) -> dict:
        return {"pathname": self.pathname, "views": self.views}


def parse_timestamp(raw) -> datetime:
    """
    Accept ISO-8601 strings (a trailing "Z" is fine) or epoch milliseconds.
    Naive values are taken as UTC.
    """
    if isinstance(raw, bool) or raw is None:
        raise ValueError(f"Invalid timestamp: {raw!r}")
    if isinstance(raw, (int, float)):
        return datetime.fromtimestamp(raw / 1000, tz=timezone.utc)
    if not isinstance(raw, str):
        raise ValueError(f"Invalid timestamp: {raw!r}")

    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        ts = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f"Invalid timestamp: {raw!r}") from None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def parse_track_body(body) -> PageViewEvent:
    """
    Body shape: {"data": {"timestamp", "session_id", "pathname", "referrer"?}}
    """
    if not isinstance(body, dict) or not isinstance(body.get("data"), dict):
        raise ValueError("Request body must be a JSON object with a 'data' object")
    data = body["data"]

    for key in ("timestamp", "session_id", "pathname"):
        if key not in data:
            raise ValueError(f"Missing field: {key}")

    referrer = data.get("referrer")
    return PageViewEvent(
        timestamp=parse_timestamp(data["timestamp"]),
        session_id=str(data["session_id"]),
        pathname=str(data["pathname"]),
        referrer=None if referrer is None else str(referrer),
    )

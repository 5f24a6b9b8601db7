from dataclasses import dataclass

from toppages.events import TopPageEntry

EMPTY_MESSAGE = "No data yet. Click a button above to track a page view."

PAGE_COLORS = {
    "/home": "#22c55e",
    "/pricing": "#3b82f6",
    "/about": "#a855f7",
    "/docs": "#f97316",
}
DEFAULT_COLOR = "#a855f7"


@dataclass(frozen=True)
class Bar:
    pathname: str
    views: int
    percent: float
    color: str

    @property
    def views_label(self) -> str:
        return f"{self.views:,}"


def build_bars(top_pages: list[TopPageEntry]) -> list[Bar]:
    """
    One bar per entry, in the order given, scaled so the busiest page is 100%.
    Returns [] for an empty list; callers show EMPTY_MESSAGE instead.
    """
    if not top_pages:
        return []

    max_views = max(p.views for p in top_pages)
    bars = []
    for p in top_pages:
        percent = (p.views / max_views) * 100 if max_views else 0.0
        bars.append(Bar(p.pathname, p.views, percent, PAGE_COLORS.get(p.pathname, DEFAULT_COLOR)))
    return bars


def render_text(top_pages: list[TopPageEntry], width: int = 40) -> str:
    """
    Plain-text chart for terminals.
    """
    bars = build_bars(top_pages)
    if not bars:
        return EMPTY_MESSAGE

    name_w = max(len(b.pathname) for b in bars)
    count_w = max(len(b.views_label) for b in bars)
    lines = []
    for b in bars:
        filled = round(b.percent / 100 * width)
        lines.append(f"{b.pathname:<{name_w}}  {'█' * filled:<{width}}  {b.views_label:>{count_w}}")
    return "\n".join(lines)

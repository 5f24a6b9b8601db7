"""
Interaction loop for the demo page, driven from Python.

Holds the same state the browser page does: the top pages list, the error
banner, the refresh-in-flight flag and the click streaks.
"""
from __future__ import annotations

import asyncio
import logging

import httpx

from toppages.events import PageViewEvent, TopPageEntry
from toppages.streaks import StreakTracker

logger = logging.getLogger(__name__)


class TopPagesClient:
    def __init__(
        self,
        base_url: str,
        http: httpx.AsyncClient | None = None,
        streaks: StreakTracker | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._http = http or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.streaks = streaks or StreakTracker()
        self.top_pages: list[TopPageEntry] = []
        self.error: str | None = None
        self.is_refreshing = False
        self._pending: set[asyncio.Task] = set()

    async def __aenter__(self) -> "TopPagesClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def fetch_analytics(self) -> bool:
        """
        Reload the top pages list. Returns False without fetching when a
        refresh is already in flight.
        """
        if self.is_refreshing:
            return False

        self.is_refreshing = True
        try:
            resp = await self._http.get("/api/analytics")
            data = resp.json()
            if data.get("error"):
                self.error = data["error"]
            else:
                self.top_pages = [TopPageEntry.from_row(row) for row in data["topPages"]]
                self.error = None
        except Exception as e:
            self.error = str(e) or "Unknown error"
        finally:
            self.is_refreshing = False
        return True

    # initial load and the refresh button do the same thing
    load = fetch_analytics
    refresh = fetch_analytics

    def track_page_view(self, pathname: str) -> PageViewEvent:
        """
        Record a synthetic page view. The streak is updated right away; the
        POST runs in the background and its outcome is only logged.
        """
        event = PageViewEvent.now(pathname)
        self.streaks.click(pathname)

        task = asyncio.get_running_loop().create_task(self._send(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return event

    async def _send(self, event: PageViewEvent) -> None:
        try:
            resp = await self._http.post("/api/track", json={"data": event.to_json()})
            if resp.status_code != 200:
                logger.error("Failed to track %s: %s", event.pathname, resp.text)
        except Exception:
            logger.exception("Failed to track %s", event.pathname)

    async def drain(self) -> None:
        """
        Wait for in-flight tracking calls.
        """
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def close(self) -> None:
        self.streaks.close()
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        await self._http.aclose()

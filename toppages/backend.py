"""
Tinybird client: one write (Events API) and one read (published pipe).
"""
from __future__ import annotations

import json
import logging

import requests

from toppages import config
from toppages.events import PageViewEvent, TopPageEntry

logger = logging.getLogger(__name__)


class BackendError(RuntimeError):
    """Raised when the analytics backend rejects a call or cannot be reached."""


def _headers() -> dict[str, str]:
    if not config.TINYBIRD_TOKEN:
        raise BackendError("TINYBIRD_TOKEN is not set")
    return {"Authorization": f"Bearer {config.TINYBIRD_TOKEN}"}


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"{resp.status_code} {resp.reason}"


def ingest_page_view(event: PageViewEvent) -> None:
    """
    Append a single row to the page_views datasource.
    """
    url = f"{config.TINYBIRD_HOST}/v0/events"
    try:
        resp = requests.post(
            url,
            params={"name": config.TINYBIRD_DATASOURCE},
            headers=_headers(),
            data=json.dumps(event.to_row()),
            timeout=config.BACKEND_TIMEOUT,
        )
    except requests.RequestException as e:
        raise BackendError(str(e)) from e

    if not resp.ok:
        raise BackendError(_error_message(resp))
    logger.debug("Ingested page view for %s", event.pathname)


def query_top_pages(start_date: str, end_date: str, limit: int) -> list[TopPageEntry]:
    """
    Run the top_pages pipe. Rows come back ranked by views, descending.
    """
    url = f"{config.TINYBIRD_HOST}/v0/pipes/{config.TINYBIRD_PIPE}.json"
    try:
        resp = requests.get(
            url,
            params={"start_date": start_date, "end_date": end_date, "limit": limit},
            headers=_headers(),
            timeout=config.BACKEND_TIMEOUT,
        )
    except requests.RequestException as e:
        raise BackendError(str(e)) from e

    if not resp.ok:
        raise BackendError(_error_message(resp))

    try:
        rows = resp.json().get("data", [])
        return [TopPageEntry.from_row(row) for row in rows]
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise BackendError(f"Unexpected response from {config.TINYBIRD_PIPE}: {e}") from e

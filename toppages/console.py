#!/usr/bin/env python3
"""
console.py — drive the top pages demo from a terminal.

Usage examples:
  # Against a local dev server
  toppages-console

  # Against a deployed instance
  toppages-console --base-url https://toppages.example.com

Commands (one line at a time):
  h p a d   track /home /pricing /about /docs ("hhh" = three clicks)
  r         refresh the top pages
  q         quit
"""

import argparse
import asyncio
import logging
import sys
import threading

import httpx

from toppages import chart
from toppages.client import TopPagesClient

KEYS = {
    "h": "/home",
    "p": "/pricing",
    "a": "/about",
    "d": "/docs",
}


def render(client: TopPagesClient) -> str:
    streaks = "  ".join(f"{path} +{client.streaks.get(path)}" for path in KEYS.values())
    parts = [f"streaks: {streaks}"]
    if client.error:
        parts.append(f"Error: {client.error}")
    parts.append(chart.render_text(client.top_pages))
    return "\n".join(parts)


async def handle_line(client: TopPagesClient, line: str) -> bool:
    """
    Apply one command line. Returns False when the user asked to quit.
    """
    for key in line.strip().lower():
        if key == "q":
            return False
        if key == "r":
            await client.refresh()
        elif key in KEYS:
            client.track_page_view(KEYS[key])
    return True


def start_reader(stream, loop: asyncio.AbstractEventLoop) -> asyncio.Queue:
    """
    Read lines from `stream` on a daemon thread; None marks EOF.
    A blocked read never holds up loop shutdown, so Ctrl-C exits right away.
    """
    queue: asyncio.Queue = asyncio.Queue()

    def pump():
        for line in iter(stream.readline, ""):
            loop.call_soon_threadsafe(queue.put_nowait, line)
        loop.call_soon_threadsafe(queue.put_nowait, None)

    threading.Thread(target=pump, name="console-stdin", daemon=True).start()
    return queue


async def run(base_url: str, stdin=None, http: httpx.AsyncClient | None = None) -> None:
    lines = start_reader(stdin or sys.stdin, asyncio.get_running_loop())
    async with TopPagesClient(base_url, http=http) as client:
        await client.load()
        print(render(client))
        while True:
            print("> ", end="", flush=True)
            line = await lines.get()
            if line is None or not await handle_line(client, line):
                break
            print(render(client))
        await client.drain()


# --------- CLI ---------
def main():
    parser = argparse.ArgumentParser(description="Track page views and watch the top pages.")
    parser.add_argument("--base-url", default="http://localhost:8000", help="Where the toppages app is served")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log tracking calls")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    try:
        asyncio.run(run(args.base_url))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()

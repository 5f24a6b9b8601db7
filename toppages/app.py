import logging
from datetime import datetime, timedelta, timezone

from flask import Flask, request, jsonify, render_template_string

from toppages import backend, chart, config
from toppages.events import TRACKED_PAGES, TopPageEntry, parse_track_body

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)


def error_message(exc: Exception) -> str:
    return str(exc) or "Unknown error"


# -----------------------------------------------------------------------------
# Top pages query
# -----------------------------------------------------------------------------
def trailing_window(now: datetime | None = None, days: int = config.LOOKBACK_DAYS) -> tuple[str, str]:
    """
    (start_date, end_date) for the last `days` days ending at `now`, in UTC,
    as "YYYY-MM-DD HH:MM:SS".
    """
    end = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    start = end - timedelta(days=days)
    fmt = "%Y-%m-%d %H:%M:%S"
    return start.strftime(fmt), end.strftime(fmt)


def fetch_top_pages() -> list[TopPageEntry]:
    start_date, end_date = trailing_window()
    return backend.query_top_pages(start_date, end_date, config.TOP_PAGES_LIMIT)


# -----------------------------------------------------------------------------
# CORS
# -----------------------------------------------------------------------------
def pick_cors_origin(request_origin: str | None) -> str | None:
    """
    Echo the Origin back only when it is in CORS_ALLOW_ORIGINS, so a page
    hosted elsewhere can call /api/track and /api/analytics.
    """
    if not request_origin:
        return None
    for allowed in config.CORS_ALLOW_ORIGINS:
        if request_origin == allowed:
            return allowed
    return None

@app.after_request
def add_cors_headers(resp):
    origin = pick_cors_origin(request.headers.get("Origin"))

    if origin:
        req_headers = request.headers.get("Access-Control-Request-Headers", "Content-Type")

        resp.headers["Access-Control-Allow-Origin"] = origin
        resp.headers["Vary"] = "Origin"
        resp.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
        resp.headers["Access-Control-Allow-Headers"] = req_headers
        resp.headers["Access-Control-Max-Age"] = "600"
    return resp


# -----------------------------------------------------------------------------
# API
# -----------------------------------------------------------------------------
@app.route("/api/track", methods=["POST", "OPTIONS"])
def track():
    """
    Forward one page view to the backend. Body example:
      { "data": { "timestamp": "2025-01-01T12:00:00.000Z",
                  "session_id": "abc",
                  "pathname": "/home",
                  "referrer": null } }
    """
    if request.method == "OPTIONS":
        return ("", 200)

    try:
        event = parse_track_body(request.get_json(silent=True))
        backend.ingest_page_view(event)
    except Exception as e:
        logger.exception("Track error")
        return jsonify({"error": error_message(e)}), 500

    return jsonify({"ok": True})


@app.route("/api/analytics")
def analytics():
    try:
        top_pages = fetch_top_pages()
    except Exception as e:
        logger.exception("Analytics error")
        return jsonify({"error": error_message(e)}), 500

    resp = jsonify({"topPages": [p.to_json() for p in top_pages]})
    resp.headers["Cache-Control"] = "no-store"
    return resp


# -----------------------------------------------------------------------------
# Page
# -----------------------------------------------------------------------------
CHART_HTML = """
{% if error %}
<div class="banner"><strong>Error:</strong> {{ error }}</div>
{% elif not bars %}
<p class="empty">{{ empty_message }}</p>
{% else %}
<div class="bars">
  {% for bar in bars %}
  <div>
    <div class="bar-head">
      <span class="bar-path">{{ bar.pathname }}</span>
      <span class="bar-views">{{ bar.views_label }}</span>
    </div>
    <div class="bar-track">
      <div class="bar-fill" style="width:{{ "%g"|format(bar.percent) }}%;background:{{ bar.color }}"></div>
    </div>
  </div>
  {% endfor %}
</div>
{% endif %}
"""


@app.route("/partials/top-pages")
def top_pages_fragment():
    """
    Server-rendered chart. On failure only the error banner comes back (500)
    so the page can keep showing the last chart.
    """
    try:
        top_pages = fetch_top_pages()
    except Exception as e:
        logger.exception("Analytics error")
        return render_template_string(CHART_HTML, error=error_message(e)), 500

    html = render_template_string(
        CHART_HTML,
        error=None,
        bars=chart.build_bars(top_pages),
        empty_message=chart.EMPTY_MESSAGE,
    )
    return html, 200, {"Cache-Control": "no-store"}


PAGE_HTML = """
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8"/>
<meta name="viewport" content="width=device-width,initial-scale=1"/>
<title>Top Pages</title>
<style>
:root {
  --bg-main:#fafafa;
  --bg-card:#fff;
  --text-main:#18181b;
  --text-dim:#71717a;
  --radius-lg:.75rem;
  --font:system-ui,-apple-system,BlinkMacSystemFont,"Segoe UI",Roboto,sans-serif;
}
*{box-sizing:border-box;margin:0;padding:0}
body{font-family:var(--font);background:var(--bg-main);color:var(--text-main);padding:2rem}
main{max-width:42rem;margin:0 auto}
h1{font-size:1.8rem;margin-bottom:.5rem}
.subtitle{color:var(--text-dim);margin-bottom:2rem}
.actions{display:flex;flex-wrap:wrap;gap:1rem;margin-bottom:2rem}
.track{position:relative;padding:.75rem 1.5rem;border:0;border-radius:.5rem;color:#fff;font-weight:500;cursor:pointer}
.track:active{transform:scale(.95)}
.streak{position:absolute;top:-.5rem;right:-.5rem;font-size:.75rem;font-weight:700;padding:.25rem .5rem;border-radius:999px;background:rgb(0 0 0 / .45)}
.streak[hidden]{display:none}
.banner{background:#fee2e2;border:1px solid #f87171;color:#b91c1c;padding:.75rem 1rem;border-radius:.25rem;margin-bottom:2rem}
.card{background:var(--bg-card);border-radius:var(--radius-lg);padding:1.5rem;box-shadow:0 1px 2px rgb(0 0 0 / .05)}
.card-header{display:flex;justify-content:space-between;align-items:center;margin-bottom:1rem}
.card-title{font-size:1.25rem;font-weight:600}
.refresh{border:0;background:none;padding:.5rem;border-radius:.5rem;cursor:pointer;color:var(--text-dim)}
.refresh:disabled{opacity:.5}
.refresh.spinning svg{animation:spin 1s linear infinite}
@keyframes spin{to{transform:rotate(360deg)}}
.empty{color:var(--text-dim)}
.bars{display:grid;gap:1rem}
.bar-head{display:flex;justify-content:space-between;font-size:.875rem;margin-bottom:.25rem}
.bar-path{font-weight:500}
.bar-views{color:var(--text-dim)}
.bar-track{height:.75rem;background:#f4f4f5;border-radius:999px;overflow:hidden}
.bar-fill{height:100%;border-radius:999px;transition:width .3s}
</style>
</head>
<body>
<main>
  <h1>Top Pages</h1>
  <p class="subtitle">Real-time page view analytics powered by Tinybird.</p>

  <div class="actions">
    {% for page in pages %}
    <button class="track" data-pathname="{{ page.pathname }}" style="background:{{ page.color }}">
      Track {{ page.label }}
      <span class="streak" hidden></span>
    </button>
    {% endfor %}
  </div>

  <div id="error"></div>

  <section class="card">
    <div class="card-header">
      <div class="card-title">Top Pages</div>
      <button class="refresh" id="refresh" title="Refresh">
        <svg width="20" height="20" fill="none" stroke="currentColor" viewBox="0 0 24 24">
          <path stroke-linecap="round" stroke-linejoin="round" stroke-width="2"
                d="M4 4v5h.582m15.356 2A8.001 8.001 0 004.582 9m0 0H9m11 11v-5h-.581m0 0a8.003 8.003 0 01-15.357-2m15.357 2H15"/>
        </svg>
      </button>
    </div>
    <div id="chart"><p class="empty">{{ empty_message }}</p></div>
  </section>
</main>

<script>
const DECAY_MS = {{ decay_ms }};
const streaks = {};
const timers = {};
const refreshBtn = document.getElementById("refresh");

// The chart comes pre-rendered from /partials/top-pages; API consumers
// wanting the raw list should call GET /api/analytics instead.
async function fetchTopPages() {
  if (refreshBtn.disabled) return;
  refreshBtn.disabled = true;
  refreshBtn.classList.add("spinning");
  try {
    const res = await fetch("/partials/top-pages");
    const html = await res.text();
    if (res.ok) {
      document.getElementById("chart").innerHTML = html;
      document.getElementById("error").innerHTML = "";
    } else {
      document.getElementById("error").innerHTML = html;
    }
  } catch (e) {
    const banner = document.createElement("div");
    banner.className = "banner";
    banner.textContent = "Error: " + (e.message || "Unknown error");
    document.getElementById("error").replaceChildren(banner);
  } finally {
    refreshBtn.disabled = false;
    refreshBtn.classList.remove("spinning");
  }
}

function showStreak(button, pathname) {
  const badge = button.querySelector(".streak");
  badge.textContent = "+" + streaks[pathname];
  badge.hidden = streaks[pathname] === 0;
}

function trackPageView(button) {
  const pathname = button.dataset.pathname;
  const event = {
    timestamp: new Date(),
    session_id: crypto.randomUUID(),
    pathname: pathname,
    referrer: null,
  };

  clearTimeout(timers[pathname]);
  streaks[pathname] = (streaks[pathname] || 0) + 1;
  showStreak(button, pathname);
  timers[pathname] = setTimeout(() => {
    streaks[pathname] = 0;
    showStreak(button, pathname);
  }, DECAY_MS);

  fetch("/api/track", {
    method: "POST",
    headers: {"Content-Type": "application/json"},
    body: JSON.stringify({data: event}),
  }).catch((e) => console.error("Failed to track:", e));
}

document.querySelectorAll(".track").forEach((button) => {
  button.addEventListener("click", () => trackPageView(button));
});
refreshBtn.addEventListener("click", fetchTopPages);
fetchTopPages();
</script>
</body>
</html>
"""


@app.route("/")
def index():
    pages = [
        {"pathname": path, "label": label, "color": chart.PAGE_COLORS.get(path, chart.DEFAULT_COLOR)}
        for path, label in TRACKED_PAGES.items()
    ]
    return render_template_string(
        PAGE_HTML,
        pages=pages,
        empty_message=chart.EMPTY_MESSAGE,
        decay_ms=int(config.STREAK_DECAY_SECONDS * 1000),
    )


# -----------------------------------------------------------------------------
# health
# -----------------------------------------------------------------------------
@app.route("/healthz")
def healthz():
    return "ok", 200


if __name__ == "__main__":
    # Dev mode, container uses gunicorn
    app.run(host="0.0.0.0", port=8000)

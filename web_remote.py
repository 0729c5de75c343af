#!/usr/bin/env python3
"""
web_remote.py  –  web UI + diagnostics + remote control for the story viewer

Endpoints
---------
/               → HTML page with buttons, playback state, diagnostics, link to /log
/state          → JSON snapshot of the playback controller
/diag, /data    → JSON object of diagnostic metrics
/action?cmd=…   → inject control commands (next, prev, pause, resume,
                  jump&to=N, dismiss, quit)
/log            → contents of the runtime log (if present)

Commands are posted to EventManager and applied by the viewer's main loop,
never from the HTTP thread.
"""

from __future__ import annotations
import http.server
import json
import logging
import os
import platform
import socketserver
import threading
import time
import traceback
import urllib.parse
from typing import TYPE_CHECKING, Any

import psutil

import config
from events import EventManager
from overlays import _fmt_hms

if TYPE_CHECKING:                       # avoid circular import at runtime
    from app import StoryViewer

logger = logging.getLogger(__name__)

# ── diagnostics refresh cadence ───────────────────────────────────────────
_last_diag_time = 0.0
_diag_interval  = getattr(config, "DIAG_REFRESH_INTERVAL", 1.0)

# ── global diagnostic store ───────────────────────────────────────────────
monitor_data: dict[str, Any] = {
    "cpu_percent":       0.0,
    "mem_used":          "0 MB",
    "mem_total":         "0 MB",
    "script_uptime":     "0d 00:00:00",
    "load_avg":          "",
    "last_http_crash":   "",
    "python_version":    platform.python_version(),
}

_script_start = time.monotonic()


# ── helpers ────────────────────────────────────────────────────────────────
def _fmt_duration(secs: float) -> str:
    d, rem = divmod(int(secs), 86400)
    h, rem = divmod(rem, 3600)
    m, s   = divmod(rem, 60)
    return f"{d}d {h:02}:{m:02}:{s:02}"


def _maybe_update_diagnostics() -> None:
    global _last_diag_time
    now = time.monotonic()
    if now - _last_diag_time >= _diag_interval:
        _last_diag_time = now
        _update_diagnostics()


def _update_diagnostics() -> None:
    """Refresh CPU, memory, uptime and load in `monitor_data`."""
    monitor_data["cpu_percent"] = psutil.cpu_percent()
    vm = psutil.virtual_memory()
    monitor_data["mem_used"]  = f"{vm.used // 1024**2} MB"
    monitor_data["mem_total"] = f"{vm.total // 1024**2} MB"
    monitor_data["script_uptime"] = _fmt_duration(time.monotonic() - _script_start)
    try:
        la = os.getloadavg()
        monitor_data["load_avg"] = ", ".join(f"{x:.2f}" for x in la)
    except (AttributeError, OSError):
        monitor_data["load_avg"] = "N/A"


def state_dict(viewer: "StoryViewer") -> dict[str, Any]:
    """JSON-able view of the viewer's latest published snapshot."""
    snap = viewer.snapshot            # frozen; safe to read from any thread
    files = viewer.folder.files
    name = os.path.basename(files[snap.current_index]) if files else None
    remaining = (1.0 - snap.progress_within_item) * viewer.player.item_duration
    return {
        "state":                snap.state.value,
        "current_index":        snap.current_index,
        "item_count":           snap.item_count,
        "progress_within_item": round(snap.progress_within_item, 4),
        "overall_progress":     round(snap.overall_progress, 4),
        "current_file":         name,
        "remaining":            _fmt_hms(remaining),
    }


def action_from_query(query: str) -> dict | None:
    """Turn an /action query string into an EventManager action, or None."""
    qs = urllib.parse.parse_qs(query)
    cmd = qs.get("cmd", [""])[0]

    if cmd == "next":
        return {"type": "advance", "by": 1}
    if cmd == "prev":
        return {"type": "advance", "by": -1}
    if cmd in ("pause", "resume", "dismiss", "quit"):
        return {"type": cmd}
    if cmd == "toggle":
        return {"type": "toggle_overlay"}
    if cmd == "jump":
        try:
            return {"type": "jump", "to": int(qs.get("to", [""])[0])}
        except ValueError:
            return None
    return None


# ── reusable threaded HTTP server ──────────────────────────────────────────
class ReusableTCPServer(socketserver.ThreadingMixIn, http.server.HTTPServer):
    daemon_threads      = True
    allow_reuse_address = True


# ── request handler ────────────────────────────────────────────────────────
class RemoteHandler(http.server.BaseHTTPRequestHandler):
    def log_message(self, fmt, *args):
        logger.debug("http %s - " + fmt, self.address_string(), *args)

    def do_GET(self):
        parsed = urllib.parse.urlparse(self.path)
        path, qs = parsed.path, parsed.query

        if path == "/":
            return self._serve_html()
        if path == "/state":
            return self._serve_json(state_dict(self.server.viewer))   # type: ignore
        if path in ("/diag", "/data"):
            _maybe_update_diagnostics()
            return self._serve_json(monitor_data)
        if path == "/log":
            return self._serve_log()
        if path == "/action":
            return self._serve_action(qs)

        self.send_error(404, "Not found")

    # ── helpers for each route ───────────────────────────────────────────
    def _serve_html(self):
        b = HTML_PAGE.encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "text/html")
        self.send_header("Content-Length", str(len(b)))
        self.end_headers()
        self.wfile.write(b)

    def _serve_json(self, obj: Any):
        b = json.dumps(obj).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(b)))
        self.end_headers()
        self.wfile.write(b)

    def _serve_log(self):
        try:
            with open(config.LOG_FILE, "rb") as f:
                data = f.read()
        except OSError:
            return self.send_error(404, "Log file not found")
        self.send_response(200)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _serve_action(self, query: str):
        act = action_from_query(query)
        if act is None:
            return self.send_error(400, "Unknown cmd")
        EventManager.post(act)
        self.send_response(204)
        self.end_headers()


# ── simple HTML UI ─────────────────────────────────────────────────────────
HTML_PAGE = """
<!doctype html><html><head><meta charset="utf-8">
<title>Stories Remote & Diagnostics</title>
<style>
 body{background:#000;color:#0f0;font-family:monospace;padding:1em;}
 a.button{display:inline-block;margin:4px;padding:6px 12px;border:1px solid #0f0;
          text-decoration:none;color:#0f0;}
 pre{margin:0.5em 0;font-family:monospace;}
</style></head><body>
<h2>Stories Remote</h2>
<a class="button" href="/action?cmd=prev">◀ Previous</a>
<a class="button" href="/action?cmd=next">Next ▶</a>
<a class="button" href="/action?cmd=pause">Pause</a>
<a class="button" href="/action?cmd=resume">Resume</a>
<a class="button" href="/action?cmd=jump&to=0">First</a>

<a class="button" href="/action?cmd=toggle">Toggle overlay</a>
<a class="button" href="/action?cmd=dismiss">Dismiss</a>
<a class="button" href="/action?cmd=quit">Quit</a>
<a class="button" href="/log">View log</a>

<div><h3>Playback</h3><pre id="state"></pre></div>
<div><h3>Diagnostics</h3><pre id="diag"></pre></div>

<script>
 function table(obj){
   let txt = '';
   for (let [k,v] of Object.entries(obj)){
     txt += k.padEnd(22,' ') + v + '\\n';
   }
   return txt;
 }
 async function refreshUI(){
   try {
     let s = await fetch('/state');
     document.getElementById('state').textContent = table(await s.json());
     let d = await fetch('/diag');
     document.getElementById('diag').textContent = table(await d.json());
   } catch(e){
     console.error(e);
   }
 }
 setInterval(refreshUI, 200);
 refreshUI();
</script>
</body></html>
"""


# ── server bootstrap with auto-restart ────────────────────────────────────
def start(viewer: "StoryViewer", port: int = getattr(config, "WEB_PORT", 8080)):
    def _serve_loop():
        while True:
            try:
                with ReusableTCPServer(("", port), RemoteHandler) as httpd:
                    httpd.viewer = viewer
                    httpd.serve_forever()
            except Exception:
                logger.exception("web remote crashed; restarting")
                monitor_data["last_http_crash"] = traceback.format_exc()
                time.sleep(1)

    threading.Thread(target=_serve_loop, daemon=True).start()
    logger.info("web UI & diagnostics listening on port %d", port)

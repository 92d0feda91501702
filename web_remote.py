#!/usr/bin/env python3
"""
web_remote.py  –  web UI + diagnostics + remote control for the player

Endpoints
---------
/               → HTML page with state, chat, buttons and diagnostics
/state          → JSON clock state, schedule text and viewer count
/comments       → JSON list of currently visible chat comments
/diag, /data    → JSON object of diagnostic metrics
/action?cmd=…   → inject control commands (toggle, mute, fullscreen, quit)
/comment?author=…&text=…[&location=…] → post a viewer comment
/log            → contents of the runtime log (if present)
"""

from __future__ import annotations
import http.server
import json
import logging
import platform
import socketserver
import threading
import time
import traceback
import urllib.parse
from typing import TYPE_CHECKING, Any

import psutil

import config
import schedule
import timing
from events import EventManager

if TYPE_CHECKING:                       # avoid circular import at runtime
    from app import WebinarPlayer

logger = logging.getLogger(__name__)

# ── diagnostics refresh cadence ───────────────────────────────────────────
_last_diag_time = 0.0
_diag_interval  = config.DIAG_REFRESH_INTERVAL

monitor_data: dict[str, Any] = {
    "cpu_percent":     0.0,
    "mem_used":        "0 MB",
    "mem_total":       "0 MB",
    "process_rss":     "0 MB",
    "script_uptime":   "0d 00:00:00",
    "last_http_crash": "",
    "python_version":  platform.python_version(),
}

_script_start = time.monotonic()

_COMMANDS = {
    "toggle":     "toggle_overlay",
    "mute":       "toggle_mute",
    "fullscreen": "toggle_fullscreen",
    "quit":       "quit",
}


# ── helpers ────────────────────────────────────────────────────────────────
def _fmt_duration(secs: float) -> str:
    d, rem = divmod(int(secs), 86400)
    return f"{d}d {timing.format_countdown(rem)}"


def _maybe_update_diagnostics() -> None:
    global _last_diag_time
    now = time.monotonic()
    if now - _last_diag_time >= _diag_interval:
        _last_diag_time = now
        _update_diagnostics()


def _update_diagnostics() -> None:
    vm = psutil.virtual_memory()
    monitor_data["cpu_percent"]   = psutil.cpu_percent()
    monitor_data["mem_used"]      = f"{vm.used // 1024**2} MB"
    monitor_data["mem_total"]     = f"{vm.total // 1024**2} MB"
    monitor_data["process_rss"]   = f"{psutil.Process().memory_info().rss // 1024**2} MB"
    monitor_data["script_uptime"] = _fmt_duration(time.monotonic() - _script_start)


def _state_payload(player: "WebinarPlayer") -> dict[str, Any]:
    state = player.state
    out: dict[str, Any] = state.to_dict() if state else {"phase": None}
    out["schedule"] = schedule.describe(player.schedule)
    out["title"]    = player.schedule.title
    out["viewers"]  = player.viewer_count if state and state.is_live else 0
    return out


def _comments_payload(player: "WebinarPlayer") -> list[dict]:
    return [c.to_dict() for c in player.visible]


# ── reusable threaded HTTP server ──────────────────────────────────────────
class ReusableTCPServer(socketserver.ThreadingMixIn, http.server.HTTPServer):
    daemon_threads      = True
    allow_reuse_address = True


# ── request handler ────────────────────────────────────────────────────────
class RemoteHandler(http.server.BaseHTTPRequestHandler):
    def log_message(self, fmt, *args):
        logger.debug("%s %s", self.address_string(), fmt % args)

    def do_GET(self):
        parsed = urllib.parse.urlparse(self.path)
        path, qs = parsed.path, urllib.parse.parse_qs(parsed.query)
        player = self.server.player                     # type: ignore[attr-defined]

        if path == "/":
            return self._send(200, "text/html; charset=utf-8", HTML_PAGE.encode("utf-8"))
        if path == "/state":
            return self._serve_json(_state_payload(player))
        if path == "/comments":
            return self._serve_json(_comments_payload(player))
        if path in ("/diag", "/data"):
            _maybe_update_diagnostics()
            return self._serve_json(monitor_data)
        if path == "/log":
            return self._serve_log()
        if path == "/action":
            return self._serve_action(qs)
        if path == "/comment":
            return self._serve_comment(qs)

        self.send_error(404, "Not found")

    # ── helpers for each route ───────────────────────────────────────────
    def _send(self, code: int, ctype: str, body: bytes):
        self.send_response(code)
        self.send_header("Content-Type", ctype)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _serve_json(self, obj: Any):
        self._send(200, "application/json", json.dumps(obj).encode("utf-8"))

    def _serve_log(self):
        try:
            with open(config.LOG_FILE, "rb") as f:
                data = f.read()
        except OSError:
            return self.send_error(404, "Log file not found")
        self._send(200, "text/plain; charset=utf-8", data)

    def _serve_action(self, qs: dict[str, list[str]]):
        cmd = qs.get("cmd", [""])[0]
        if cmd not in _COMMANDS:
            return self.send_error(400, "Unknown cmd")
        EventManager.post({"type": _COMMANDS[cmd]})
        self.send_response(204)
        self.end_headers()

    def _serve_comment(self, qs: dict[str, list[str]]):
        text = qs.get("text", [""])[0].strip()
        if not text:
            return self.send_error(400, "Empty comment")
        EventManager.post({
            "type":     "post_comment",
            "author":   qs.get("author", [""])[0],
            "location": qs.get("location", [""])[0],
            "text":     text,
        })
        self.send_response(202)
        self.end_headers()


# ── simple HTML UI ─────────────────────────────────────────────────────────
HTML_PAGE = """
<!doctype html><html><head><meta charset="utf-8">
<title>Webinar Remote</title>
<style>
 body{background:#1a1a2e;color:#fff;font-family:sans-serif;padding:1em;}
 a.button{display:inline-block;margin:4px;padding:6px 12px;border:1px solid #FFD700;
          text-decoration:none;color:#FFD700;border-radius:12px;}
 pre{margin:0.5em 0;font-family:monospace;}
 #count{font:bold 3em monospace;color:#FFD700;}
</style></head><body>
<h2 id="title">Webinar</h2>
<div id="phase"></div><div id="count"></div><div id="sched"></div>

<a class="button" href="/action?cmd=mute">Mute</a>
<a class="button" href="/action?cmd=toggle">Toggle overlay</a>
<a class="button" href="/action?cmd=fullscreen">Fullscreen</a>
<a class="button" href="/action?cmd=quit">Quit</a>
<a class="button" href="/log">View log</a>

<form onsubmit="send();return false;">
 <input id="author" placeholder="Name"> <input id="text" placeholder="Comment" size="40">
 <button>Send</button>
</form>
<div><h3>Chat</h3><pre id="chat"></pre></div>
<div><h3>Diagnostics</h3><pre id="diag"></pre></div>

<script>
 async function send(){
   let q = new URLSearchParams({author: author.value, text: text.value});
   await fetch('/comment?' + q);
   text.value = '';
 }
 async function refreshUI(){
   try {
     let s = await (await fetch('/state')).json();
     title.textContent = s.title || 'Webinar';
     phase.textContent = s.phase === 'live'
       ? 'LIVE – ' + s.viewers + ' watching' : (s.phase || '').toUpperCase();
     count.textContent = s.phase === 'live' ? '' : (s.next_start ? s.countdown : '');
     sched.textContent = s.schedule;
     let c = await (await fetch('/comments')).json();
     chat.textContent = c.map(x => x.author + ': ' + x.text).join('\\n');
     let dg = await (await fetch('/diag')).json();
     let txt = '';
     for (let [k,v] of Object.entries(dg)){ txt += k.padEnd(20,' ') + v + '\\n'; }
     diag.textContent = txt;
   } catch(e){
     console.error(e);
   }
 }
 setInterval(refreshUI, 1000);
 refreshUI();
</script>
</body></html>
"""


# ── server bootstrap with auto-restart ────────────────────────────────────
def make_server(player: "WebinarPlayer", host: str = "", port: int = config.WEB_PORT) -> ReusableTCPServer:
    httpd = ReusableTCPServer((host, port), RemoteHandler)
    httpd.player = player                               # type: ignore[attr-defined]
    return httpd


def start(player: "WebinarPlayer", port: int = config.WEB_PORT) -> threading.Thread:
    def _serve_loop():
        while True:
            try:
                with make_server(player, "", port) as httpd:
                    httpd.serve_forever()
            except Exception:
                logger.exception("web remote crashed; restarting")
                monitor_data["last_http_crash"] = traceback.format_exc()
                time.sleep(1)

    t = threading.Thread(target=_serve_loop, name="web-remote", daemon=True)
    t.start()
    logger.info("web remote listening on port %d", port)
    return t

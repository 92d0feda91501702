# =========  video_player.py  =========
"""
GStreamer playbin wrapper for the webinar recording.

Public API
----------
open(src, start)      src is a file path or any URI (http, file, …)
decode_frame()        → latest frame (HxWx3 uint8) or None before preroll
get_position_sec()
seek_to(sec)
set_muted(bool)
ensure_playing()
close()
Properties
----------
.src     → currently opened source ("" when closed)
.sar     → sample-aspect ratio
.is_open
"""
import logging
import os
import queue

import gi
import numpy as np
gi.require_version("Gst", "1.0")
from gi.repository import Gst

logger = logging.getLogger(__name__)

PREROLL_TIMEOUT = 10     # seconds; remote URLs can be slow to buffer


def _to_uri(src: str) -> str:
    if Gst.uri_is_valid(src):
        return src
    return Gst.filename_to_uri(os.path.abspath(src))


# ────────────────────────────────────────────────────────────────────────────
class VideoPlayer:
    def __init__(self):
        Gst.init(None)

        self.player = Gst.ElementFactory.make("playbin", "player")
        self._vsink = Gst.ElementFactory.make("appsink", "vsink")
        self._vsink.set_property("emit-signals", True)
        self._vsink.set_property("max-buffers", 2)
        self._vsink.set_property("drop", True)
        self._vsink.set_property("sync", True)
        self._vsink.set_property("caps", Gst.Caps.from_string("video/x-raw,format=RGB"))
        self._vsink.connect("new-sample", self._on_sample)
        self.player.set_property("video-sink", self._vsink)

        self._q: "queue.Queue[bytes]" = queue.Queue(maxsize=1)
        self._last = None
        self._w = self._h = 0
        self.sar = 1.0
        self.src = ""

    @property
    def is_open(self) -> bool:
        return bool(self.src)

    # ── public API ──────────────────────────────────────────────────────────
    def open(self, src: str, start: float = 0.0):
        """Preroll *src*, seek to *start* seconds and start playing."""
        self.close()
        while not self._q.empty():
            self._q.get_nowait()
        self._last = None

        self.player.set_property("uri", _to_uri(src))
        self.player.set_state(Gst.State.PAUSED)

        bus = self.player.get_bus()
        msg = bus.timed_pop_filtered(
            PREROLL_TIMEOUT * Gst.SECOND,
            Gst.MessageType.ASYNC_DONE | Gst.MessageType.ERROR,
        )
        if msg is None or msg.type == Gst.MessageType.ERROR:
            self.player.set_state(Gst.State.NULL)
            reason = msg.parse_error()[0].message if msg else "preroll timed out"
            raise RuntimeError(f"cannot open {src}: {reason}")

        caps = self._vsink.get_static_pad("sink").get_current_caps().get_structure(0)
        self._w, self._h = caps.get_int("width")[1], caps.get_int("height")[1]
        if caps.has_field("pixel-aspect-ratio"):
            num, den = caps.get_fraction("pixel-aspect-ratio")[-2:]
            self.sar = num / den if den else 1.0

        self.src = src
        self.seek_to(start)
        self.player.set_state(Gst.State.PLAYING)
        logger.info("playing %s from %.1fs (%dx%d)", src, start, self._w, self._h)

    def decode_frame(self):
        data = None
        while True:
            try:
                data = self._q.get_nowait()
            except queue.Empty:
                break
        if data is not None:
            self._last = self._bytes_to_arr(data)
        return self._last

    def get_position_sec(self) -> float:
        ok, pos = self.player.query_position(Gst.Format.TIME)
        return pos / Gst.SECOND if ok else 0.0

    def seek_to(self, sec: float):
        self.player.seek_simple(
            Gst.Format.TIME,
            Gst.SeekFlags.FLUSH | Gst.SeekFlags.ACCURATE,
            int(max(0.0, sec) * Gst.SECOND),
        )

    def set_muted(self, muted: bool):
        self.player.set_property("mute", muted)

    def ensure_playing(self):
        """Resume playback if something (EOS, a stall) left the pipeline paused."""
        if not self.is_open:
            return
        _, state, _ = self.player.get_state(0)
        if state != Gst.State.PLAYING:
            self.player.set_state(Gst.State.PLAYING)

    def poll_errors(self):
        """Raise the first pending pipeline error, if any."""
        bus = self.player.get_bus()
        while (msg := bus.pop_filtered(Gst.MessageType.ERROR | Gst.MessageType.EOS)):
            if msg.type == Gst.MessageType.ERROR:
                err, dbg = msg.parse_error()
                logger.error("GStreamer error: %s (%s)", err.message, dbg)
                src = self.src
                self.close()
                raise RuntimeError(f"playback of {src} failed: {err.message}")
            logger.info("end of stream: %s", self.src)

    def close(self):
        self.player.set_state(Gst.State.NULL)
        self.src = ""

    # ── internals ───────────────────────────────────────────────────────────
    def _bytes_to_arr(self, data: bytes):
        stride = len(data) // self._h
        rows = np.frombuffer(data, np.uint8).reshape((self._h, stride))
        return np.ascontiguousarray(rows[:, : self._w * 3].reshape((self._h, self._w, 3)))

    def _on_sample(self, sink):
        samp = sink.emit("pull-sample")
        if samp:
            buf = samp.get_buffer()
            ok, mi = buf.map(Gst.MapFlags.READ)
            if ok:
                try:
                    self._q.put_nowait(bytes(mi.data))
                except queue.Full:
                    pass
                buf.unmap(mi)
        return Gst.FlowReturn.OK

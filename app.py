#!/usr/bin/env python3
"""
app.py – simulated-live webinar player (with EventManager)

Shows a waiting card with a countdown until the scheduled start, plays
the recording from wherever "live" currently is, reveals the scripted
chat as the session progresses, and shows an ended card with the
countdown to the next session.  Every decision comes from
`schedule.evaluate()` on the wall clock, so any number of machines agree
without talking to each other.
"""
from __future__ import annotations

import logging
from typing import List, Optional

import pygame

import config
import overlays
import timing
from audience import ViewerCount
from comments import CommentBoard, ScriptedComment
from events import EventManager
from renderer import render_background, render_frame
from schedule import ScheduleConfig
from ticker import ClockPublisher, Ticker
from video_player import VideoPlayer

logger = logging.getLogger(__name__)


# ── main application ───────────────────────────────────────────────────────
class WebinarPlayer:
    def __init__(self, schedule: ScheduleConfig, board: CommentBoard):
        # window ----------------------------------------------------------
        pygame.init()
        pygame.display.set_caption(schedule.title or "Webinar")
        self.screen = self._set_mode()
        self.clock = pygame.time.Clock()

        # core state ------------------------------------------------------
        self.schedule = schedule
        self.board = board
        self.player = VideoPlayer()
        self.viewers = ViewerCount()
        self.muted = False
        self.force_overlay = config.SHOW_OVERLAYS
        self.video_error = ""
        self.visible: List[ScriptedComment] = []

        # scheduling ------------------------------------------------------
        self.publisher = ClockPublisher(schedule)
        self.publisher.subscribe(self._on_state)
        self.ticker = Ticker()
        self.ticker.every(config.PHASE_TICK_INTERVAL, self.publisher.refresh, name="phase")
        self.ticker.every(config.DRIFT_CHECK_INTERVAL, self._check_drift,
                          name="drift", immediate=False)
        self.ticker.every(config.VIEWER_JITTER_INTERVAL, self.viewers.jitter,
                          name="viewers", immediate=False)

    @property
    def state(self) -> Optional[timing.ClockState]:
        return self.publisher.state

    @property
    def viewer_count(self) -> int:
        return self.viewers.count

    def _set_mode(self) -> pygame.Surface:
        surf = pygame.display.set_mode(
            (0, 0) if config.FULLSCREEN else config.WINDOWED_SIZE,
            pygame.FULLSCREEN if config.FULLSCREEN else 0,
        )
        pygame.mouse.set_visible(not config.FULLSCREEN)
        return surf

    # ── clock observers ---------------------------------------------------
    def _on_state(self, state: timing.ClockState, prev: Optional[timing.ClockState]):
        if state.is_live:
            if not self.player.is_open and not self.video_error:
                self._open_video(state.elapsed_seconds)
            self.visible = self.board.visible(state.elapsed_seconds)
            return

        self.visible = []
        if self.player.is_open:
            self.player.close()
        if prev is not None and prev.is_live:
            logger.info("session from %s ended", prev.session_start)
            self.board.clear_live()
        self.video_error = ""

    def _open_video(self, offset: float):
        try:
            self.player.open(self.schedule.video, offset)
            self.player.set_muted(self.muted)
        except RuntimeError as exc:
            logger.error("%s", exc)
            self.video_error = str(exc)

    def _check_drift(self):
        state = self.state
        if state is None or not state.is_live or not self.player.is_open:
            return
        pos = self.player.get_position_sec()
        target = timing.seek_target(pos, state)
        if target is not None:
            logger.info("drift %.1fs – seeking to %.0fs", pos - target, target)
            self.player.seek_to(target)
        self.player.ensure_playing()

    # ── actions -----------------------------------------------------------
    def _apply(self, act: dict) -> bool:
        """Handle one queued action; False means quit."""
        t = act["type"]
        if t == "quit":
            return False
        if t == "toggle_overlay":
            self.force_overlay ^= True
        elif t == "toggle_fullscreen":
            config.FULLSCREEN ^= True
            self.screen = self._set_mode()
        elif t == "toggle_mute":
            self.muted ^= True
            if self.player.is_open:
                self.player.set_muted(self.muted)
        elif t == "post_comment":
            state = self.state
            if state is not None and state.is_live:
                self.board.post(act.get("author", ""), act.get("text", ""),
                                state.elapsed_seconds, act.get("location", ""))
            else:
                logger.info("comment dropped: webinar is %s",
                            state.phase if state else "starting")
        else:
            logger.warning("unknown action %r", act)
        return True

    # ── drawing -----------------------------------------------------------
    def _draw(self):
        state = self.state
        if state is None:
            return
        if state.phase == timing.WAITING:
            render_background(self.screen, config.BACKGROUND_IMAGE)
            overlays.draw_waiting(self.screen, state, self.schedule)
            return
        if state.phase == timing.ENDED:
            render_background(self.screen, config.BACKGROUND_IMAGE)
            overlays.draw_ended(self.screen, state, self.schedule)
            return

        sw, sh = self.screen.get_size()
        chat_w = sw // 4
        video_area = pygame.Rect(0, 0, sw - chat_w, sh)
        self.screen.fill((0, 0, 0))
        if self.video_error:
            overlays.draw_error(self.screen, self.video_error)
        else:
            frame = self.player.decode_frame()
            if frame is not None:
                render_frame(self.screen, frame, self.player.sar, video_area)
        overlays.draw_chat(self.screen, pygame.Rect(sw - chat_w, 0, chat_w, sh), self.visible)
        overlays.draw_live_badge(self.screen, self.viewers.count, self.muted)
        if self.force_overlay:
            overlays.draw_diagnostics(self.screen, state, self.player.get_position_sec(),
                                      len(self.visible))

    # ── main loop ---------------------------------------------------------
    def run(self):
        running = True
        while running:
            for e in pygame.event.get():
                EventManager.handle(e)

            while (act := EventManager.poll()):
                if not self._apply(act):
                    running = False

            self.ticker.poll()
            if self.player.is_open:
                try:
                    self.player.poll_errors()
                except RuntimeError as exc:
                    self.video_error = str(exc)

            self._draw()
            pygame.display.flip()
            self.clock.tick(config.FPS)

        self.ticker.stop()
        self.player.close()
        pygame.quit()

#!/usr/bin/env python3
import argparse
import logging
import sys

import config
import schedule
import timing
from comments import CommentBoard, load_comments


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(config.LOG_FILE, encoding="utf-8"),
            logging.StreamHandler(sys.stderr),
        ],
    )


def _print_status(sched: schedule.ScheduleConfig) -> None:
    state = schedule.evaluate(timing.wall_clock(), sched)
    print(f"{sched.title or 'webinar'}  ({schedule.describe(sched)}, {sched.timezone})")
    if state.is_live:
        print(f"LIVE   {timing.format_countdown(state.elapsed_seconds)} in, "
              f"{timing.format_countdown(state.remaining_seconds)} left")
    elif state.next_start is None:
        print("ENDED  no further sessions")
    else:
        print(f"{state.phase.upper():6} next {schedule.format_session(state.next_start, sched)} "
              f"in {state.countdown}")


def main(argv=None):
    ap = argparse.ArgumentParser(description="Simulated-live webinar player")
    ap.add_argument("--webinar", default=config.WEBINAR_FILE,
                    help=f"schedule JSON (default: {config.WEBINAR_FILE})")
    ap.add_argument("--comments", default=config.COMMENTS_FILE,
                    help=f"scripted chat JSON (default: {config.COMMENTS_FILE})")
    ap.add_argument("--port", type=int, default=config.WEB_PORT)
    ap.add_argument("--windowed", action="store_true")
    ap.add_argument("--status", action="store_true",
                    help="print the current state and exit (no window)")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    _setup_logging(args.verbose)
    try:
        sched = schedule.load_schedule(args.webinar)
        scripted = load_comments(args.comments)
    except schedule.ConfigError as exc:
        logging.getLogger("main").error("bad configuration: %s", exc)
        return 2

    if args.status:
        _print_status(sched)
        return 0

    if args.windowed:
        config.FULLSCREEN = False

    # the player pulls in pygame and GStreamer; keep --status usable without them
    import web_remote
    from app import WebinarPlayer

    player = WebinarPlayer(sched, CommentBoard(scripted))
    web_remote.start(player, args.port)
    player.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())

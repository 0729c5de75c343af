import argparse
import logging
import sys

import config, web_remote
from app import StoryViewer


def setup_logging(level: str = config.LOG_LEVEL) -> None:
    """Console + runtime log file (the web remote serves the latter at /log)."""
    fmt = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    try:
        handlers.append(logging.FileHandler(config.LOG_FILE, encoding="utf-8"))
    except OSError:
        pass  # read-only cwd: console only
    logging.basicConfig(level=level.upper(), format=fmt, handlers=handlers, force=True)


def _positive(s: str) -> float:
    v = float(s)
    if v <= 0:
        raise argparse.ArgumentTypeError("must be greater than zero")
    return v


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Show a folder of images as stories")
    ap.add_argument("root", nargs="?", default=config.STORIES_PATH,
                    help=f"story folder (default: ./{config.STORIES_PATH})")
    ap.add_argument("-d", "--duration", type=_positive, default=config.DEFAULT_ITEM_DURATION,
                    help="seconds per story")
    ap.add_argument("--loop", action="store_true", default=config.LOOP_AT_END,
                    help="wrap to the first story instead of closing")
    ap.add_argument("--no-remote", action="store_true", help="do not start the web remote")
    ap.add_argument("--log-level", default=config.LOG_LEVEL)
    return ap.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)
    viewer = StoryViewer(args.root, item_duration=args.duration, loop=args.loop)
    if not args.no_remote:
        web_remote.start(viewer)
    final = viewer.run()
    return 1 if final.value == "error" else 0

if __name__ == "__main__":
    sys.exit(main())

import sys
import os
import curses
import logging

import config_paths
from connections import open_connection, run_probe
from messages import ProbeRequest
from dialects import get_dialect_choices

# Make ESC snappy
os.environ.setdefault("ESCDELAY", "25")
from orchestrator import Orchestrator, ViewportSession

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

USAGE = (
    "mirador - terminal viewport over database tables\n\n"
    "Usage:\n"
    "  mirador <backend> <dsn> <table> [--schema NAME] [--page-size N]\n"
    "  mirador -v\n"
    "  mirador -h\n\n"
    "Backends: postgres, mysql, sqlite\n\n"
    "Examples:\n"
    "  mirador sqlite ./shop.db orders\n"
    "  mirador postgres postgres://me:pw@localhost:5432/shop orders --schema sales\n"
    "  mirador mysql mysql://me:pw@localhost:3306/shop orders --page-size 50\n"
)


class UsageError(ValueError):
    pass


def parse_args(args):
    """Parse argv (without the program name) into a dict of options."""
    opts = {"schema": None, "page_size": None}
    positional = []
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in ("--schema", "--page-size"):
            if i + 1 >= len(args):
                raise UsageError(f"{arg} needs a value")
            value = args[i + 1]
            if arg == "--schema":
                opts["schema"] = value
            else:
                try:
                    opts["page_size"] = int(value)
                except ValueError:
                    raise UsageError(f"--page-size must be a number, got {value!r}") from None
                if opts["page_size"] <= 0:
                    raise UsageError("--page-size must be positive")
            i += 2
            continue
        if arg.startswith("--"):
            raise UsageError(f"unknown option {arg}")
        positional.append(arg)
        i += 1

    if len(positional) != 3:
        raise UsageError("expected <backend> <dsn> <table>")
    opts["backend"], opts["dsn"], opts["table"] = positional
    return opts


def main():
    args = sys.argv[1:]

    if "-v" in args or "-V" in args:
        print(__version__)
        return

    if "-h" in args or "--help" in args or not args:
        print(USAGE)
        installed = ", ".join(name for _, name in get_dialect_choices())
        print(f"Installed drivers: {installed or 'none'}")
        return

    try:
        opts = parse_args(args)
    except UsageError as e:
        print(f"mirador: {e}\n", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        sys.exit(2)

    config_paths.ensure_config_dirs()
    cfg = config_paths.load_config()
    config_paths.configure_logging(cfg["LOG_LEVEL"])
    if opts["page_size"]:
        cfg["ITEMS_PER_PAGE"] = opts["page_size"]

    probe = run_probe(ProbeRequest(opts["backend"], opts["dsn"]))
    if not probe.success:
        print(f"mirador: {probe.error}", file=sys.stderr)
        sys.exit(1)

    try:
        dialect, connection = open_connection(opts["backend"], opts["dsn"])
    except (ValueError, ConnectionError) as e:
        print(f"mirador: {e}", file=sys.stderr)
        sys.exit(1)

    session = ViewportSession(
        dialect, connection, opts["table"], schema=opts["schema"], config=cfg
    )
    logger.info("viewing %s (%s)", opts["table"], dialect.display_name)

    def curses_main(stdscr):
        Orchestrator(stdscr, session).run()

    try:
        curses.wrapper(curses_main)
    finally:
        connection.close()


if __name__ == "__main__":
    main()

import json
import logging
import os

HOME = os.path.expanduser("~")
XDG_CONFIG_HOME = os.environ.get("XDG_CONFIG_HOME")
CONFIG_HOME = XDG_CONFIG_HOME if XDG_CONFIG_HOME else os.path.join(HOME, ".config")
CONFIG_DIR = os.path.join(CONFIG_HOME, "mirador")
CONFIG_JSON = os.path.join(CONFIG_DIR, "config.json")
LOG_PATH = os.path.join(CONFIG_DIR, "mirador.log")

# default settings
ITEMS_PER_PAGE_DEFAULT = 25
STATUS_SECONDS_DEFAULT = 3
DISCARD_STALE_RESULTS_DEFAULT = True
LOG_LEVEL_DEFAULT = "WARNING"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def ensure_config_dirs():
    os.makedirs(CONFIG_DIR, exist_ok=True)


def _positive_int(value):
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def load_config():
    cfg = {
        "ITEMS_PER_PAGE": ITEMS_PER_PAGE_DEFAULT,
        "STATUS_SECONDS": STATUS_SECONDS_DEFAULT,
        "DISCARD_STALE_RESULTS": DISCARD_STALE_RESULTS_DEFAULT,
        "LOG_LEVEL": LOG_LEVEL_DEFAULT,
    }

    if not os.path.exists(CONFIG_JSON):
        return cfg

    try:
        with open(CONFIG_JSON, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logging.getLogger(__name__).warning("ignoring unreadable %s: %s", CONFIG_JSON, e)
        return cfg

    if not isinstance(data, dict):
        return cfg

    ipp = data.get("items_per_page")
    if _positive_int(ipp):
        cfg["ITEMS_PER_PAGE"] = ipp

    seconds = data.get("status_seconds")
    if isinstance(seconds, (int, float)) and not isinstance(seconds, bool) and seconds > 0:
        cfg["STATUS_SECONDS"] = seconds

    discard = data.get("discard_stale_results")
    if isinstance(discard, bool):
        cfg["DISCARD_STALE_RESULTS"] = discard

    level = data.get("log_level")
    if isinstance(level, str) and level.strip().upper() in _LOG_LEVELS:
        cfg["LOG_LEVEL"] = level.strip().upper()

    return cfg


def configure_logging(level=LOG_LEVEL_DEFAULT, path=None):
    """Send log records to a file; the terminal belongs to curses."""
    path = path or LOG_PATH
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError:
        handler = logging.NullHandler()
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[handler],
        force=True,
    )
    return handler

import logging, os, sys

ROOT_LOGGER_NAME = "relay"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if root.handlers:
        return root
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    root.setLevel(level)
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    ch.setFormatter(fmt)
    root.addHandler(ch)
    return root


def get_logger(name: str | None = None) -> logging.Logger:
    """Child of the ``relay`` logger; the stdout handler lives on the parent only."""
    root = _configure_root()
    if not name:
        return root
    return root.getChild(name)

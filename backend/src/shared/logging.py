import logging


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure process-wide logging once."""

    root = logging.getLogger()
    if root.handlers:
        # Already configured by the runtime (e.g. uvicorn)
        return

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root.setLevel(level)
    root.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name)

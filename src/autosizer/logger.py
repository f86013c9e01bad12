import logging

from rich.logging import RichHandler

# Transport libraries that log every request at DEBUG
NOISY_LOGGERS = ("google.auth", "google.api_core", "urllib3")


def setup_logger(
    level: int | str = logging.INFO, name: str = "autosizer"
) -> logging.Logger:
    """
    Returns the autosizer logger, attaching a RichHandler on first use.
    Accepts a level number or name ("DEBUG"); calling again only changes
    the level.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    log = logging.getLogger(name)
    log.setLevel(level)

    if not log.handlers:
        # Function logs are already timestamped by the runtime
        handler = RichHandler(
            rich_tracebacks=True, markup=False, show_path=False, show_time=False
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        log.addHandler(handler)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))

    return log


logger = setup_logger()

import logging
import sys
import time

# Status tags rendered as [---<tag>---]; callers pass extra={"tag": ...} to override
SUCCESS = "success"
FAIL = "fail"
INFO = "info"

_LEVEL_TAGS = {
    logging.DEBUG: "debug",
    logging.INFO: INFO,
    logging.WARNING: "warn",
    logging.ERROR: FAIL,
    logging.CRITICAL: FAIL,
}

LOG_FORMAT = "[%(asctime)s][---%(tag)s---] %(message)s"
# Same shape as `date -u`, e.g. "Mon Oct 19 04:16:00 UTC 2026"
DATE_FORMAT = "%a %b %d %H:%M:%S UTC %Y"


def setup_logging(level: str = "INFO") -> None:
    # Suppress logs from the entire azure namespace (includes azure.core, azure.identity, etc.)
    logging.getLogger("azure").setLevel(logging.WARNING)

    # Additionally suppress detailed HTTP pipeline logs
    logging.getLogger("azure.core.pipeline.policies.http_logging_policy").setLevel(logging.WARNING)

    root = logging.getLogger()
    root.setLevel(level.upper())
    if any(getattr(h, "_provisioner_handler", False) for h in root.handlers):
        return  # already configured
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter())
    handler.addFilter(StatusTagFilter())
    setattr(handler, "_provisioner_handler", True)
    root.addHandler(handler)


def build_formatter() -> logging.Formatter:
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    formatter.converter = time.gmtime
    return formatter


class StatusTagFilter(logging.Filter):
    """Ensures every record carries a ``tag`` attribute for the formatter.

    An explicit ``extra={"tag": ...}`` wins; otherwise the tag follows the level.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003 - logging API
        if not getattr(record, "tag", None):
            setattr(record, "tag", _LEVEL_TAGS.get(record.levelno, INFO))
        return True


def success(logger: logging.Logger, msg: str, *args: object) -> None:
    logger.info(msg, *args, extra={"tag": SUCCESS})

from __future__ import annotations

import logging
import re

from provisioner.core.logging import StatusTagFilter, build_formatter, setup_logging, success

LINE = re.compile(r"^\[\w{3} \w{3} \d{2} \d{2}:\d{2}:\d{2} UTC \d{4}\]\[---(\w+)---\] (.*)$")


def _render(level: int, msg: str, **extra: object) -> str:
    record = logging.LogRecord("provisioner.test", level, __file__, 1, msg, None, None)
    for k, v in extra.items():
        setattr(record, k, v)
    StatusTagFilter().filter(record)
    return build_formatter().format(record)


def test_level_decides_tag_by_default() -> None:
    assert LINE.match(_render(logging.INFO, "hello")).groups() == ("info", "hello")  # type: ignore[union-attr]
    assert LINE.match(_render(logging.ERROR, "boom")).group(1) == "fail"  # type: ignore[union-attr]
    assert LINE.match(_render(logging.WARNING, "hmm")).group(1) == "warn"  # type: ignore[union-attr]


def test_explicit_tag_wins() -> None:
    line = _render(logging.INFO, "Created the Resource Group [rgX].", tag="success")
    assert LINE.match(line).groups() == ("success", "Created the Resource Group [rgX].")  # type: ignore[union-attr]


def test_success_helper_tags_record(caplog) -> None:
    logger = logging.getLogger("provisioner.test")
    with caplog.at_level(logging.INFO, logger="provisioner.test"):
        success(logger, "Logged in as [%s].", "sp")
    record = caplog.records[-1]
    assert record.getMessage() == "Logged in as [sp]."
    assert getattr(record, "tag") == "success"


def test_setup_logging_is_idempotent() -> None:
    setup_logging("debug")
    setup_logging("info")
    root = logging.getLogger()
    ours = [h for h in root.handlers if getattr(h, "_provisioner_handler", False)]
    assert len(ours) == 1
    assert root.level == logging.INFO
    assert logging.getLogger("azure").level == logging.WARNING

"""Transient operator notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Literal

logger = logging.getLogger(__name__)

NoticeLevel = Literal["success", "error", "info"]


@dataclass(frozen=True, slots=True)
class Notice:
    level: NoticeLevel
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Notifier:
    """Collects toast-style notices until the screen drains them."""

    def __init__(self) -> None:
        self.notices: List[Notice] = []

    def _push(self, level: NoticeLevel, message: str) -> Notice:
        notice = Notice(level=level, message=message)
        self.notices.append(notice)
        log = logger.warning if level == "error" else logger.info
        log(f"[{level}] {message}")
        return notice

    def success(self, message: str) -> Notice:
        return self._push("success", message)

    def error(self, message: str) -> Notice:
        return self._push("error", message)

    def info(self, message: str) -> Notice:
        return self._push("info", message)

    def drain(self) -> List[Notice]:
        notices, self.notices = self.notices, []
        return notices

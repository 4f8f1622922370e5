"""Run-wide state shared between global setup, fixtures and teardown.

One `RunContext` lives for the whole pytest session and is handed to fixtures
through the session-scoped ``run_context`` fixture.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from playwright.async_api import ConsoleMessage, Page, Response

from lumina_e2e.test_data import TestDataManager, TestUser

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ConsoleEntry:
    type: str
    text: str
    timestamp: str


@dataclass
class NetworkEntry:
    url: str
    status: int
    method: str
    timestamp: str


@dataclass
class RunContext:
    data_manager: TestDataManager = field(default_factory=TestDataManager)
    console_logs: List[ConsoleEntry] = field(default_factory=list)
    network_activity: List[NetworkEntry] = field(default_factory=list)
    pending_users: List[TestUser] = field(default_factory=list)
    start_time: Optional[datetime] = None
    setup_complete: bool = False

    # ---- browser listeners ----------------------------------------------------------
    def _on_console(self, message: ConsoleMessage) -> None:
        self.console_logs.append(
            ConsoleEntry(type=message.type, text=message.text, timestamp=_now().isoformat())
        )

    def _on_response(self, response: Response) -> None:
        self.network_activity.append(
            NetworkEntry(
                url=response.url,
                status=response.status,
                method=response.request.method,
                timestamp=_now().isoformat(),
            )
        )

    def attach(self, page: Page) -> Page:
        """Collect console output and responses of ``page`` into this context."""
        page.on("console", self._on_console)
        page.on("response", self._on_response)
        return page

    def console_errors(self) -> List[ConsoleEntry]:
        return [entry for entry in self.console_logs if entry.type == "error"]

    # ---- users awaiting cleanup -----------------------------------------------------
    def track_user(self, user: TestUser) -> None:
        if user not in self.pending_users:
            self.pending_users.append(user)
        if user.id:
            self.data_manager.track_created_data("user", user.id)

    def forget_user(self, user: TestUser) -> None:
        if user in self.pending_users:
            self.pending_users.remove(user)

    # ---- lifecycle -------------------------------------------------------------------
    def mark_started(self) -> None:
        self.start_time = _now()
        self.setup_complete = True

    def summary(self, end_time: Optional[datetime] = None) -> Dict[str, Any]:
        end_time = end_time or _now()
        start_time = self.start_time or end_time
        duration = (end_time - start_time).total_seconds()
        return {
            "startTime": start_time.isoformat(),
            "endTime": end_time.isoformat(),
            "duration": f"{round(duration)}s",
            "consoleLogs": [entry.__dict__ for entry in self.console_logs],
            "networkActivity": [entry.__dict__ for entry in self.network_activity],
        }

    def write_summary(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.summary(), indent=2), encoding="utf-8")
        logger.info(f"Test run summary saved to: {path}")
        return path

    def reset(self) -> None:
        self.console_logs.clear()
        self.network_activity.clear()
        self.pending_users.clear()
        self.data_manager.clear_tracked_data()
        self.start_time = None
        self.setup_complete = False

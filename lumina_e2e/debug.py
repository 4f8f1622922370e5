"""Debugging aids for failing browser interactions."""
from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional

from playwright.async_api import Locator, Page, TimeoutError as PlaywrightTimeout

from lumina_e2e.run_context import RunContext
from lumina_e2e.storage import storage_snapshot

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class InteractionError(Exception):
    """Raised when an element interaction times out, with page context attached."""

    action: str
    payload: Dict[str, Any] = field(default_factory=dict)
    message: str = ""

    def __post_init__(self) -> None:
        super().__init__(f"{self.action} failed ({self.message}) with context={self.payload}")


async def describe_locator(page: Page, locator: Locator) -> Dict[str, Any]:
    """Collect URL, match count and visibility for an element; never raises."""
    info: Dict[str, Any] = {"url": page.url, "locator": str(locator)}
    try:
        info["count"] = await locator.count()
        info["visible"] = info["count"] > 0 and await locator.first.is_visible()
    except Exception as exc:
        info["inspect_error"] = str(exc)
    return info


@asynccontextmanager
async def interaction(page: Page, locator: Locator, action: str) -> AsyncIterator[Locator]:
    """Turn a Playwright timeout inside the block into an enriched InteractionError.

    Usage:
        async with interaction(page, login.submit, "click submit") as button:
            await button.click()
    """
    try:
        yield locator
    except PlaywrightTimeout as exc:
        context = await describe_locator(page, locator)
        logger.debug(f"Interaction '{action}' timed out: {context}")
        raise InteractionError(action=action, payload=context, message=str(exc).splitlines()[0]) from exc


class DebugHelpers:
    """Writes a bundle of debug artefacts for a failed test.

    Every step is best-effort: a failure to capture one artefact is logged and
    the remaining ones are still written.
    """

    def __init__(self, page: Page, output_dir: Path, run_context: Optional[RunContext] = None) -> None:
        self.page = page
        self.output_dir = Path(output_dir)
        self.run_context = run_context

    async def capture_debug_info(self, error: BaseException, context: str = "") -> Path:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%f")
        debug_dir = self.output_dir / f"debug-{timestamp}"
        debug_dir.mkdir(parents=True, exist_ok=True)

        await self._capture("screenshot", self._screenshot, debug_dir / "error-screenshot.png")
        await self._capture("page HTML", self._page_html, debug_dir / "page-source.html")
        await self._capture("console logs", self._console_logs, debug_dir / "console-logs.json")
        await self._capture("network activity", self._network_activity, debug_dir / "network-activity.json")
        await self._capture("storage state", self._storage_state, debug_dir / "storage-state.json")
        await self._capture("debug report", self._report, debug_dir / "debug-report.md", error, context)

        print(f"[DEBUG] Debug information captured in: {debug_dir}")
        return debug_dir

    async def _capture(self, label: str, capture, path: Path, *args: Any) -> None:
        try:
            await capture(path, *args)
        except Exception as exc:
            logger.warning(f"Failed to capture {label}: {exc}")

    async def _screenshot(self, path: Path) -> None:
        await self.page.screenshot(path=str(path), full_page=True, type="png")

    async def _page_html(self, path: Path) -> None:
        path.write_text(await self.page.content(), encoding="utf-8")

    async def _console_logs(self, path: Path) -> None:
        entries = [entry.__dict__ for entry in self.run_context.console_logs] if self.run_context else []
        path.write_text(json.dumps(entries, indent=2), encoding="utf-8")

    async def _network_activity(self, path: Path) -> None:
        entries = [entry.__dict__ for entry in self.run_context.network_activity] if self.run_context else []
        path.write_text(json.dumps(entries, indent=2), encoding="utf-8")

    async def _storage_state(self, path: Path) -> None:
        path.write_text(json.dumps(await storage_snapshot(self.page), indent=2), encoding="utf-8")

    async def _report(self, path: Path, error: BaseException, context: str) -> None:
        title = await self.page.title()
        lines = [
            "# Debug Report",
            "",
            f"**Generated:** {datetime.now(timezone.utc).isoformat()}",
            f"**URL:** {self.page.url}",
            f"**Title:** {title}",
        ]
        if context:
            lines.append(f"**Context:** {context}")
        lines += [
            "",
            "## Error",
            "",
            "```",
            f"{error.__class__.__name__}: {error}",
            "```",
        ]
        if isinstance(error, InteractionError):
            lines += ["", "## Element", "", "```json", json.dumps(error.payload, indent=2), "```"]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")

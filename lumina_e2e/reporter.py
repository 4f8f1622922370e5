"""
CI reporter plugin.

Collects one record per test while pytest runs and, at session end, writes:

- test-results/ci-report.json      machine-readable summary
- test-results/test-summary.md     summary, failed tests and slowest tests
- test-results/junit-results.xml   JUnit XML for CI systems
- test-results/failure-analysis.md failures grouped by error pattern (only on failures)

The exit status is forced to 1 whenever a test failed, regardless of how the
run was invoked. Error-pattern grouping is a triage aid and never changes an
outcome.
"""
from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ET
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

logger = logging.getLogger(__name__)

PASSED = "passed"
FAILED = "failed"
SKIPPED = "skipped"
TIMED_OUT = "timedOut"

STATUS_ICONS = {
    PASSED: "✅",
    FAILED: "❌",
    TIMED_OUT: "⏱️",
    SKIPPED: "⏭️",
}

# Runner-level test timeouts (pytest-timeout style), not element waits.
RUNNER_TIMEOUT_MARKERS = ("Failed: Timeout >", "Timeout >")

SLOWEST_LIMIT = 10


@dataclass
class TestRecord:
    title: str
    nodeid: str
    status: str
    duration_ms: int
    error: Optional[str] = None
    screenshot: Optional[str] = None
    file: Optional[str] = None
    line: Optional[int] = None

    __test__ = False


@dataclass
class TestRunSummary:
    timestamp: str
    summary: Dict[str, int]
    timing: Dict[str, Any]
    failed_tests: List[Dict[str, Any]] = field(default_factory=list)
    slowest_tests: List[Dict[str, Any]] = field(default_factory=list)
    environment: Dict[str, Any] = field(default_factory=dict)
    runner: Dict[str, Any] = field(default_factory=dict)

    __test__ = False

    @property
    def failed(self) -> int:
        return self.summary["failed"]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "summary": self.summary,
            "timing": self.timing,
            "failedTests": self.failed_tests,
            "slowestTests": self.slowest_tests,
            "environment": self.environment,
            "runner": self.runner,
        }


def format_duration(ms: float) -> str:
    if ms < 1000:
        return f"{int(ms)}ms"
    if ms < 60000:
        return f"{ms / 1000:.1f}s"
    return f"{int(ms // 60000)}m {int((ms % 60000) // 1000)}s"


def extract_error_pattern(error: str) -> str:
    """Coarse bucket for a failure message. Order matters: the first match wins."""
    if "TimeoutError" in error:
        return "Timeout Error"
    if "Element not found" in error:
        return "Element Not Found"
    if "Navigation timeout" in error:
        return "Navigation Timeout"
    if "Network" in error:
        return "Network Error"
    if "Authentication" in error:
        return "Authentication Error"
    return "Other"


def build_summary(
    records: List[TestRecord],
    environment: Optional[Dict[str, Any]] = None,
    runner: Optional[Dict[str, Any]] = None,
    timestamp: Optional[str] = None,
) -> TestRunSummary:
    total = len(records)
    counts = {status: sum(1 for r in records if r.status == status) for status in STATUS_ICONS}
    total_duration = sum(r.duration_ms for r in records)

    failed_tests = [
        {
            "title": r.title,
            "error": r.error,
            "duration": r.duration_ms,
            "screenshot": r.screenshot,
            "file": r.file,
            "line": r.line,
        }
        for r in records
        if r.status == FAILED
    ]
    slowest = sorted(records, key=lambda r: r.duration_ms, reverse=True)[:SLOWEST_LIMIT]

    return TestRunSummary(
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
        summary={
            "total": total,
            "passed": counts[PASSED],
            "failed": counts[FAILED],
            "skipped": counts[SKIPPED],
            "timedOut": counts[TIMED_OUT],
            "passRate": round(counts[PASSED] / total * 100) if total else 0,
        },
        timing={
            "totalDuration": total_duration,
            "avgDuration": round(total_duration / total) if total else 0,
            "totalDurationFormatted": format_duration(total_duration),
        },
        failed_tests=failed_tests,
        slowest_tests=[{"title": r.title, "duration": r.duration_ms, "status": r.status} for r in slowest],
        environment=environment or {},
        runner=runner or {},
    )


def render_markdown(summary: TestRunSummary) -> str:
    counts, timing, env = summary.summary, summary.timing, summary.environment
    status_icon = STATUS_ICONS[FAILED] if counts["failed"] > 0 else STATUS_ICONS[PASSED]

    lines = [
        f"# E2E Test Report {status_icon}",
        "",
        f"**Generated:** {summary.timestamp}",
        f"**Environment:** {'CI' if env.get('ci') else 'Local'}",
        f"**Base URL:** {env.get('baseUrl', '')}",
        "",
        "## Summary",
        "",
        "| Metric | Value |",
        "|--------|-------|",
        f"| Total Tests | {counts['total']} |",
        f"| ✅ Passed | {counts['passed']} |",
        f"| ❌ Failed | {counts['failed']} |",
        f"| ⏭️ Skipped | {counts['skipped']} |",
        f"| ⏱️ Timed Out | {counts['timedOut']} |",
        f"| 📊 Pass Rate | {counts['passRate']}% |",
        f"| ⏱️ Total Duration | {timing['totalDurationFormatted']} |",
        f"| 📈 Avg Duration | {timing['avgDuration']}ms |",
        "",
    ]

    if summary.failed_tests:
        lines += ["## Failed Tests", ""]
        for test in summary.failed_tests:
            lines.append(f"### ❌ {test['title']}")
            lines.append(f"**Duration:** {test['duration']}ms")
            if test.get("file"):
                lines.append(f"**File:** {test['file']}:{test.get('line') or 0}")
            if test.get("error"):
                lines += ["**Error:**", "```", test["error"], "```"]
            if test.get("screenshot"):
                lines.append(f"**Screenshot:** {test['screenshot']}")
            lines.append("")

    lines += ["## Slowest Tests", "", "| Test | Duration | Status |", "|------|----------|--------|"]
    for test in summary.slowest_tests:
        lines.append(f"| {test['title']} | {test['duration']}ms | {STATUS_ICONS.get(test['status'], '❓')} |")

    return "\n".join(lines) + "\n"


def render_junit(records: List[TestRecord], summary: TestRunSummary) -> str:
    seconds = str(summary.timing["totalDuration"] / 1000)
    failures = str(summary.summary["failed"])
    total = str(summary.summary["total"])

    suites = ET.Element("testsuites", name="E2E Tests", tests=total, failures=failures, time=seconds)
    suite = ET.SubElement(suites, "testsuite", name="Playwright E2E", tests=total, failures=failures, time=seconds)

    for record in records:
        case = ET.SubElement(suite, "testcase", name=record.title, time=str(record.duration_ms / 1000))
        if record.status == FAILED:
            failure = ET.SubElement(case, "failure", message=record.error or "Test failed")
            failure.text = record.error or "No error message"
        elif record.status == SKIPPED:
            ET.SubElement(case, "skipped")

    ET.indent(suites, space="  ")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(suites, encoding="unicode") + "\n"


def group_failures(failed_tests: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    groups: Dict[str, List[Dict[str, Any]]] = {}
    for test in failed_tests:
        if test.get("error"):
            groups.setdefault(extract_error_pattern(test["error"]), []).append(test)
    return groups


def render_failure_analysis(failed_tests: List[Dict[str, Any]], generated: Optional[str] = None) -> str:
    lines = [
        "# Failure Analysis",
        "",
        f"**Generated:** {generated or datetime.now(timezone.utc).isoformat()}",
        f"**Failed Tests:** {len(failed_tests)}",
        "",
        "## Error Patterns",
        "",
    ]
    for pattern, tests in group_failures(failed_tests).items():
        lines += [f"### {pattern} ({len(tests)} tests)", "", "**Affected tests:**"]
        lines += [f"- {test['title']} ({test['duration']}ms)" for test in tests]
        lines += ["", "**Error details:**", "```", tests[0]["error"], "```", ""]

    lines += [
        "## Recommendations",
        "",
        "1. **Review error patterns** above to identify common failure causes",
        "2. **Check for flaky tests** that fail intermittently",
        "3. **Verify test environment** configuration and dependencies",
        "4. **Review recent code changes** that might have introduced regressions",
        "5. **Consider adding more wait conditions** for elements that might load asynchronously",
        "",
    ]
    return "\n".join(lines)


def write_reports(records: List[TestRecord], summary: TestRunSummary, reports_dir: Path) -> List[Path]:
    reports_dir.mkdir(parents=True, exist_ok=True)
    written = []

    json_path = reports_dir / "ci-report.json"
    json_path.write_text(json.dumps(summary.to_dict(), indent=2), encoding="utf-8")
    written.append(json_path)

    md_path = reports_dir / "test-summary.md"
    md_path.write_text(render_markdown(summary), encoding="utf-8")
    written.append(md_path)

    junit_path = reports_dir / "junit-results.xml"
    junit_path.write_text(render_junit(records, summary), encoding="utf-8")
    written.append(junit_path)

    if summary.failed_tests:
        analysis_path = reports_dir / "failure-analysis.md"
        analysis_path.write_text(render_failure_analysis(summary.failed_tests), encoding="utf-8")
        written.append(analysis_path)

    return written


def _title(report: pytest.TestReport) -> str:
    parts = report.nodeid.split("::")
    parent = parts[-2] if len(parts) > 2 else Path(parts[0]).stem
    return f"{parent} > {parts[-1]}"


def _error_text(report: pytest.TestReport) -> Optional[str]:
    crash = getattr(report.longrepr, "reprcrash", None)
    if crash is not None and getattr(crash, "message", None):
        return crash.message
    if report.longrepr is None:
        return None
    if isinstance(report.longrepr, tuple):
        return str(report.longrepr[-1])
    return str(report.longrepr).strip().splitlines()[-1] if str(report.longrepr).strip() else None


class CIReporter:
    """pytest plugin producing the CI artefacts described in the module docstring."""

    def __init__(self, reports_dir: Path, environment: Optional[Dict[str, Any]] = None) -> None:
        self.reports_dir = Path(reports_dir)
        self.environment = environment or {}
        self.records: Dict[str, TestRecord] = {}
        self.started_at = datetime.now(timezone.utc)
        self.summary: Optional[TestRunSummary] = None

    def _record_for(self, report: pytest.TestReport) -> TestRecord:
        record = self.records.get(report.nodeid)
        if record is None:
            fspath, line, _ = report.location
            record = TestRecord(
                title=_title(report),
                nodeid=report.nodeid,
                status=PASSED,
                duration_ms=0,
                file=fspath,
                line=(line + 1) if line is not None else None,
            )
            self.records[report.nodeid] = record
        return record

    def _apply(self, record: TestRecord, report: pytest.TestReport) -> None:
        record.duration_ms += int(round(report.duration * 1000))
        for name, value in report.user_properties:
            if name == "screenshot":
                record.screenshot = str(value)

        if report.skipped and record.status == PASSED:
            record.status = SKIPPED
        elif report.failed and record.status in (PASSED, SKIPPED):
            error = _error_text(report)
            record.error = error
            if error and any(marker in error for marker in RUNNER_TIMEOUT_MARKERS):
                record.status = TIMED_OUT
            else:
                record.status = FAILED

    @pytest.hookimpl
    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:
        record = self._record_for(report)
        self._apply(record, report)

        if report.when == "call" or report.failed or report.skipped:
            icon = STATUS_ICONS.get(record.status, "❓")
            logger.info(f"{icon} {record.title} ({record.duration_ms}ms)")
            if report.failed and record.error:
                logger.info(f"  ❌ Error: {record.error}")

    @pytest.hookimpl(trylast=True)
    def pytest_sessionfinish(self, session: pytest.Session, exitstatus: int) -> None:
        records = list(self.records.values())
        self.summary = build_summary(
            records,
            environment=self.environment,
            runner={"status": int(exitstatus), "startTime": self.started_at.isoformat()},
        )
        try:
            write_reports(records, self.summary, self.reports_dir)
        except OSError as exc:
            logger.warning(f"Failed to write CI reports to {self.reports_dir}: {exc}")

        if self.summary.failed > 0:
            session.exitstatus = pytest.ExitCode.TESTS_FAILED

    @pytest.hookimpl
    def pytest_terminal_summary(self, terminalreporter) -> None:
        if self.summary is None:
            return
        counts, timing = self.summary.summary, self.summary.timing
        tr = terminalreporter
        tr.write_sep("=", "📊 E2E TEST SUMMARY")
        tr.write_line(f"✅ Passed:     {counts['passed']}/{counts['total']} ({counts['passRate']}%)")
        tr.write_line(f"❌ Failed:     {counts['failed']}")
        tr.write_line(f"⏭️ Skipped:    {counts['skipped']}")
        tr.write_line(f"⏱️ Timed Out:  {counts['timedOut']}")
        tr.write_line(f"⏱️ Duration:   {timing['totalDurationFormatted']}")
        tr.write_line(f"📊 Reports generated in: {self.reports_dir}")
        if counts["failed"] > 0:
            tr.write_line("❌ Some tests failed. Check the reports for details.")
        else:
            tr.write_line("✅ All tests passed!")

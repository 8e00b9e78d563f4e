"""Plain-text test report formatting.

Builds the human-readable report attached to a finished job from the
Playwright JSON reporter output (when present) and the captured process
output.

The results file is written by the external test command, so every field
is checked before use: entries of the wrong type are skipped and
non-numeric counts or durations are treated as missing.

Playwright JSON layout (abridged):
    {
      "stats": {"expected": 3, "unexpected": 1, "skipped": 0, "flaky": 0, "duration": 1234.5},
      "suites": [
        {"title": "hero.spec.js", "file": "hero.spec.js",
         "specs": [{"title": "...", "tests": [
             {"projectName": "chromium", "status": "unexpected",
              "results": [{"status": "failed", "duration": 512,
                           "error": {"message": "...", "stack": "..."}}]}]}],
         "suites": [...]}
      ]
    }
"""

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path

from domain.model.job import Job

logger = logging.getLogger(__name__)

MAX_STACK_LINES = 10
RULE = '=' * 60

CONTENT_TYPES = {
    '.html': 'text/html',
    '.js': 'application/javascript',
    '.css': 'text/css',
    '.json': 'application/json',
}
DEFAULT_CONTENT_TYPE = 'text/html'

_OUTCOME_LABELS = {
    'expected': 'PASS',
    'unexpected': 'FAIL',
    'skipped': 'SKIP',
    'flaky': 'FLAKY',
}


@dataclass
class ResultCounts:
    """Aggregate outcome of a test run."""
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    flaky: int = 0
    duration_ms: float | None = None

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.skipped + self.flaky


@dataclass
class TestOutcome:
    """One test as reported by Playwright."""
    __test__ = False

    title: str
    outcome: str
    project: str | None = None
    duration_ms: float | None = None
    error_message: str | None = None
    error_stack: str | None = None


@dataclass
class SuiteOutcome:
    title: str
    tests: list[TestOutcome] = field(default_factory=list)


def content_type_for(filename: str) -> str:
    """Content type for a report file, based on its extension."""
    return CONTENT_TYPES.get(Path(filename).suffix.lower(), DEFAULT_CONTENT_TYPE)


def load_results_summary(path: Path) -> dict | None:
    """Load the Playwright JSON reporter output, or None if unavailable."""
    if not path.is_file():
        logger.info("No structured results file found", extra={"path": str(path)})
        return None
    try:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Failed to read structured results", extra={"path": str(path), "error": str(e)})
        return None
    if not isinstance(data, dict):
        logger.warning("Structured results file is not a JSON object", extra={"path": str(path)})
        return None
    return data


def _objects(value) -> list[dict]:
    """The dict entries of a JSON array; anything else yields nothing."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _text(value) -> str | None:
    return value if isinstance(value, str) and value else None


def _number(value) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _count(value) -> int:
    number = _number(value)
    return int(number) if number is not None and number > 0 else 0


def collect_suites(summary: dict) -> list[SuiteOutcome]:
    """Flatten nested Playwright suites into one entry per suite with specs."""
    suites: list[SuiteOutcome] = []

    def walk(suite: dict, parents: list[str]) -> None:
        title = _text(suite.get('title')) or _text(suite.get('file')) or '(untitled)'
        path = parents + [title]
        tests = []
        for spec in _objects(suite.get('specs')):
            for test in _objects(spec.get('tests')):
                tests.append(_test_outcome(spec, test))
        if tests:
            suites.append(SuiteOutcome(title=' > '.join(path), tests=tests))
        for child in _objects(suite.get('suites')):
            walk(child, path)

    if isinstance(summary, dict):
        for suite in _objects(summary.get('suites')):
            walk(suite, [])
    return suites


def _test_outcome(spec: dict, test: dict) -> TestOutcome:
    results = _objects(test.get('results'))
    last = results[-1] if results else {}
    error = last.get('error')
    if not isinstance(error, dict):
        errors = _objects(last.get('errors'))
        error = errors[0] if errors else {}
    return TestOutcome(
        title=_text(spec.get('title')) or '(untitled)',
        outcome=_text(test.get('status')) or ('expected' if spec.get('ok') is True else 'unexpected'),
        project=_text(test.get('projectName')),
        duration_ms=_number(last.get('duration')),
        error_message=_text(error.get('message')),
        error_stack=_text(error.get('stack')),
    )


def summarize_results(summary: dict | None) -> ResultCounts | None:
    """Aggregate counts from the stats block, or by counting test outcomes."""
    if not summary or not isinstance(summary, dict):
        return None

    stats = summary.get('stats')
    if isinstance(stats, dict) and 'expected' in stats:
        return ResultCounts(
            passed=_count(stats.get('expected')),
            failed=_count(stats.get('unexpected')),
            skipped=_count(stats.get('skipped')),
            flaky=_count(stats.get('flaky')),
            duration_ms=_number(stats.get('duration')),
        )

    counts = ResultCounts()
    for suite in collect_suites(summary):
        for test in suite.tests:
            if test.outcome == 'expected':
                counts.passed += 1
            elif test.outcome == 'skipped':
                counts.skipped += 1
            elif test.outcome == 'flaky':
                counts.flaky += 1
            else:
                counts.failed += 1
    return counts


def build_text_report(
    job: Job,
    summary: dict | None,
    stdout: str,
    stderr: str,
) -> str:
    """Render the plain-text report for a finished run.

    Args:
        job: Job the report belongs to.
        summary: Parsed Playwright JSON output, if any.
        stdout: Captured standard output of the test command.
        stderr: Captured standard error of the test command.
    """
    lines = [RULE, f"Test Report - {job.id}", RULE]
    lines.extend(_header_lines(job))

    counts = summarize_results(summary)
    lines.append('')
    if counts is None:
        lines.append('Summary: no structured results available')
    else:
        lines.append(
            f"Summary: {counts.total} tests - {counts.passed} passed, {counts.failed} failed, "
            f"{counts.skipped} skipped, {counts.flaky} flaky"
        )
        if counts.duration_ms is not None:
            lines.append(f"Duration: {_format_duration(counts.duration_ms)}")

    if summary:
        for suite in collect_suites(summary):
            lines.append('')
            lines.append(suite.title)
            lines.append('-' * min(len(suite.title), 60))
            for test in suite.tests:
                lines.extend(_test_lines(test))

    lines.extend(_output_sections(stdout, stderr))
    return '\n'.join(lines) + '\n'


def reconstruct_text_report(job: Job) -> str:
    """Best-effort report for jobs that never got a formatted one."""
    lines = [RULE, f"Test Report - {job.id}", RULE]
    lines.extend(_header_lines(job))
    lines.extend(_output_sections(job.stdout, job.stderr))
    return '\n'.join(lines) + '\n'


def _header_lines(job: Job) -> list[str]:
    lines = [
        f"Status: {job.status.value.upper()}",
        f"Event: {job.source_event}",
    ]
    if job.subject_id:
        lines.append(f"Site: {job.subject_id}")
    lines.append(f"Created: {job.created_at.isoformat()}")
    if job.started_at:
        lines.append(f"Started: {job.started_at.isoformat()}")
    if job.completed_at:
        lines.append(f"Completed: {job.completed_at.isoformat()}")
    if job.error:
        lines.append(f"Error: {job.error}")
    return lines


def _test_lines(test: TestOutcome) -> list[str]:
    label = _OUTCOME_LABELS.get(test.outcome, 'FAIL')
    title = test.title
    if test.project:
        title = f"[{test.project}] {title}"
    line = f"  [{label}] {title}"
    if test.duration_ms is not None:
        line += f" ({_format_duration(test.duration_ms)})"
    lines = [line]

    if label in ('FAIL', 'FLAKY'):
        if test.error_message:
            lines.extend(f"      {msg}" for msg in test.error_message.strip().splitlines())
        if test.error_stack:
            stack = test.error_stack.strip().splitlines()
            lines.extend(f"        {frame}" for frame in stack[:MAX_STACK_LINES])
            if len(stack) > MAX_STACK_LINES:
                lines.append(f"        ... ({len(stack) - MAX_STACK_LINES} more lines)")
    return lines


def _output_sections(stdout: str, stderr: str) -> list[str]:
    lines = []
    for name, text in (('STDOUT', stdout), ('STDERR', stderr)):
        lines.append('')
        lines.append(f"{name}:")
        lines.append(text.rstrip() if text and text.strip() else '(empty)')
    return lines


def _format_duration(duration_ms: float) -> str:
    seconds = float(duration_ms) / 1000
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, rest = divmod(seconds, 60)
    return f"{int(minutes)}m {rest:.1f}s"

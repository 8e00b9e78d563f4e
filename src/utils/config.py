"""Service configuration loaded from environment variables."""

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_TEST_COMMAND = 'npx playwright test --project=chromium --reporter=html,json'

_TRUTHY = {'1', 'true', 'yes', 'on'}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    return value.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


@dataclass(frozen=True)
class Settings:
    webhook_secret: str | None = None
    port: int = 3000
    allow_external_trigger: bool = False
    test_command: list[str] = field(default_factory=lambda: shlex.split(DEFAULT_TEST_COMMAND))
    test_workdir: Path = field(default_factory=Path.cwd)
    report_dir: Path = Path('playwright-report')
    results_file: Path = Path('test-results/results.json')
    test_timeout_seconds: int = 1800
    max_output_bytes: int = 10 * 1024 * 1024
    serialize_test_runs: bool = True
    cors_origins: str = '*'

    @property
    def report_path(self) -> Path:
        """Report directory resolved against the test working directory."""
        return self.test_workdir / self.report_dir

    @property
    def results_path(self) -> Path:
        return self.test_workdir / self.results_file

    @classmethod
    def from_env(cls) -> 'Settings':
        """Build settings from the process environment."""
        return cls(
            webhook_secret=os.getenv('WEBFLOW_WEBHOOK_SECRET') or None,
            port=_env_int('PORT', 3000),
            allow_external_trigger=_env_flag('ALLOW_EXTERNAL_TEST_TRIGGER'),
            test_command=shlex.split(os.getenv('TEST_COMMAND') or DEFAULT_TEST_COMMAND),
            test_workdir=Path(os.getenv('TEST_WORKDIR') or Path.cwd()),
            report_dir=Path(os.getenv('REPORT_DIR') or 'playwright-report'),
            results_file=Path(os.getenv('RESULTS_FILE') or 'test-results/results.json'),
            test_timeout_seconds=_env_int('TEST_TIMEOUT_SECONDS', 1800),
            max_output_bytes=_env_int('MAX_OUTPUT_BYTES', 10 * 1024 * 1024),
            serialize_test_runs=_env_flag('SERIALIZE_TEST_RUNS', default=True),
            cors_origins=os.getenv('CORS_ORIGINS', '*'),
        )

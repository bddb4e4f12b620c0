"""Configuration loading and validation.

Usage:
    config = load()                          # built-in defaults if no file exists
    config = load("accessiguard.yaml")       # raises ConfigError on bad config
    generate_template("accessiguard.yaml")   # writes example file to disk
"""

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

import yaml

from accessiguard.client import DEFAULT_API_URL, DEFAULT_TIMEOUT
from accessiguard.reports.normalize import DEFAULT_BASE_URL

DEFAULT_CONFIG_PATH = "accessiguard.yaml"
DEFAULT_THRESHOLD = 0
DEFAULT_CI_THRESHOLD = 70


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


# ---------------------------------------------------------------------------
# Config dataclass
# ---------------------------------------------------------------------------

@dataclass
class Config:
    api_url: str = DEFAULT_API_URL
    report_base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    threshold: float = DEFAULT_THRESHOLD
    ci_threshold: float = DEFAULT_CI_THRESHOLD

    def default_threshold(self, ci: bool) -> float:
        """Threshold used when ``--threshold`` is not given on the command line."""
        return self.ci_threshold if ci else self.threshold


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load(config_path: Optional[str] = None) -> Config:
    """Load and validate configuration from a YAML file.

    When *config_path* is None the default ``accessiguard.yaml`` is read if it
    exists; otherwise built-in defaults apply.  An explicitly given path must
    exist.  Environment variables ACCESSIGUARD_API_URL and
    ACCESSIGUARD_REPORT_BASE_URL override file values.

    Raises:
        ConfigError: if the file is missing, malformed, or values are invalid.
    """
    raw: dict = {}
    path = Path(config_path or DEFAULT_CONFIG_PATH)

    if path.exists():
        raw = _read_yaml(path)
    elif config_path is not None:
        raise ConfigError(
            f"Config file not found: '{config_path}'\n"
            "Run `accessiguard init` to generate a template."
        )

    api  = raw.get("api") or {}
    scan = raw.get("scan") or {}
    if not isinstance(api, dict) or not isinstance(scan, dict):
        raise ConfigError(f"'{path}': 'api' and 'scan' must be mappings.")

    config = Config(
        api_url=str(os.environ.get("ACCESSIGUARD_API_URL") or api.get("url", DEFAULT_API_URL)).strip(),
        report_base_url=str(
            os.environ.get("ACCESSIGUARD_REPORT_BASE_URL")
            or api.get("report_base_url", DEFAULT_BASE_URL)
        ).strip(),
        timeout=api.get("timeout", DEFAULT_TIMEOUT),
        threshold=scan.get("threshold", DEFAULT_THRESHOLD),
        ci_threshold=scan.get("ci_threshold", DEFAULT_CI_THRESHOLD),
    )
    _validate(config)
    return config


def _read_yaml(path: Path) -> dict:
    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse '{path}': {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"'{path}' must be a YAML mapping at the top level.")
    return raw


def _is_http_url(value: str) -> bool:
    parts = urlsplit(value)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def _is_finite_number(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _validate(config: Config) -> None:
    """Raise ConfigError if any value is unusable."""
    errors: list[str] = []

    if not _is_http_url(config.api_url):
        errors.append(
            "  - 'api.url' must be an http(s) URL (or set ACCESSIGUARD_API_URL)"
        )
    if not _is_http_url(config.report_base_url):
        errors.append(
            "  - 'api.report_base_url' must be an http(s) URL "
            "(or set ACCESSIGUARD_REPORT_BASE_URL)"
        )
    if not _is_finite_number(config.timeout) or config.timeout <= 0:
        errors.append("  - 'api.timeout' must be a positive number of seconds")
    if not _is_finite_number(config.threshold):
        errors.append("  - 'scan.threshold' must be a number")
    if not _is_finite_number(config.ci_threshold):
        errors.append("  - 'scan.ci_threshold' must be a number")

    if errors:
        raise ConfigError("Invalid configuration:\n" + "\n".join(errors))


# ---------------------------------------------------------------------------
# Template generator (used by `init` command)
# ---------------------------------------------------------------------------

TEMPLATE = """\
api:
  url: "https://www.accessiguard.app/api/scan"
  report_base_url: "https://www.accessiguard.app"
  timeout: 30                     # seconds

scan:
  threshold: 0                    # minimum passing score
  ci_threshold: 70                # minimum passing score with --ci
"""


def generate_template(output_path: str = DEFAULT_CONFIG_PATH) -> None:
    """Write a template accessiguard.yaml to *output_path*.

    Raises:
        ConfigError: if the file already exists.
    """
    path = Path(output_path)
    if path.exists():
        raise ConfigError(
            f"'{output_path}' already exists. Remove it first or choose a different path."
        )
    path.write_text(TEMPLATE, encoding="utf-8")

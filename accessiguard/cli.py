"""CLI entry point — command definitions using Click.

Commands:
    scan          Scan a URL and print a report (pretty, --ci or --json)
    init          Generate a template config file

Exit codes:
    0  Score >= threshold
    1  Score < threshold
    2  Error (invalid input, network, API failure)
"""

import functools
import math
import sys
from pathlib import Path
from typing import Optional

import click

from accessiguard import __version__

EXIT_OK = 0
EXIT_THRESHOLD_FAIL = 1
EXIT_ERROR = 2


# ---------------------------------------------------------------------------
# Helpers shared by all commands
# ---------------------------------------------------------------------------

class HttpUrl(click.ParamType):
    """A URL to scan; ``https://`` is assumed when no scheme is given."""

    name = "url"

    def convert(self, value, param, ctx):
        from accessiguard.client import InvalidURLError, validate_http_url

        try:
            return validate_http_url(value)
        except InvalidURLError as exc:
            self.fail(str(exc), param, ctx)


def _finite_threshold(ctx: click.Context, param: click.Parameter, value: Optional[float]):
    if value is not None and not math.isfinite(value):
        raise click.BadParameter("Expected a finite number.", ctx=ctx, param=param)
    return value


def _verbose(ctx: click.Context, message: str) -> None:
    if ctx.obj["verbose"]:
        click.echo(f"[verbose] {message}", err=True)


def _fail(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(EXIT_ERROR)


def _load_config(ctx: click.Context):
    from accessiguard.config import DEFAULT_CONFIG_PATH, load

    config_path = ctx.obj["config_path"] or DEFAULT_CONFIG_PATH
    config = load(ctx.obj["config_path"])
    if Path(config_path).exists():
        _verbose(ctx, f"Using config {config_path}")
    else:
        _verbose(ctx, "No config file found, using built-in defaults")
    _verbose(ctx, f"Using scan endpoint {config.api_url}")
    return config


def _handle_client_errors(func):
    """Decorator that maps client and config exceptions to exit code 2."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        from accessiguard.client import NetworkError, ScanClientError
        from accessiguard.config import ConfigError

        try:
            return func(*args, **kwargs)
        except ConfigError as exc:
            _fail(f"Configuration error: {exc}")
        except NetworkError as exc:
            _fail(f"Network error: {exc}")
        except ScanClientError as exc:
            _fail(str(exc))

    return wrapper


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", "config_path", default=None,
              help="Path to the configuration file (default: ./accessiguard.yaml if present).")
@click.option("--verbose", is_flag=True, default=False,
              help="Print diagnostic messages to stderr.")
@click.version_option(__version__, prog_name="accessiguard")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], verbose: bool) -> None:
    """accessiguard - Scan websites for 39 WCAG accessibility issues."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@cli.command("init")
@click.option("--output", "output_path", default="accessiguard.yaml", show_default=True,
              help="Path where the template config file will be written.")
def init_command(output_path: str) -> None:
    """Generate a template accessiguard.yaml file."""
    from accessiguard.config import ConfigError, generate_template
    try:
        generate_template(output_path)
        click.echo(f"Template written to '{output_path}'.")
    except ConfigError as exc:
        _fail(str(exc))


# ---------------------------------------------------------------------------
# scan
# ---------------------------------------------------------------------------

@cli.command("scan")
@click.argument("url", type=HttpUrl())
@click.option("--threshold", type=float, default=None, callback=_finite_threshold,
              help="Minimum score to pass (default: 0, CI default: 70).")
@click.option("--json", "as_json", is_flag=True, default=False,
              help="Output raw JSON response.")
@click.option("--ci", is_flag=True, default=False,
              help="CI mode (minimal output).")
@click.option("--color/--no-color", default=None,
              help="Force or disable ANSI colours (default: auto-detect).")
@click.pass_context
@_handle_client_errors
def scan_command(ctx: click.Context, url: str, threshold: Optional[float],
                 as_json: bool, ci: bool, color: Optional[bool]) -> None:
    """Scan URL for accessibility issues."""
    from accessiguard.client import AccessiGuardClient
    from accessiguard.reports.normalize import normalize
    from accessiguard.reports.render import OutputMode, render

    config = _load_config(ctx)
    if threshold is None:
        threshold = config.default_threshold(ci)

    if as_json:
        mode = OutputMode.RAW
    elif ci:
        mode = OutputMode.CI
    else:
        mode = OutputMode.PRETTY

    _verbose(ctx, f"Scanning {url} (mode={mode.value}, threshold={threshold})")

    client = AccessiGuardClient(api_url=config.api_url, timeout=config.timeout)
    payload = client.scan(url)
    _verbose(ctx, f"HTTP {client.last_status_code} from {config.api_url}")
    report = normalize(payload, url, base_url=config.report_base_url)

    _verbose(ctx, f"Score {report.score}, {report.total_issues} issue(s), "
                  f"report at {report.report_url}")

    result = render(report, payload, mode, url, threshold, color=color is not False)
    click.echo(result.text, color=color)

    sys.exit(EXIT_OK if result.passed else EXIT_THRESHOLD_FAIL)

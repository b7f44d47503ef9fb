"""authrules CLI — Typer application with evaluate, rules, and init commands."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import typer
from rich.console import Console

from authrules import __version__

app = typer.Typer(
    name="authrules",
    help="Evaluate resource-level authorization rules against FHIR requests.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(name)-12s %(levelname)-8s %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _load_config(config: Optional[str]):
    from authrules.config.loader import ConfigError, load_config

    try:
        return load_config(Path.cwd(), config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc


def _load_rules(cfg, rules: Optional[str]) -> List:
    """Load the rule list from --rules or the configured rules file, exit 2 on failure."""
    from authrules.config.loader import resolve_rules_file
    from authrules.rules.loader import load_rules
    from authrules.rules.models import RuleConfigError

    path = Path(rules) if rules else resolve_rules_file(cfg, Path.cwd())
    if path is None or not path.is_file():
        console.print(f"[bold red]Rules file not found:[/bold red] {path}")
        raise typer.Exit(code=2)

    try:
        return load_rules(path)
    except RuleConfigError as exc:
        console.print(f"[bold red]Rule error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc


def _read_resource(path: Optional[str]) -> Optional[Any]:
    if path is None:
        return None
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        console.print(f"[bold red]Cannot read resource {path}:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc


# ── evaluate ──────────────────────────────────────────────────────────────────


@app.command()
def evaluate(
    operation: str = typer.Option(..., "--operation", "-O", help="REST operation, e.g. read | create | update | delete | transaction"),
    input_file: Optional[str] = typer.Option(None, "--input", "-i", help="JSON resource sent by the client"),
    output_file: Optional[str] = typer.Option(None, "--output", "-o", help="JSON resource returned by the server"),
    rules: Optional[str] = typer.Option(None, "--rules", "-r", help="Path to a YAML rules file"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .authrules.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    request_id: Optional[str] = typer.Option(None, "--request-id", help="Request id recorded in log lines"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output, including per-entry bundle decisions"),
) -> None:
    """Decide whether a single request is allowed. Exit 0 = allow, 1 = deny, 2 = error."""
    from authrules.context.base import RequestContext
    from authrules.context.fhir_json import FhirJsonContext
    from authrules.output import json_report, terminal
    from authrules.rules.chain import RuleChain
    from authrules.rules.models import OperationType, PolicyMode
    from authrules.rules.rule import InvalidRequestError

    cfg = _load_config(config)
    _configure_logging("debug" if debug else "info" if verbose else cfg.logging.level)

    if format:
        if format not in ("terminal", "json"):
            console.print(f"[bold red]Invalid format:[/bold red] {format}")
            raise typer.Exit(code=2)
        cfg.output.format = format  # type: ignore[assignment]

    try:
        op = OperationType(operation.lower().replace("_", "-"))
    except ValueError:
        allowed = " | ".join(o.value for o in OperationType)
        console.print(f"[bold red]Invalid operation:[/bold red] {operation} (expected {allowed})")
        raise typer.Exit(code=2)

    chain = RuleChain(_load_rules(cfg, rules), PolicyMode(cfg.policy.default_decision))
    input_resource = _read_resource(input_file)
    output_resource = _read_resource(output_file)

    if verbose or debug:
        console.print(f"[dim]Rules loaded: {len(chain)}[/dim]")
        console.print(f"[dim]Default policy: {chain.default_policy.value}[/dim]")

    request = RequestContext(oracle=FhirJsonContext(), request_id=request_id)
    try:
        decision = chain.decide(op, request, input_resource, output_resource)
    except InvalidRequestError as exc:
        console.print(f"[bold red]Rejected request:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    if cfg.output.format == "json":
        print(json_report.render(decision, op))
    else:
        terminal.render(decision, op, console=console)

    raise typer.Exit(code=0 if decision.allowed else 1)


# ── rules ─────────────────────────────────────────────────────────────────────


@app.command(name="rules")
def list_rules(
    rules: Optional[str] = typer.Option(None, "--rules", "-r", help="Path to a YAML rules file"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .authrules.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
) -> None:
    """Validate the rules file and list the rule chain in evaluation order."""
    from authrules.output import json_report, terminal
    from authrules.rules.models import PolicyMode

    cfg = _load_config(config)
    loaded = _load_rules(cfg, rules)

    if (format or cfg.output.format) == "json":
        print(json_report.render_rules(loaded))
    else:
        terminal.render_rules(loaded, PolicyMode(cfg.policy.default_decision), console=console)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .authrules.toml and authrules.yaml in the current directory."""
    from authrules.config.defaults import DEFAULT_RULES_YAML, DEFAULT_TOML
    from authrules.config.loader import CONFIG_FILENAME

    base_dir = Path.cwd()
    config_path = base_dir / CONFIG_FILENAME
    rules_path = base_dir / "authrules.yaml"

    existing = [p for p in (config_path, rules_path) if p.exists()]
    if existing:
        for p in existing:
            console.print(f"[yellow]⚠[/yellow]  {p.name} already exists at {p}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    rules_path.write_text(DEFAULT_RULES_YAML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")
    console.print(f"[green]✓[/green] Created {rules_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"authrules {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """authrules — resource-level authorization rules for FHIR-style APIs."""

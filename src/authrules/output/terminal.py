"""Rich terminal reporter — decision banner and rule tables."""

from __future__ import annotations

from typing import List

from rich.console import Console
from rich.table import Table
from rich.text import Text

from authrules.rules.chain import Decision
from authrules.rules.models import InCompartment, OperationType, PolicyMode, ResourceTypes
from authrules.rules.rule import Rule

_MODE_STYLE = {
    PolicyMode.ALLOW: "bold white on green",
    PolicyMode.DENY: "bold white on red",
}


def _mode_pill(mode: PolicyMode) -> Text:
    return Text(f" {mode.value.upper()} ", style=_MODE_STYLE.get(mode, ""))


def _applies_to_text(rule: Rule) -> str:
    if isinstance(rule.applies_to, ResourceTypes):
        return ", ".join(sorted(rule.applies_to.types))
    return "all"


def _classifier_text(rule: Rule) -> str:
    if isinstance(rule.classifier, InCompartment):
        owners = ", ".join(sorted(rule.classifier.owners))
        return f"{rule.classifier.compartment_name}: {owners}"
    return "any"


def render(decision: Decision, operation: OperationType, *, console: Console | None = None) -> None:
    """Print a chain decision to the terminal using Rich."""
    console = console or Console(stderr=True)

    console.print()
    line = Text.assemble(_mode_pill(decision.decision), "  ", (operation.value, "cyan"))
    if decision.rule_name:
        line.append("  rule=")
        line.append(decision.rule_name, style="magenta")
    else:
        line.append("  (default policy)", style="dim")
    console.print(line)
    console.print(f"[dim]{decision.reason}[/dim]")


def render_rules(rules: List[Rule], default_policy: PolicyMode, *, console: Console | None = None) -> None:
    """Print the configured rule chain as a table."""
    console = console or Console(stderr=True)

    if not rules:
        console.print("[yellow]No rules configured.[/yellow]")
    else:
        table = Table(
            title="Authorization Rules",
            show_lines=False,
            title_style="bold",
            border_style="dim",
        )
        table.add_column("#", justify="right", style="green")
        table.add_column("Name", style="cyan", min_width=16)
        table.add_column("Op")
        table.add_column("Mode", justify="center", width=9)
        table.add_column("Types", style="magenta")
        table.add_column("Classifier")

        for position, rule in enumerate(rules, start=1):
            op = rule.op.value
            if rule.transaction_applies_to is not None:
                op = f"{op} ({rule.transaction_applies_to.value})"
            table.add_row(
                str(position),
                rule.name,
                op,
                _mode_pill(rule.mode),
                _applies_to_text(rule),
                _classifier_text(rule),
            )
        console.print(table)

    console.print(f"[dim]Default policy: {default_policy.value}[/dim]")

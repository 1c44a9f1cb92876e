"""Console output for the subcommands: progress lines, verbose echo, summaries."""
from __future__ import annotations
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from rich.console import Console
from rich.markup import escape

console = Console(highlight=False, soft_wrap=True, emoji=False)
err_console = Console(stderr=True, highlight=False, soft_wrap=True, emoji=False)

# (operation, substring of the tool's message) -> message shown to the user.
# Matches exiftool's wording for a failed -if condition.
FRIENDLY_ERRORS: Dict[Tuple[str, str], str] = {
    ("camswap", "failed condition"): "has already been camswapped",
    ("camswap-restore", "failed condition"): "no camera swap metadata attached",
}


def friendly_message(operation: str, message: str) -> str:
    for (op, needle), friendly in FRIENDLY_ERRORS.items():
        if op == operation and needle in message:
            return friendly
    return message


def strip_quotes(s: str) -> str:
    s = s.strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        return s[1:-1]
    return s


def print_file_start(filename: str) -> None:
    console.print(f"{escape(filename)} ...")


def print_header(filename: str) -> None:
    console.print(f"[bold white]{escape(filename)} ...[/]")


def print_command(binary: str, args: Sequence[str]) -> None:
    console.print(escape(" ".join([binary, *args])))


def print_output(text: str) -> None:
    if text:
        console.print(escape(text))


def print_error(message: str) -> None:
    err_console.print(f"[red]{escape(message)}[/]")


def print_fact(label: str, value: object, indent: str = "\t") -> None:
    console.print(f"{indent}[magenta]{escape(label)}[/] {escape(str(value))}")


def print_ok(message: str, indent: str = "\t") -> None:
    console.print(f"{indent}[green]✔ {escape(message)}[/]")


def print_summary(operation: str, successes: List[str], failures: Mapping[str, Exception],
                  verb: str = "processed", label: Optional[str] = None) -> None:
    """Final report: success count, then one line per failed file."""
    console.print(f"\n[bold white]{escape(label or operation)}: successfully {verb} {len(successes)} images.[/]")
    if not failures:
        return
    console.print("[bold red]Errors:[/]")
    for filename, err in failures.items():
        msg = friendly_message(operation, str(err))
        console.print(f"- [magenta]{escape(filename)}:[/] {escape(msg)}")

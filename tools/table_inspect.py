import argparse
import sys

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tapemachine.errors import TapeMachineError
from tapemachine.transition_table import MAX_STATES, load_table

console = Console(soft_wrap=True)


def pretty_print_table(table, console=console, title="Transition Table"):
    """Print the table as a state x bit grid with instruction-file cell notation."""
    grid = Table(title=title, show_header=True, header_style="bold magenta")
    grid.add_column("State", justify="center")
    for bit in (0, 1):
        grid.add_column(f"Read {bit}", justify="center")

    for state in range(table.max_states):
        row = [str(state)]
        for bit in (0, 1):
            op = table.lookup(state, bit)
            cell = escape(str(op))
            row.append(f"[bold red]{cell}[/bold red]" if op.halt else cell)
        grid.add_row(*row)

    console.print(grid)
    console.print(f"  States: {table.max_states}")
    console.print(f"  Ruleset Hash: {table.ruleset_hash()}")
    for warning in table.warnings:
        console.print(f"[yellow]WARNING: {escape(warning)}[/yellow]")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Transition Table Inspector")
    parser.add_argument("instructions", help="Instruction file to inspect")
    parser.add_argument("--state-limit", type=int, default=MAX_STATES,
                        help=f"Highest accepted state count (default={MAX_STATES})")
    args = parser.parse_args(argv)

    try:
        table = load_table(args.instructions, state_limit=args.state_limit)
    except (TapeMachineError, ValueError) as e:
        Console(stderr=True, soft_wrap=True).print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    pretty_print_table(table)
    return 0


if __name__ == "__main__":
    sys.exit(main())

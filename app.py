# app.py

import argparse
import sys

from rich.console import Console
from rich.markup import escape

from config.config_loader import load_config, validate_config
from logger.logger import TRACE_FORMATS, TraceLogger
from tapemachine.engine import ExecutionEngine
from tapemachine.errors import TapeMachineError
from tapemachine.paged_tape import PagedTape
from tapemachine.transition_table import load_table
from tools.table_inspect import pretty_print_table

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)

EPILOG = """\
The instruction file starts with "STATES: N" followed by N*2 lines of the
form S,B->S2,B2,D[STOP]. The tape file holds only 0 and 1 characters and is
updated in place.
"""


# === Utilities ===
def error(message):
    err_console.print(f"[red]Error: {escape(message)}[/red]")


def warning(message):
    err_console.print(f"[yellow]WARNING: {escape(message)}[/yellow]")


def build_parser():
    parser = argparse.ArgumentParser(
        description="Simulate a Turing machine over a file-backed tape.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("instructions", help="Instruction set file")
    parser.add_argument("tape", help="Tape file, modified in place")
    parser.add_argument("-s", "--silent", action="store_true", help="Silence the execution log")
    parser.add_argument("-o", "--output", metavar="FILENAME", help="Write the execution log to FILENAME")
    parser.add_argument("--format", choices=TRACE_FORMATS, help="Execution log format (default: text)")
    parser.add_argument("--buffer-size", type=int, help="Tape window size in cells (default: 128)")
    parser.add_argument("--config", metavar="PATH", help="JSON runtime configuration file")
    parser.add_argument("--show-table", action="store_true", help="Print the transition table before running")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print the loaded configuration")
    return parser


def apply_overrides(config, args):
    """Command-line flags win over the configuration file."""
    if args.silent:
        config["trace_enabled"] = False
        config["show_summary"] = False
    if args.output is not None:
        config["trace_output"] = args.output
    if args.format is not None:
        config["trace_format"] = args.format
    if args.buffer_size is not None:
        config["buffer_size"] = args.buffer_size
    validate_config(config)
    return config


def open_trace(config):
    if not config["trace_enabled"]:
        return TraceLogger(None, config["trace_format"])
    if config["trace_output"]:
        return TraceLogger.to_file(config["trace_output"], config["trace_format"])
    return TraceLogger(sys.stdout, config["trace_format"])


def print_summary(result):
    bit = "unknown" if result.bit is None else result.bit
    console.print(f"Final state: {result.state}", highlight=False)
    console.print(f"Final position: {result.position}", highlight=False)
    console.print(f"Bit at final position: {bit}", highlight=False)


class RunInterrupted(Exception):
    """Ctrl-C arrived while the engine was stepping; the window was flushed."""


def run_machine(instructions, tape_path, config, trace, show_table=False):
    table = load_table(instructions, state_limit=config["state_limit"], trace=trace)
    for message in table.warnings:
        warning(message)
    if show_table:
        pretty_print_table(table, console)

    with PagedTape.open(tape_path, buffer_size=config["buffer_size"]) as tape:
        try:
            return ExecutionEngine(table, tape, trace).run()
        except KeyboardInterrupt:
            raise RunInterrupted() from None


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config, verbose=args.verbose)
        apply_overrides(config, args)
    except (FileNotFoundError, ValueError, TypeError) as e:
        error(str(e))
        return 1

    try:
        trace = open_trace(config)
    except OSError as e:
        error(f"could not open file: {config['trace_output']} ({e.strerror})")
        return 1

    with trace:
        try:
            result = run_machine(args.instructions, args.tape, config, trace, args.show_table)
        except TapeMachineError as e:
            error(str(e))
            return 1
        except RunInterrupted:
            warning("Interrupted; the current tape window was saved.")
            return 130
        except KeyboardInterrupt:
            warning("Interrupted before the machine started; the tape was not modified.")
            return 130

    if config["show_summary"]:
        print_summary(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Transition table for a two-symbol tape machine.

An instruction file starts with a ``STATES: N`` header followed by exactly
``N * 2`` instruction lines of the form ``S,B->S2,B2,D[STOP]``. Each line sets
the operation for the cell ``(S, B)``; lines may come in any order and a
repeated cell is overwritten by the later line.

Every cell starts out as "keep the state, write back the bit that was read,
move right", so a table whose lines repeat a cell still has a defined
operation for the cell that was never named.
"""

import hashlib
import json
import re
from dataclasses import dataclass

from tapemachine.errors import BadHeaderError, BadLineError, MachineIOError, TruncatedTableError

MAX_STATES = 128
LEFT, RIGHT = "L", "R"

HEADER_RE = re.compile(r"STATES: (\d+)\s*")
INSTRUCTION_RE = re.compile(r"(\d{1,3}),([01])->(\d{1,3}),([01]),([LR])\s*(STOP)?")


@dataclass(frozen=True)
class Operation:
    next_state: int
    write_symbol: int
    direction: str
    halt: bool = False

    @property
    def step(self):
        return 1 if self.direction == RIGHT else -1

    def __str__(self):
        return f"{self.next_state},{self.write_symbol},{self.direction}{'STOP' if self.halt else ''}"


def format_instruction(state, bit, op):
    """Render one cell back into instruction-file syntax."""
    return f"{state},{bit}->{op}"


class TransitionTable:
    def __init__(self, max_states, rows=None, warnings=None):
        if not isinstance(max_states, int) or not 0 < max_states <= MAX_STATES:
            raise ValueError(f"max_states must be between 1 and {MAX_STATES}, got {max_states!r}")
        if rows is None:
            rows = [[default_operation(s, b) for b in (0, 1)] for s in range(max_states)]
        if len(rows) != max_states or any(len(row) != 2 for row in rows):
            raise ValueError("Transition table rows must be max_states pairs of operations.")
        for row in rows:
            for op in row:
                if not 0 <= op.next_state < max_states:
                    raise ValueError(f"Operation {op} refers to a state outside [0, {max_states}).")

        self.max_states = max_states
        self._rows = tuple(tuple(row) for row in rows)
        self.warnings = list(warnings or [])

    def lookup(self, state, bit):
        if not 0 <= state < self.max_states or bit not in (0, 1):
            raise IndexError(f"No cell ({state}, {bit}) in a table of {self.max_states} states.")
        return self._rows[state][bit]

    def operations(self):
        """Yield ``(state, bit, operation)`` for every cell in state order."""
        for state, row in enumerate(self._rows):
            for bit, op in enumerate(row):
                yield state, bit, op

    def serialize(self):
        """Rows of ``[write, dir_bit, next_state, halt]`` in (state, bit) order."""
        return [
            [op.write_symbol, 0 if op.direction == LEFT else 1, op.next_state, int(op.halt)]
            for _, _, op in self.operations()
        ]

    def ruleset_hash(self):
        rules_json = json.dumps(self.serialize(), sort_keys=True)
        return hashlib.sha256(rules_json.encode("utf-8")).hexdigest()

    def __len__(self):
        return self.max_states * 2


def default_operation(state, bit):
    return Operation(next_state=state, write_symbol=bit, direction=RIGHT, halt=False)


def _parse_header(line, source, state_limit):
    usage = f'file should begin "STATES: [number between 1 and {state_limit}]"'
    match = HEADER_RE.fullmatch(line.rstrip("\r\n"))
    if not match:
        raise BadHeaderError(source, 1, usage)
    max_states = int(match.group(1))
    if not 0 < max_states <= state_limit:
        raise BadHeaderError(source, 1, usage)
    return max_states


def _parse_instruction(text, line_no, source, max_states):
    match = INSTRUCTION_RE.fullmatch(text)
    if not match:
        raise BadLineError(source, line_no, f"cannot parse instruction {text!r}, expected S,B->S2,B2,D[STOP]")

    state, bit, next_state, write_symbol, direction, stop = match.groups()
    state, next_state = int(state), int(next_state)
    for value in (state, next_state):
        if value >= max_states:
            raise BadLineError(source, line_no, f"state {value} out of range for {max_states} states in {text!r}")

    op = Operation(next_state=next_state, write_symbol=int(write_symbol), direction=direction, halt=stop is not None)
    return state, int(bit), op


def parse_table(lines, source="<instructions>", state_limit=MAX_STATES, trace=None):
    """Build a TransitionTable from an iterable of instruction-file lines.

    Blank lines are skipped. Content after the ``N * 2`` instructions is
    ignored with a warning stored on the returned table. When a trace is
    given, every parsed operation is logged to it as it is loaded.
    """
    if not 0 < state_limit <= MAX_STATES:
        raise ValueError(f"state_limit must be between 1 and {MAX_STATES}, got {state_limit}")

    lines = iter(lines)
    header = next(lines, None)
    if header is None:
        raise BadHeaderError(source, 1, "file is empty, expected a STATES header")
    max_states = _parse_header(header, source, state_limit)

    expected = max_states * 2
    rows = [[default_operation(s, b) for b in (0, 1)] for s in range(max_states)]
    warnings = []
    parsed = 0

    for line_no, line in enumerate(lines, start=2):
        text = line.rstrip()
        if not text:
            continue
        if parsed == expected:
            warnings.append(f"Ignoring {source} from line {line_no}.")
            break
        state, bit, op = _parse_instruction(text, line_no, source, max_states)
        rows[state][bit] = op
        parsed += 1
        if trace is not None:
            trace.log_load(state, bit, op)

    if parsed < expected:
        raise TruncatedTableError(
            source, None, f"expected {expected} instructions for {max_states} states, found {parsed}"
        )

    return TransitionTable(max_states, rows, warnings)


def load_table(path, state_limit=MAX_STATES, trace=None):
    try:
        with open(path, "r", encoding="ascii", newline="") as f:
            return parse_table(f, source=str(path), state_limit=state_limit, trace=trace)
    except UnicodeDecodeError as e:
        raise MachineIOError(path, f"Instruction file is not ASCII text ({e.reason})") from e
    except OSError as e:
        raise MachineIOError(path, f"Couldn't open file ({e.strerror})") from e

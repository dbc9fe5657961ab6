import pytest

from conftest import BUSY_BEAVER_3, LEFT_STEP, SCENARIO_A
from reference_machine import ReferenceMachine
from tapemachine.engine import ExecutionEngine, RunResult
from tapemachine.paged_tape import PagedTape
from tapemachine.transition_table import format_instruction, parse_table


class ListTrace:
    def __init__(self, interrupt_at=None):
        self.records = []
        self.summaries = []
        self.interrupt_at = interrupt_at

    def record(self, state, position, bit, op):
        if self.interrupt_at is not None and len(self.records) == self.interrupt_at:
            raise KeyboardInterrupt
        self.records.append((state, position, bit, format_instruction(state, bit, op)))

    def log_summary(self, result):
        self.summaries.append(result)


def table_from(text):
    return parse_table(text.splitlines(), source="test.txt")


def test_scenario_a_halts_on_marked_tape(write_file):
    path = write_file("tape.txt", "00011000")
    trace = ListTrace()

    with PagedTape.open(path, buffer_size=8) as tape:
        result = ExecutionEngine(table_from(SCENARIO_A), tape, trace).run()

    assert result == RunResult(state=1, position=5, bit=0, steps=5, halted=True)
    assert path.read_bytes() == b"11100000"
    assert trace.records == [
        (0, 0, 0, "0,0->0,1,R"),
        (0, 1, 0, "0,0->0,1,R"),
        (0, 2, 0, "0,0->0,1,R"),
        (0, 3, 1, "0,1->1,0,R"),
        (1, 4, 1, "1,1->1,0,RSTOP"),
    ]
    assert trace.summaries == [result]


def test_scenario_a_final_flush_writes_whole_window(write_file):
    path = write_file("tape.txt", "00011000")

    with PagedTape.open(path) as tape:
        ExecutionEngine(table_from(SCENARIO_A), tape).run()

    assert path.read_bytes() == b"11100000" + b"0" * 120


def test_scenario_a_keeps_running_on_blank_tape(write_file):
    path = write_file("tape.txt", "00000000")

    with PagedTape.open(path, buffer_size=8) as tape:
        engine = ExecutionEngine(table_from(SCENARIO_A), tape)
        for _ in range(20):
            engine.step()

        assert not engine.halted
        assert engine.context.state == 0
        assert engine.context.position == 20
        assert tape.base_offset == 16
        tape.flush()

    assert path.read_bytes() == b"1" * 20 + b"0" * 4


def test_leftward_step_shifts_tape_once(write_file):
    path = write_file("tape.txt", "01010101")

    with PagedTape.open(path, buffer_size=8) as tape:
        result = ExecutionEngine(table_from(LEFT_STEP), tape).run()
        assert tape.shift_count == 1
        assert tape.origin == 8

    assert result == RunResult(state=0, position=0, bit=1, steps=2, halted=True)
    assert path.read_bytes() == b"00000001" + b"11010101"


def test_busy_beaver_pages_both_ways(write_file):
    path = write_file("tape.txt", "")

    with PagedTape.open(path, buffer_size=2) as tape:
        result = ExecutionEngine(table_from(BUSY_BEAVER_3), tape).run()
        origin = tape.origin

    assert result == RunResult(state=0, position=2, bit=1, steps=14, halted=True)
    assert origin == 2
    assert path.read_bytes() == b"01111110"


@pytest.mark.parametrize("buffer_size", [1, 2, 3, 8, 128])
def test_matches_reference_machine(write_file, buffer_size):
    table = table_from(BUSY_BEAVER_3)
    path = write_file("tape.txt", "0000")

    with PagedTape.open(path, buffer_size=buffer_size) as tape:
        result = ExecutionEngine(table, tape).run()
        origin = tape.origin

    reference = ReferenceMachine(table, "0000")
    steps = reference.run(max_steps=1000)

    data = path.read_bytes().decode("ascii")
    assert reference.halted
    assert steps == result.steps
    assert reference.current_state == result.state
    assert reference.head == result.position
    assert data == reference.tape_string(-origin, len(data) - origin)
    assert data.count("1") == 6


def test_interrupted_run_still_flushes(write_file):
    path = write_file("tape.txt", "00011000")

    with PagedTape.open(path, buffer_size=8) as tape:
        engine = ExecutionEngine(table_from(SCENARIO_A), tape, ListTrace(interrupt_at=2))
        with pytest.raises(KeyboardInterrupt):
            engine.run()
        assert not engine.halted

    assert path.read_bytes() == b"11011000"


def test_step_after_halt_is_an_error(write_file):
    path = write_file("tape.txt", "00011000")

    with PagedTape.open(path, buffer_size=8) as tape:
        engine = ExecutionEngine(table_from(SCENARIO_A), tape)
        engine.run()
        with pytest.raises(RuntimeError):
            engine.step()


def test_non_halting_run_matches_reference_machine(write_file):
    table = table_from(SCENARIO_A)
    path = write_file("tape.txt", "")

    with PagedTape.open(path, buffer_size=3) as tape:
        engine = ExecutionEngine(table, tape)
        for _ in range(50):
            engine.step()
        tape.flush()

    reference = ReferenceMachine(table)
    assert reference.run(max_steps=50) == 50
    assert not reference.halted
    assert reference.head == engine.context.position
    assert path.read_bytes().decode("ascii")[:50] == reference.tape_string(0, 50)


def test_halt_next_to_unread_corrupt_byte(write_file):
    # The halting move lands on a cell that is never paged in
    path = write_file("tape.txt", b"0x")
    table = table_from("STATES: 1\n0,0->0,1,R STOP\n0,1->0,1,R\n")

    with PagedTape.open(path, buffer_size=1) as tape:
        result = ExecutionEngine(table, tape).run()

    assert result == RunResult(state=0, position=1, bit=None, steps=1, halted=True)
    assert path.read_bytes() == b"1x"

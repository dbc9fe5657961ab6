from dataclasses import dataclass
from typing import Optional

from tapemachine.errors import CorruptTapeError, MachineIOError


@dataclass
class MachineContext:
    state: int = 0
    position: int = 0


@dataclass(frozen=True)
class RunResult:
    state: int
    position: int
    bit: Optional[int]
    steps: int
    halted: bool


class ExecutionEngine:
    """Runs a transition table against a paged tape until a STOP operation.

    There is no step limit; a table that never reaches STOP runs forever.
    """

    def __init__(self, table, tape, trace=None):
        self.table = table
        self.tape = tape
        self.trace = trace
        self.context = MachineContext()
        self.steps = 0
        self.halted = False

    def step(self):
        if self.halted:
            raise RuntimeError("Machine has already halted.")

        ctx = self.context
        bit = self.tape.read(ctx.position)
        op = self.table.lookup(ctx.state, bit)
        if self.trace is not None:
            self.trace.record(ctx.state, ctx.position, bit, op)

        self.tape.write(ctx.position, op.write_symbol)
        ctx.state = op.next_state
        ctx.position += op.step
        self.steps += 1

        if op.halt:
            self.halted = True
            self.tape.flush()
        elif not self.tape.contains(ctx.position):
            self.tape.swap_to(self.tape.base_offset + op.step * self.tape.buffer_size)

        return op

    def run(self):
        try:
            while not self.halted:
                self.step()
        except MachineIOError:
            raise
        except BaseException:
            # Keep whatever the window holds before the error propagates
            self.tape.flush()
            raise

        result = self.result()
        if self.trace is not None:
            self.trace.log_summary(result)
        return result

    def result(self):
        ctx = self.context
        try:
            bit = self.tape.peek(ctx.position)
        except CorruptTapeError:
            # the cell past the halting move was never paged in
            bit = None
        return RunResult(
            state=ctx.state,
            position=ctx.position,
            bit=bit,
            steps=self.steps,
            halted=self.halted,
        )

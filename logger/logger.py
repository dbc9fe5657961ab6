import json

from tapemachine.transition_table import format_instruction

TRACE_FORMATS = ("text", "jsonl")


class TraceLogger:
    """Writes execution trace records as a text table or as JSON lines.

    With no stream the logger stays silent and every call is a no-op.
    """

    def __init__(self, stream=None, fmt="text", owns_stream=False):
        if fmt not in TRACE_FORMATS:
            raise ValueError(f"Unknown trace format '{fmt}', expected one of {TRACE_FORMATS}.")
        self.stream = stream
        self.fmt = fmt
        self._owns_stream = owns_stream
        self._header_written = False

    @classmethod
    def to_file(cls, path, fmt="text"):
        f = open(path, "w", encoding="utf-8")
        return cls(f, fmt, owns_stream=True)

    @property
    def enabled(self):
        return self.stream is not None

    def _write(self, text):
        if self.stream is not None:
            self.stream.write(text)

    def _write_header(self):
        self._write("Execution:\n")
        self._write("|Machine state | Position | Bit | Instruction\n")
        self._write("|=================================================\n")
        self._header_written = True

    def log_load(self, state, bit, op):
        """Log an operation as it is loaded into cell (state, bit) of the table."""
        if not self.enabled:
            return
        if self.fmt == "jsonl":
            entry = {"event": "load", "state": state, "bit": bit, "instruction": format_instruction(state, bit, op)}
            self._write(json.dumps(entry) + "\n")
            return
        stop = ", STOP" if op.halt else ""
        self._write(
            f"Loading operation {op.next_state}, {op.write_symbol}, {op.direction}{stop} "
            f"to state {state} and bit {bit}.\n"
        )

    def record(self, state, position, bit, op):
        """Log a single step: the state and bit read, and the operation chosen."""
        if not self.enabled:
            return
        instruction = format_instruction(state, bit, op)
        if self.fmt == "jsonl":
            entry = {"state": state, "position": position, "bit": bit, "instruction": instruction}
            self._write(json.dumps(entry) + "\n")
            return
        if not self._header_written:
            self._write_header()
        self._write(f"| {state:<13d}| {position:<9d}| {bit:<4d}| {instruction}\n")

    def log_summary(self, result):
        """Log how the run ended."""
        if not self.enabled:
            return
        if self.fmt == "jsonl":
            entry = {
                "event": "halt" if result.halted else "stopped",
                "state": result.state,
                "position": result.position,
                "bit": result.bit,
                "steps": result.steps,
            }
            self._write(json.dumps(entry) + "\n")
        elif result.halted:
            self._write("STOP reached.\n")
        if hasattr(self.stream, "flush"):
            self.stream.flush()

    def close(self):
        if self._owns_stream and self.stream is not None and not self.stream.closed:
            self.stream.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

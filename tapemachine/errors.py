class TapeMachineError(Exception):
    """Base class for every fatal load or run error."""


# === Instruction file ===
class ParseError(TapeMachineError):
    def __init__(self, source, line_no, message):
        self.source = source
        self.line_no = line_no
        self.message = message
        if line_no is None:
            super().__init__(f"{source}: {message}")
        else:
            super().__init__(f"{source}, line {line_no}: {message}")


class BadHeaderError(ParseError):
    pass


class BadLineError(ParseError):
    pass


class TruncatedTableError(ParseError):
    pass


# === Files and tape ===
class MachineIOError(TapeMachineError):
    def __init__(self, path, message):
        self.path = str(path)
        self.message = message
        super().__init__(f"{message}: {path}")


class CorruptTapeError(MachineIOError):
    def __init__(self, path, offset, char):
        self.offset = offset
        self.char = char
        super().__init__(path, f"Unrecognised character {char!r} in tape at byte {offset}")

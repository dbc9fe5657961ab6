"""File-backed tape that looks unbounded in both directions.

Only one window of ``buffer_size`` cells is held in memory. Logical cell ``p``
lives at file byte ``p + origin``; ``origin`` starts at 0 and grows each time a
window to the left of the file start is written back, which is done by moving
the whole existing file right to make room for it.
"""

import os

import numpy as np

from tapemachine.errors import CorruptTapeError, MachineIOError

BUFFER_SIZE = 128
ZERO, ONE = ord("0"), ord("1")


class PagedTape:
    def __init__(self, handle, path, buffer_size=BUFFER_SIZE):
        if buffer_size <= 0:
            raise ValueError(f"buffer_size must be positive, got {buffer_size}")
        self.path = str(path)
        self._fh = handle
        self._buffer_size = buffer_size
        self._origin = 0
        self._base_offset = 0
        self._shift_count = 0
        self.window = np.zeros(buffer_size, dtype=np.uint8)

    @classmethod
    def open(cls, path, buffer_size=BUFFER_SIZE):
        try:
            handle = open(path, "r+b")
        except OSError as e:
            raise MachineIOError(path, f"Could not open file ({e.strerror})") from e

        tape = cls(handle, path, buffer_size)
        try:
            tape._page_in(0)
        except BaseException:
            handle.close()
            raise
        return tape

    # === Properties ===
    @property
    def buffer_size(self):
        return self._buffer_size

    @property
    def base_offset(self):
        return self._base_offset

    @property
    def origin(self):
        return self._origin

    @property
    def shift_count(self):
        return self._shift_count

    @property
    def file_length(self):
        return os.fstat(self._fh.fileno()).st_size

    @property
    def closed(self):
        return self._fh.closed

    def contains(self, position):
        return self._base_offset <= position < self._base_offset + self._buffer_size

    # === Window access ===
    def _index(self, position):
        if not self.contains(position):
            raise IndexError(
                f"Position {position} is outside the loaded window "
                f"[{self._base_offset}, {self._base_offset + self._buffer_size})"
            )
        return position - self._base_offset

    def read(self, position):
        return int(self.window[self._index(position)])

    def write(self, position, bit):
        if bit not in (0, 1):
            raise ValueError(f"Tape cells hold 0 or 1, got {bit!r}")
        self.window[self._index(position)] = bit

    def peek(self, position):
        """Bit at any logical position, without paging."""
        if self.contains(position):
            return self.read(position)

        offset = position + self._origin
        if offset < 0 or offset >= self.file_length:
            return 0
        try:
            self._fh.seek(offset)
            char = self._fh.read(1)
        except OSError as e:
            raise MachineIOError(self.path, f"Error reading tape ({e.strerror})") from e
        if char not in (b"0", b"1"):
            raise CorruptTapeError(self.path, offset, char.decode("latin-1"))
        return char[0] - ZERO

    # === Paging ===
    def swap_to(self, new_base_offset):
        if abs(new_base_offset - self._base_offset) != self._buffer_size:
            raise ValueError(
                f"Can only page one window at a time: {self._base_offset} -> {new_base_offset}"
            )
        self.flush()
        self._page_in(new_base_offset)

    def _page_in(self, base_offset):
        size = self._buffer_size
        offset = base_offset + self._origin
        window = np.zeros(size, dtype=np.uint8)

        # Untouched tape on either side of the file is all zeros
        if offset + size > 0 and offset < self.file_length:
            start = max(offset, 0)
            try:
                self._fh.seek(start)
                data = self._fh.read(offset + size - start)
            except OSError as e:
                raise MachineIOError(self.path, f"Error reading tape ({e.strerror})") from e

            raw = np.frombuffer(data, dtype=np.uint8)
            bad = np.flatnonzero((raw != ZERO) & (raw != ONE))
            if bad.size:
                i = int(bad[0])
                raise CorruptTapeError(self.path, start + i, chr(raw[i]))
            window[start - offset:start - offset + raw.size] = raw - ZERO

        self.window = window
        self._base_offset = base_offset

    def flush(self):
        """Write the window back to the file at its current offset."""
        offset = self._base_offset + self._origin
        block = (self.window + ZERO).astype(np.uint8).tobytes()

        try:
            if offset < 0:
                self._shift_right(-offset, block)
            else:
                length = self.file_length
                if offset > length:
                    self._fh.seek(length)
                    self._fh.write(b"0" * (offset - length))
                self._fh.seek(offset)
                self._fh.write(block)
            self._fh.flush()
        except OSError as e:
            raise MachineIOError(self.path, f"Error writing to tape ({e.strerror})") from e

    def _shift_right(self, shift, block):
        # Read everything first, then rewrite with the new leftmost block in front
        self._fh.seek(0)
        existing = self._fh.read()

        self._fh.seek(0)
        self._fh.write(block)
        self._fh.write(b"0" * (shift - len(block)))
        self._fh.write(existing)

        self._origin += shift
        self._shift_count += 1

    # === Lifecycle ===
    def close(self):
        if not self._fh.closed:
            self._fh.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

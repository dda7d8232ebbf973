"""Memory trace reader.

A trace is a text file with one access per line:

    0x0040a3c8 I
    0x10010000 R
    0x10010004 W

I is an instruction fetch, R a data read and W a data write. Lines that do
not look like `0x<hex> <char>` are skipped. A line that does but carries
any other access letter makes the whole trace invalid.
"""
import logging
import re
from enum import Enum
from typing import Iterable, Iterator, List, NamedTuple, Optional, TextIO

from cachesim.core.errors import TraceError

logger = logging.getLogger(__name__)

# the lookahead stops a backtrack from reading the last hex digit as the letter
_LINE = re.compile(r"0x([0-9a-fA-F]+)(?![0-9a-fA-F])\s*(\S)")


class AccessKind(str, Enum):
    INSTRUCTION_FETCH = "I"
    READ = "R"
    WRITE = "W"


class TraceEvent(NamedTuple):
    address: int
    kind: AccessKind


def parse_trace_line(line: str, lineno: int = 0) -> Optional[TraceEvent]:
    """Parse one line; returns None for lines that should be skipped."""
    m = _LINE.match(line)
    if m is None:
        logger.debug("skipping trace line %d: %r", lineno, line.rstrip("\n"))
        return None
    address = int(m.group(1), 16)
    letter = m.group(2)
    try:
        kind = AccessKind(letter)
    except ValueError:
        raise TraceError(
            f"Malformed trace file: invalid access type '{letter}' on line {lineno}.",
            lineno=lineno,
            kind=letter,
        ) from None
    return TraceEvent(address, kind)


def read_trace(lines: Iterable[str]) -> Iterator[TraceEvent]:
    for lineno, line in enumerate(lines, start=1):
        event = parse_trace_line(line, lineno)
        if event is not None:
            yield event


def open_trace(path) -> TextIO:
    """Open a trace for reading; undecodable bytes become U+FFFD so such
    lines are skipped like any other unparseable line."""
    return open(path, "r", encoding="ascii", errors="replace")


def load_trace(path) -> List[TraceEvent]:
    """Read and validate a whole trace file."""
    with open_trace(path) as fh:
        return list(read_trace(fh))


__all__ = ["AccessKind", "TraceEvent", "load_trace", "open_trace", "parse_trace_line", "read_trace"]

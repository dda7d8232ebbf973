import pytest

from cachesim.core.errors import TraceError
from cachesim.data.trace import AccessKind, TraceEvent, load_trace, parse_trace_line, read_trace


@pytest.mark.parametrize('line,expected', [
    ("0x00000000 R\n", TraceEvent(0x0, AccessKind.READ)),
    ("0x10010004 W", TraceEvent(0x10010004, AccessKind.WRITE)),
    ("0x0040a3c8 I\n", TraceEvent(0x0040A3C8, AccessKind.INSTRUCTION_FETCH)),
    ("0xFFfF\tR", TraceEvent(0xFFFF, AccessKind.READ)),
    ("0x10R", TraceEvent(0x10, AccessKind.READ)),
    ("0x20 W trailing text", TraceEvent(0x20, AccessKind.WRITE)),
])
def test_parse_valid_lines(line, expected):
    assert parse_trace_line(line) == expected


@pytest.mark.parametrize('line', [
    "",
    "\n",
    "# comment",
    "00000000 R",
    "0x R",
    "0x1234",
    "0x1234   \n",
    " 0x10 R",
    "0x10B",   # B is read as a hex digit, leaving no access letter
])
def test_unparseable_lines_are_skipped(line):
    assert parse_trace_line(line) is None


def test_hex_digits_are_never_taken_as_access_letter():
    # without a separate letter these must not turn into fatal 'A'/'4' errors
    assert parse_trace_line("0x1A") is None
    assert parse_trace_line("0x1234   ") is None
    assert list(read_trace(["0x1A", "0x8 R"])) == [TraceEvent(0x8, AccessKind.READ)]


def test_unknown_access_letter_is_fatal():
    with pytest.raises(TraceError) as exc:
        list(read_trace(["0x0 R", "garbage", "0x4 X"]))
    assert exc.value.lineno == 3
    assert exc.value.kind == "X"
    assert "invalid access type 'X'" in str(exc.value)


def test_read_trace_skips_and_keeps_order():
    events = list(read_trace(["0x4 I", "junk", "0x8 W", "", "0xc R"]))
    assert [e.address for e in events] == [0x4, 0x8, 0xC]
    assert [e.kind for e in events] == [AccessKind.INSTRUCTION_FETCH, AccessKind.WRITE, AccessKind.READ]


def test_load_trace(trace_file):
    path = trace_file("0x0 I", "0x4 R", "bad line", "0x8 W")
    assert len(load_trace(path)) == 3


def test_load_trace_tolerates_non_ascii_bytes(tmp_path):
    path = tmp_path / "trace.txt"
    path.write_bytes(b"0x0 I\n\xff\xfe\n0x\xe94 R\n0x8 W\n")
    assert load_trace(path) == [
        TraceEvent(0x0, AccessKind.INSTRUCTION_FETCH),
        TraceEvent(0x8, AccessKind.WRITE),
    ]

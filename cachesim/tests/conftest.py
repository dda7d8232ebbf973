"""Test configuration for pytest.

Ensure the repository root is on sys.path so tests can import the
`cachesim` package without installing it or setting PYTHONPATH.
"""
import os
import sys

import pytest

# Compute project root: two directories above this file (cachesim/tests -> cachesim -> project root)
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


@pytest.fixture
def trace_file(tmp_path):
    """Write trace lines to a file and return its path."""
    def _write(*lines):
        path = tmp_path / "trace.txt"
        path.write_text("".join(line + "\n" for line in lines))
        return path
    return _write

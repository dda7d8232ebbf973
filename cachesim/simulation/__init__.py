"""Simulation package.

Exposes the Simulation class and the report helpers at
`cachesim.simulation` so callers can write
`from cachesim.simulation import Simulation`.
"""
from .report import format_report
from .simulation import Simulation

__all__ = ["Simulation", "format_report"]

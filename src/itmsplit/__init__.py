"""itmsplit.

ITM trace splitter: acquires a trace byte stream from a trace server or a
capture file and feeds it, in order, to a channel decoder.

Public API for embedding the acquisition loop in other tools.
"""

__version__ = "0.1.0"

from itmsplit.orchestrator import TerminalReason, TraceOrchestrator
from itmsplit.cli import main, run

__all__ = [
    "TerminalReason",
    "TraceOrchestrator",
    "main",
    "run",
]

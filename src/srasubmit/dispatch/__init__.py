"""
Dispatch stage: recurring delivery of READY submissions to the remote archive.
"""

from srasubmit.dispatch.driver import TransferDriver, TransferResult, TransferState
from srasubmit.dispatch.scheduler import DispatchScheduler

__all__ = [
    "DispatchScheduler",
    "TransferDriver",
    "TransferResult",
    "TransferState",
]

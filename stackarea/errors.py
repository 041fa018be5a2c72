from __future__ import annotations


class StackAreaError(Exception):
    """Base class for stack-area chart failures."""


class StackAreaDataError(StackAreaError, ValueError):
    """Input series or snapshots cannot be coerced into chart data."""


class SnapshotAlignmentError(StackAreaDataError):
    """Snapshot timestamps disagree with the sample timestamps at the same index."""


class StackAreaStateError(StackAreaError, RuntimeError):
    """Widget operation invoked in the wrong lifecycle state."""

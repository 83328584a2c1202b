"""Model namespace for callscan record schemas."""

from artifacts.models.artifacts.call_sites import (
    CalleeIdentity,
    ExceptionGuarantee,
    InvocationKind,
    OutputRecord,
)

__all__ = [
    "CalleeIdentity",
    "ExceptionGuarantee",
    "InvocationKind",
    "OutputRecord",
]

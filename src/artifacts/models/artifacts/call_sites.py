"""Call-site models for classified invocation records.

This module contains the closed invocation-kind and exception-guarantee
enumerations, the resolved callee identity, and the final output record.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class InvocationKind(str, Enum):
    """Structural shape of a matched invocation node."""

    CALL = "call"
    MEMBER_CALL = "member-call"
    CONSTRUCT = "construct"
    OPERATOR_CALL = "operator-call"


class ExceptionGuarantee(str, Enum):
    """Declared exception guarantee of a callee."""

    NO_THROW = "noexcept"
    MAY_THROW = "may-throw"


class CalleeIdentity(BaseModel):
    """Resolved direct callee of an invocation."""

    model_config = ConfigDict(frozen=True)

    qualified_name: str = Field(min_length=1)
    signature: str
    exception_guarantee: ExceptionGuarantee


class OutputRecord(BaseModel):
    """One emitted call-site row."""

    model_config = ConfigDict(frozen=True)

    file: str
    line: int = Field(ge=0)
    col: int = Field(ge=0)
    kind: InvocationKind
    qualified_name: str = Field(min_length=1)
    exception_guarantee: ExceptionGuarantee
    signature: str
    snippet: str


__all__ = [
    "CalleeIdentity",
    "ExceptionGuarantee",
    "InvocationKind",
    "OutputRecord",
]

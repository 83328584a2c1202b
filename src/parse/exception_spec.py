"""Exception guarantee classification from a resolved function type."""

from __future__ import annotations

from artifacts.models.artifacts.call_sites import ExceptionGuarantee
from frontend.model import ExceptionSpec

# Specifications that make a function type provably non-throwing.
NOTHROW_SPECS = frozenset(
    {
        ExceptionSpec.DYNAMIC_NONE,
        ExceptionSpec.BASIC_NOEXCEPT,
        ExceptionSpec.NOEXCEPT_TRUE,
        ExceptionSpec.NO_THROW,
    }
)


def classify(spec: ExceptionSpec) -> ExceptionGuarantee:
    """Map a declared exception specification to a guarantee.

    Only the declared contract is inspected: a ``noexcept`` function that
    would terminate on a throw is still NoThrow, and a function declared
    without a specification that never throws is still MayThrow.
    """
    if spec in NOTHROW_SPECS:
        return ExceptionGuarantee.NO_THROW
    return ExceptionGuarantee.MAY_THROW


__all__ = ["NOTHROW_SPECS", "classify"]

"""Invocation node matching over a Source Model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator

    from artifacts.models.artifacts.call_sites import InvocationKind
    from frontend.model import SourceModel


@dataclass(frozen=True)
class InvocationSite:
    """One matched call-like node, consumed by a single pipeline pass."""

    kind: InvocationKind
    node: Any


def iter_sites(
    model: SourceModel,
    *,
    include_system_headers: bool = False,
) -> Iterator[InvocationSite]:
    """Lazily yield every invocation site of a translation unit.

    Each node is reported once, under the single kind the front end assigns
    it. Nodes whose expansion location lies in a system header are skipped
    unless ``include_system_headers`` is set.
    """
    for kind, node in model.iter_invocations():
        if not include_system_headers and model.is_in_system_header(node):
            continue
        yield InvocationSite(kind=kind, node=node)


__all__ = ["InvocationSite", "iter_sites"]

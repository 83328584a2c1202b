"""Inclusion predicates over resolved callee identities."""

from __future__ import annotations

from typing import TYPE_CHECKING

from contract.columns import STD_NAMESPACE_PREFIX

if TYPE_CHECKING:
    from artifacts.models.artifacts.call_sites import CalleeIdentity
    from rules.config import FilterConfig


def accept(identity: CalleeIdentity, config: FilterConfig) -> bool:
    """Return True when a callee passes every configured predicate.

    Both checks are literal character-prefix matches on the qualified name,
    not namespace-segment aware: ``std::filesystem::pat`` accepts
    ``std::filesystem::path``.
    """
    name = identity.qualified_name
    if config.only_std and not name.startswith(STD_NAMESPACE_PREFIX):
        return False
    return not (config.name_prefix and not name.startswith(config.name_prefix))


__all__ = ["accept"]

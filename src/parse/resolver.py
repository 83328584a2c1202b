"""Callee resolution for matched invocation sites."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from artifacts.models.artifacts.call_sites import CalleeIdentity
from parse.exception_spec import classify

if TYPE_CHECKING:
    from typing import Any

    from frontend.model import SourceModel
    from parse.matcher import InvocationSite

logger = logging.getLogger(__name__)


def callee_qualified_name(model: SourceModel, decl: Any) -> str:
    """Build the canonical qualified name of a callee declaration.

    Constructors are named ``<parent class>::<class>`` rather than by the
    declaration's own spelling.
    """
    if model.is_constructor(decl):
        parent = model.parent_qualified_name(decl)
        name = model.plain_name(decl)
        return f"{parent}::{name}" if parent else name
    return model.qualified_name(decl)


def resolve(model: SourceModel, site: InvocationSite) -> CalleeIdentity | None:
    """Resolve the direct callee of a site, or None when there is none.

    Calls through function pointers or unresolved dependent expressions have
    no direct callee and are dropped here rather than emitted blank.
    """
    decl = model.direct_callee(site.node)
    if decl is None:
        logger.debug(
            "%s: dropping %s site without direct callee",
            model.name,
            site.kind.value,
        )
        return None

    qualified_name = callee_qualified_name(model, decl)
    if not qualified_name:
        logger.debug(
            "%s: dropping %s site with unnamed callee",
            model.name,
            site.kind.value,
        )
        return None

    return CalleeIdentity(
        qualified_name=qualified_name,
        signature=model.pretty_signature(decl),
        exception_guarantee=classify(model.exception_spec(decl)),
    )


__all__ = ["callee_qualified_name", "resolve"]

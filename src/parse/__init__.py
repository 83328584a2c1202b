"""Invocation matching, callee resolution and exception classification."""

from parse.exception_spec import NOTHROW_SPECS, classify
from parse.matcher import InvocationSite, iter_sites
from parse.resolver import callee_qualified_name, resolve

__all__ = [
    "NOTHROW_SPECS",
    "InvocationSite",
    "callee_qualified_name",
    "classify",
    "iter_sites",
    "resolve",
]

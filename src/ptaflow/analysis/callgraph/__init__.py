"""
Call graph construction and output.

This package provides:
- ``CallGraph`` / ``CSCallGraph``: call graphs built on the fly by the
  points-to solvers
- ``CHAResolver`` / ``CHABuilder``: dispatch and call graph construction by
  class hierarchy analysis
- output formatters (text, DOT, JSON)
"""

from .callgraph import CallGraph, CSCallGraph
from .cha import CHABuilder, CHAResolver
from .edge import CallKind, Edge, call_kind_of

__all__ = [
    "CallGraph",
    "CSCallGraph",
    "CHABuilder",
    "CHAResolver",
    "CallKind",
    "Edge",
    "call_kind_of",
]

"""
Call graph built on the fly by the points-to analysis (or up front by CHA).

The graph records entry methods, reachable methods and call edges. Edges
are deduplicated by (kind, call site, callee) and never removed, and every
method is marked reachable at most once; both insertions report whether
they changed the graph so that the solver can react to new facts only.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List

import networkx as nx

from .edge import Edge


class CallGraph:
    """
    Method-level call graph.

    Methods are ``JMethod`` objects and call sites are ``Invoke``
    statements. ``CSCallGraph`` reuses the same storage for their
    context-sensitive counterparts.
    """

    def __init__(self) -> None:
        self._entries: Dict[object, None] = {}
        self._reachable: Dict[object, None] = {}
        self._edges: Dict[Edge, None] = {}
        self._out: Dict[object, Dict[Edge, None]] = defaultdict(dict)
        self._in: Dict[object, Dict[Edge, None]] = defaultdict(dict)

    # ------------------------------------------------------------ building
    def add_entry_method(self, method) -> None:
        self._entries[method] = None

    def add_reachable_method(self, method) -> bool:
        """
        Mark ``method`` reachable.

        Returns
        -------
        bool
            True if the method was not reachable before.
        """
        if method in self._reachable:
            return False
        self._reachable[method] = None
        return True

    def add_edge(self, edge: Edge) -> bool:
        """
        Record a call edge.

        Returns
        -------
        bool
            True if no edge with the same kind, call site and callee existed.
        """
        if edge in self._edges:
            return False
        self._edges[edge] = None
        self._out[edge.call_site][edge] = None
        self._in[edge.callee][edge] = None
        return True

    # ------------------------------------------------------------- queries
    def entry_methods(self) -> List:
        return list(self._entries)

    def reachable_methods(self) -> List:
        return list(self._reachable)

    def contains(self, method) -> bool:
        return method in self._reachable

    def edges(self) -> List[Edge]:
        return list(self._edges)

    def num_of_edges(self) -> int:
        return len(self._edges)

    def num_of_methods(self) -> int:
        return len(self._reachable)

    def edges_out_of(self, call_site) -> List[Edge]:
        return list(self._out.get(call_site, ()))

    def edges_in_to(self, method) -> List[Edge]:
        return list(self._in.get(method, ()))

    def callees_of(self, call_site) -> List:
        """Distinct callees of ``call_site`` in insertion order."""
        return list(dict.fromkeys(e.callee for e in self._out.get(call_site, ())))

    def callers_of(self, method) -> List:
        """Distinct call sites calling ``method``."""
        return list(dict.fromkeys(e.call_site for e in self._in.get(method, ())))

    def call_sites_in(self, method) -> List:
        ir = method.ir
        return list(ir.invokes) if ir is not None else []

    def callees_of_method(self, method) -> List:
        callees = {}
        for call_site in self.call_sites_in(method):
            for callee in self.callees_of(call_site):
                callees[callee] = None
        return list(callees)

    def __contains__(self, method):
        return self.contains(method)

    # ------------------------------------------------------------- export
    def to_networkx(self) -> nx.MultiDiGraph:
        """
        Export a caller -> callee ``MultiDiGraph``. Each call edge becomes
        one graph edge carrying its ``kind`` and ``call_site``.
        """
        graph = nx.MultiDiGraph()
        for method in self._reachable:
            graph.add_node(method)
        for edge in self._edges:
            graph.add_edge(edge.caller, edge.callee,
                           kind=edge.kind, call_site=edge.call_site)
        return graph


class CSCallGraph(CallGraph):
    """Call graph over ``CSMethod`` and ``CSCallSite`` elements."""

    def __init__(self, cs_manager) -> None:
        CallGraph.__init__(self)
        self.cs_manager = cs_manager

    def call_sites_in(self, cs_method) -> List:
        ir = cs_method.method.ir
        if ir is None:
            return []
        return [self.cs_manager.get_cs_call_site(cs_method.context, invoke)
                for invoke in ir.invokes]

    def project(self) -> CallGraph:
        """Drop the contexts, merging edges that differ only in context."""
        cg = CallGraph()
        for cs_method in self._entries:
            cg.add_entry_method(cs_method.method)
        for cs_method in self._reachable:
            cg.add_reachable_method(cs_method.method)
        for edge in self._edges:
            cg.add_edge(Edge(edge.kind, edge.call_site.call_site, edge.callee.method))
        return cg

"""Pointer flow graph backed by a ``networkx.DiGraph``."""

from __future__ import annotations

from typing import List

import networkx as nx


class PointerFlowGraph(object):
    """
    Directed graph over pointers. An edge ``s -> t`` means every object
    pointed to by ``s`` may be pointed to by ``t``. Edges are never removed.
    """

    def __init__(self) -> None:
        self.graph = nx.DiGraph()

    def add_edge(self, source, target) -> bool:
        """Add ``source -> target``; return False if it already existed."""
        if self.graph.has_edge(source, target):
            return False
        self.graph.add_edge(source, target)
        return True

    def has_edge(self, source, target) -> bool:
        return self.graph.has_edge(source, target)

    def get_succs_of(self, pointer) -> List:
        if pointer not in self.graph:
            return []
        return list(self.graph.successors(pointer))

    def get_preds_of(self, pointer) -> List:
        if pointer not in self.graph:
            return []
        return list(self.graph.predecessors(pointer))

    def pointers(self):
        return list(self.graph.nodes)

    def num_of_edges(self) -> int:
        return self.graph.number_of_edges()

    def __contains__(self, pointer):
        return pointer in self.graph

"""
Read-only view of a finished points-to analysis.

``PointerAnalysisResult`` answers queries on the context-insensitive
solver's pointers; ``CSPointerAnalysisResult`` additionally exposes the
context-sensitive pointers and projects them onto plain variables and
objects for the context-independent queries.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Set

from .core.pointers import CSVar, StaticField


class PointerAnalysisResult(object):
    """
    Result of the context-insensitive analysis.

    Attributes:
        manager: PointerManager holding every pointer of the run
        call_graph: CallGraph built by the solver
        taint_flows: TaintFlow objects found by the taint plugin
    """

    def __init__(self, manager, call_graph, taint_flows=()):
        self.manager = manager
        self.call_graph = call_graph
        self.taint_flows = list(taint_flows)
        self._var_ptrs = {p.var: p for p in manager.get_vars()}

    def get_vars(self) -> List:
        """Variables of reachable methods that have a pointer."""
        return list(self._var_ptrs)

    def get_points_to_set(self, var) -> Set:
        """Objects ``var`` may point to; empty for unknown variables."""
        ptr = self._var_ptrs.get(var)
        if ptr is None:
            return set()
        return set(ptr.get_points_to_set())

    def get_cs_vars(self) -> List:
        return []

    def get_cs_points_to_set(self, cs_var) -> Set:
        return set(cs_var.get_points_to_set())

    def get_static_field_points_to_set(self, field) -> Set:
        ptr = self.manager.find(StaticField, field)
        if ptr is None:
            return set()
        return set(ptr.get_points_to_set())

    def get_instance_field_points_to_set(self, obj, field) -> Set:
        """Objects stored in ``field`` of the abstract object ``obj``."""
        return self._field_objects(lambda p: p.base == obj and p.field is field)

    def _field_objects(self, matches):
        objs = set()
        for ptr in self.manager.get_instance_fields():
            if matches(ptr):
                objs.update(self._project(ptr.get_points_to_set()))
        return objs

    def _project(self, pts):
        return pts

    def may_alias(self, v1, v2) -> bool:
        """True if ``v1`` and ``v2`` may point to a common object."""
        return not self.get_points_to_set(v1).isdisjoint(self.get_points_to_set(v2))

    def get_call_graph(self):
        return self.call_graph

    def get_ci_call_graph(self):
        return self.call_graph

    def get_taint_flows(self) -> List:
        return list(self.taint_flows)


class CSPointerAnalysisResult(PointerAnalysisResult):
    """Result of the context-sensitive analysis."""

    def __init__(self, manager, call_graph, taint_flows=()):
        PointerAnalysisResult.__init__(self, manager, call_graph, taint_flows)
        self._cs_vars: Dict[object, List[CSVar]] = defaultdict(list)
        for cs_var in manager.get_cs_vars():
            self._cs_vars[cs_var.var].append(cs_var)
        self._ci_call_graph = None

    def _project(self, pts):
        return {cs_obj.obj for cs_obj in pts}

    def get_vars(self) -> List:
        return list(self._cs_vars)

    def get_points_to_set(self, var) -> Set:
        """Objects ``var`` may point to in any context."""
        objs = set()
        for cs_var in self._cs_vars.get(var, ()):
            objs.update(self._project(cs_var.get_points_to_set()))
        return objs

    def get_cs_vars(self) -> List:
        return [v for vs in self._cs_vars.values() for v in vs]

    def get_cs_vars_of(self, var) -> List:
        return list(self._cs_vars.get(var, ()))

    def get_static_field_points_to_set(self, field) -> Set:
        return self._project(PointerAnalysisResult.get_static_field_points_to_set(self, field))

    def get_instance_field_points_to_set(self, obj, field) -> Set:
        return self._field_objects(lambda p: p.base.obj == obj and p.field is field)

    def get_ci_call_graph(self):
        if self._ci_call_graph is None:
            self._ci_call_graph = self.call_graph.project()
        return self._ci_call_graph

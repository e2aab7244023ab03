"""
Class hierarchy analysis.

``CHAResolver`` answers which methods a call site may invoke using only the
class hierarchy: a virtual call may reach the implementation of the called
subsignature in the declared type or any of its subtypes. The points-to
solvers use it to dispatch on the concrete type of receiver objects, and
``CHABuilder`` uses it to build a call graph without points-to information.

Results depend only on the hierarchy, so they are cached per resolver.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, List, Optional, Tuple

from ptaflow.language.classes import ClassHierarchy, JClass, JMethod
from .callgraph import CallGraph
from .edge import CallKind, Edge, call_kind_of

LOG = logging.getLogger(__name__)


class CHAResolver(object):
    def __init__(self, hierarchy: ClassHierarchy):
        self.hierarchy = hierarchy
        self._dispatch_cache: Dict[Tuple[JClass, str], Optional[JMethod]] = {}

    def dispatch(self, jclass: JClass, subsignature: str) -> Optional[JMethod]:
        """
        Find the nearest non-abstract method with ``subsignature`` declared
        by ``jclass`` or one of its superclasses.

        Returns:
            The method, or None when no concrete implementation exists.
        """
        key = (jclass, subsignature)
        try:
            return self._dispatch_cache[key]
        except KeyError:
            pass

        found = None
        c = jclass
        while c is not None:
            method = self.hierarchy.declared_method(c, subsignature)
            if method is not None and not self.hierarchy.is_abstract(method):
                found = method
                break
            c = self.hierarchy.superclass_of(c)
        self._dispatch_cache[key] = found
        return found

    def resolve_targets(self, call_site) -> List[JMethod]:
        """
        Resolve every possible target of ``call_site``.

        Returns:
            Distinct target methods in discovery order; empty when nothing
            can be called.
        """
        ref = call_site.method_ref
        kind = call_kind_of(call_site)
        cls, subsig = ref.declaring_class, ref.subsignature

        if kind is CallKind.STATIC:
            method = self.hierarchy.declared_method(cls, subsig)
            return [method] if method is not None else []
        if kind is CallKind.SPECIAL:
            method = self.dispatch(cls, subsig)
            return [method] if method is not None else []
        if kind in (CallKind.VIRTUAL, CallKind.INTERFACE):
            return self._resolve_virtual(cls, subsig)
        LOG.debug("no CHA targets for %s call %r", kind.name, call_site)
        return []

    def _resolve_virtual(self, cls, subsig):
        targets = {}
        visited = {cls}
        queue = deque([cls])
        while queue:
            c = queue.popleft()
            method = self.dispatch(c, subsig)
            if method is not None:
                targets[method] = None
            if self.hierarchy.is_interface(c):
                subtypes = (self.hierarchy.direct_subinterfaces_of(c)
                            + self.hierarchy.direct_implementors_of(c))
            else:
                subtypes = self.hierarchy.direct_subclasses_of(c)
            for sub in subtypes:
                if sub not in visited:
                    visited.add(sub)
                    queue.append(sub)
        return list(targets)

    def resolve_callee(self, recv_type: Optional[JClass], call_site) -> Optional[JMethod]:
        """
        Resolve the single method ``call_site`` invokes on a receiver of
        type ``recv_type`` (ignored for static and special calls).
        """
        ref = call_site.method_ref
        kind = call_kind_of(call_site)
        if kind is CallKind.STATIC:
            return self.hierarchy.declared_method(ref.declaring_class, ref.subsignature)
        if kind is CallKind.SPECIAL:
            return self.dispatch(ref.declaring_class, ref.subsignature)
        if kind in (CallKind.VIRTUAL, CallKind.INTERFACE) and recv_type is not None:
            return self.dispatch(recv_type, ref.subsignature)
        return None


class CHABuilder(object):
    """Builds a call graph from an entry method using CHA only."""

    def __init__(self, hierarchy: ClassHierarchy, resolver: Optional[CHAResolver] = None):
        self.hierarchy = hierarchy
        self.resolver = resolver if resolver is not None else CHAResolver(hierarchy)

    def build(self, entry: JMethod) -> CallGraph:
        callgraph = CallGraph()
        callgraph.add_entry_method(entry)
        queue = deque([entry])
        while queue:
            method = queue.popleft()
            if not callgraph.add_reachable_method(method):
                continue
            LOG.debug("CHA: reached %r", method)
            for call_site in callgraph.call_sites_in(method):
                kind = call_kind_of(call_site)
                for callee in self.resolver.resolve_targets(call_site):
                    callgraph.add_edge(Edge(kind, call_site, callee))
                    if not callgraph.contains(callee):
                        queue.append(callee)
        LOG.info("CHA call graph: %d reachable methods, %d edges",
                 callgraph.num_of_methods(), callgraph.num_of_edges())
        return callgraph

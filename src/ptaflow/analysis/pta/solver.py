"""
Propagation engine shared by the points-to solvers.

The solver maintains a pointer flow graph (PFG) and a worklist. Reaching a
method processes its statements, which adds PFG edges and seeds points-to
sets; propagating new objects along PFG edges may in turn wire field and
array accesses on those objects and resolve calls on them, which makes more
methods reachable. ``analyze`` drains the worklist until nothing changes,
giving a joint fixpoint of points-to sets and call graph.

**Subclass hooks:**
- ``initialize()``: build the call graph and reach the entry method
- ``var_of(pointer)``: the variable of a variable pointer, else None
- ``local(pointer, var)``: pointer of ``var`` in the context of ``pointer``
- ``process_call(pointer, obj)``: resolve the calls whose receiver is
  ``pointer`` for the new receiver object ``obj``
- ``on_new_objects(pointer, diff)``: called after the objects in ``diff``
  reached a variable pointer
"""

import logging
import time

from ptaflow.analysis.callgraph.cha import CHAResolver
from ptaflow.application.errors import InternalError
from ptaflow.util.typedispatch import TypeDispatchError
from .core.pfg import PointerFlowGraph
from .core.worklist import MethodEntry, PointerEntry, WorkList

LOG = logging.getLogger(__name__)


class Solver(object):
    """
    Base class of the worklist solvers.

    Attributes:
        context: AnalysisContext of the run
        hierarchy: ClassHierarchy used for dispatch
        heap_model: HeapModel turning allocation sites into objects
        cha: CHAResolver for callee resolution
        pfg: PointerFlowGraph
        worklist: WorkList of pointer and method entries
        call_graph: CallGraph built on the fly
        manager: PointerManager owning every pointer
    """

    def __init__(self, context, worklist=None):
        self.context = context
        self.hierarchy = context.hierarchy
        self.heap_model = context.heap_model
        self.cha = CHAResolver(self.hierarchy)
        self.pfg = PointerFlowGraph()
        self.worklist = worklist if worklist is not None else WorkList()
        self.call_graph = None
        self.manager = None
        self.processor = None
        self.result = None

    # --------------------------------------------------------------- driver
    def solve(self):
        """
        Run the analysis to its fixpoint and return the result.

        Raises:
            ConfigurationError: If the program is malformed.
            InternalError: If a statement cannot be processed.
        """
        if self.result is not None:
            return self.result
        self.context.validate()
        LOG.info("%s: starting from %r", type(self).__name__, self.context.entry_method)
        start = time.time()

        self.initialize()
        self.analyze()
        self.on_finish()
        self.result = self.make_result()

        LOG.info(
            "%s: %d reachable methods, %d call edges, %d PFG edges (%.2fs)",
            type(self).__name__,
            self.call_graph.num_of_methods(),
            self.call_graph.num_of_edges(),
            self.pfg.num_of_edges(),
            time.time() - start,
        )
        return self.result

    def initialize(self):
        raise NotImplementedError

    def on_finish(self):
        pass

    def make_result(self):
        raise NotImplementedError

    # ---------------------------------------------------------- propagation
    def add_reachable(self, method):
        """Queue ``method`` for statement processing if it is newly reachable."""
        if self.call_graph.add_reachable_method(method):
            LOG.debug("reachable: %r", method)
            self.worklist.add_method_entry(method)

    def add_pfg_edge(self, source, target):
        """Add ``source -> target`` and push the objects ``source`` already has."""
        if self.pfg.add_edge(source, target):
            pts = source.get_points_to_set()
            if not pts.is_empty():
                self.worklist.add_pointer_entry(target, pts.copy())

    def propagate(self, pointer, pts):
        """
        Add ``pts`` to the points-to set of ``pointer`` and forward the
        newly added objects to its PFG successors.

        Returns:
            PointsToSet of the objects that were not already present.
        """
        diff = pointer.get_points_to_set().add_all(pts)
        if not diff.is_empty():
            for succ in self.pfg.get_succs_of(pointer):
                self.worklist.add_pointer_entry(succ, diff)
        return diff

    def analyze(self):
        """Process worklist entries until the worklist is empty."""
        while not self.worklist.is_empty():
            entry = self.worklist.poll()
            if isinstance(entry, MethodEntry):
                self.process_method(entry.method)
            elif isinstance(entry, PointerEntry):
                self.process_pointer_entry(entry.pointer, entry.pts)
            else:
                raise InternalError("unknown worklist entry %r" % (entry,))

    def process_method(self, method):
        body = self.ir_of(method)
        if body is None:
            LOG.debug("no body for %r", method)
            return
        try:
            for stmt in body:
                self.processor(stmt, method)
        except TypeDispatchError as e:
            raise InternalError(str(e)) from e

    def process_pointer_entry(self, pointer, pts):
        diff = self.propagate(pointer, pts)
        var = self.var_of(pointer)
        if var is None or diff.is_empty():
            return
        manager = self.manager
        for obj in diff:
            for stmt in var.store_fields:
                self.add_pfg_edge(self.local(pointer, stmt.rvalue),
                                  manager.get_instance_field(obj, stmt.field))
            for stmt in var.load_fields:
                self.add_pfg_edge(manager.get_instance_field(obj, stmt.field),
                                  self.local(pointer, stmt.lvalue))
            for stmt in var.store_arrays:
                self.add_pfg_edge(self.local(pointer, stmt.rvalue),
                                  manager.get_array_index(obj))
            for stmt in var.load_arrays:
                self.add_pfg_edge(manager.get_array_index(obj),
                                  self.local(pointer, stmt.lvalue))
            self.process_call(pointer, obj)
        self.on_new_objects(pointer, diff)

    def on_new_objects(self, pointer, diff):
        pass

    # -------------------------------------------------------------- binding
    def bind_call(self, invoke, callee_ir, caller_ptr, callee_ptr):
        """
        Connect actual arguments to formal parameters and the callee's
        return variables to the call result.

        ``caller_ptr(var)`` and ``callee_ptr(var)`` map a variable to its
        pointer on the caller and callee side. Extra arguments or parameters
        are left unbound.
        """
        for arg, param in zip(invoke.args, callee_ir.params):
            self.add_pfg_edge(caller_ptr(arg), callee_ptr(param))
        if invoke.result is not None:
            result = caller_ptr(invoke.result)
            for ret in callee_ir.return_vars:
                self.add_pfg_edge(callee_ptr(ret), result)

    def resolve_callee(self, recv_obj, call_site):
        """Resolve the callee of ``call_site`` for receiver object ``recv_obj``."""
        recv_type = recv_obj.get_type() if recv_obj is not None else None
        callee = self.cha.resolve_callee(recv_type, call_site)
        if callee is None:
            LOG.debug("no callee for %r on %r", call_site, recv_type)
        return callee

    # ---------------------------------------------------------------- hooks
    def ir_of(self, method):
        raise NotImplementedError

    def var_of(self, pointer):
        raise NotImplementedError

    def local(self, pointer, var):
        raise NotImplementedError

    def process_call(self, pointer, obj):
        raise NotImplementedError

"""Context-insensitive points-to solver."""

import logging

from ptaflow.analysis.callgraph.callgraph import CallGraph
from ptaflow.analysis.callgraph.edge import Edge, call_kind_of
from ptaflow.language import ir
from ptaflow.util.typedispatch import TypeDispatcher, dispatch
from ..core.csmanager import PointerManager
from ..core.pointers import PointsToSet, VarPtr
from ..result import PointerAnalysisResult
from ..solver import Solver

LOG = logging.getLogger(__name__)


class StmtProcessor(TypeDispatcher):
    """
    Processes the statements of a newly reachable method.

    Instance field, array and instance call statements depend on the
    objects their base variable points to, so they are handled when those
    objects arrive (see ``Solver.process_pointer_entry``).
    """

    def __init__(self, solver):
        self.solver = solver

    def var(self, v):
        return self.solver.manager.get_var_ptr(v)

    @dispatch(ir.New)
    def visitNew(self, stmt, method):
        obj = self.solver.heap_model.get_obj(stmt)
        self.solver.worklist.add_pointer_entry(self.var(stmt.lvalue), PointsToSet([obj]))

    @dispatch(ir.Copy)
    def visitCopy(self, stmt, method):
        self.solver.add_pfg_edge(self.var(stmt.rvalue), self.var(stmt.lvalue))

    @dispatch(ir.LoadField)
    def visitLoadField(self, stmt, method):
        if stmt.is_static:
            self.solver.add_pfg_edge(
                self.solver.manager.get_static_field(stmt.field), self.var(stmt.lvalue)
            )

    @dispatch(ir.StoreField)
    def visitStoreField(self, stmt, method):
        if stmt.is_static:
            self.solver.add_pfg_edge(
                self.var(stmt.rvalue), self.solver.manager.get_static_field(stmt.field)
            )

    @dispatch(ir.Invoke)
    def visitInvoke(self, stmt, method):
        if stmt.is_static:
            callee = self.solver.resolve_callee(None, stmt)
            if callee is not None:
                self.solver.process_one_call(stmt, callee)

    @dispatch(ir.LoadArray, ir.StoreArray, ir.Return)
    def visitDeferred(self, stmt, method):
        pass


class CISolver(Solver):
    """
    Context-insensitive solver: one pointer per variable, objects without
    heap contexts, and a call graph over plain methods and call sites.
    """

    def initialize(self):
        self.manager = PointerManager()
        self.call_graph = CallGraph()
        self.processor = StmtProcessor(self)
        entry = self.context.entry_method
        self.call_graph.add_entry_method(entry)
        self.add_reachable(entry)

    def ir_of(self, method):
        return method.ir

    def var_of(self, pointer):
        if isinstance(pointer, VarPtr):
            return pointer.var
        return None

    def local(self, pointer, var):
        return self.manager.get_var_ptr(var)

    def process_call(self, pointer, obj):
        """Dispatch every call on ``pointer``'s variable for receiver ``obj``."""
        for call_site in pointer.var.invokes:
            callee = self.resolve_callee(obj, call_site)
            if callee is None:
                continue
            if callee.ir is not None and callee.ir.this is not None:
                self.worklist.add_pointer_entry(
                    self.manager.get_var_ptr(callee.ir.this), PointsToSet([obj])
                )
            self.process_one_call(call_site, callee)

    def process_one_call(self, call_site, callee):
        edge = Edge(call_kind_of(call_site), call_site, callee)
        if not self.call_graph.add_edge(edge):
            return
        LOG.debug("call edge %r", edge)
        self.add_reachable(callee)
        if callee.ir is not None:
            var_ptr = self.manager.get_var_ptr
            self.bind_call(call_site, callee.ir, var_ptr, var_ptr)

    def make_result(self):
        return PointerAnalysisResult(self.manager, self.call_graph)

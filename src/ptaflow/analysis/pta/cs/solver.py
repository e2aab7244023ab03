"""
Context-sensitive points-to solver.

Variables, objects, methods and call sites carry contexts chosen by a
``ContextSelector``: a callee's context is selected at each call edge, and
a new object's heap context is selected from the context of the method
allocating it. With a taint configuration the solver also drives the
taint plugin.
"""

import logging

from ptaflow.analysis.callgraph.callgraph import CSCallGraph
from ptaflow.analysis.callgraph.edge import Edge, call_kind_of
from ptaflow.language import ir
from ptaflow.util.typedispatch import TypeDispatcher, dispatch
from ..core.csmanager import CSManager
from ..core.pointers import CSVar, PointsToSet
from ..core.selector import make_selector
from ..plugin.taint import TaintAnalysis, TaintConfig
from ..result import CSPointerAnalysisResult
from ..solver import Solver

LOG = logging.getLogger(__name__)


class StmtProcessor(TypeDispatcher):
    """Processes the statements of a newly reachable context-sensitive method."""

    def __init__(self, solver):
        self.solver = solver

    def var(self, cs_method, v):
        return self.solver.manager.get_cs_var(cs_method.context, v)

    @dispatch(ir.New)
    def visitNew(self, stmt, cs_method):
        solver = self.solver
        obj = solver.heap_model.get_obj(stmt)
        heap_context = solver.selector.select_heap_context(cs_method, obj)
        cs_obj = solver.manager.get_cs_obj(heap_context, obj)
        solver.worklist.add_pointer_entry(self.var(cs_method, stmt.lvalue), PointsToSet([cs_obj]))

    @dispatch(ir.Copy)
    def visitCopy(self, stmt, cs_method):
        self.solver.add_pfg_edge(self.var(cs_method, stmt.rvalue),
                                 self.var(cs_method, stmt.lvalue))

    @dispatch(ir.LoadField)
    def visitLoadField(self, stmt, cs_method):
        if stmt.is_static:
            self.solver.add_pfg_edge(self.solver.manager.get_static_field(stmt.field),
                                     self.var(cs_method, stmt.lvalue))

    @dispatch(ir.StoreField)
    def visitStoreField(self, stmt, cs_method):
        if stmt.is_static:
            self.solver.add_pfg_edge(self.var(cs_method, stmt.rvalue),
                                     self.solver.manager.get_static_field(stmt.field))

    @dispatch(ir.Invoke)
    def visitInvoke(self, stmt, cs_method):
        solver = self.solver
        if not stmt.is_static:
            return
        callee = solver.resolve_callee(None, stmt)
        if callee is None:
            return
        cs_call_site = solver.manager.get_cs_call_site(cs_method.context, stmt)
        callee_context = solver.selector.select_context(cs_call_site, callee)
        solver.process_one_call(cs_call_site, solver.manager.get_cs_method(callee_context, callee))
        solver.transfer_taint(cs_call_site, callee, None)

    @dispatch(ir.LoadArray, ir.StoreArray, ir.Return)
    def visitDeferred(self, stmt, cs_method):
        pass


class CSSolver(Solver):
    """
    Context-sensitive solver.

    Attributes:
        selector: ContextSelector choosing method and heap contexts
        taint: TaintAnalysis, or None when no taint configuration is given
    """

    def __init__(self, context, selector=None, taint_config=None, worklist=None):
        Solver.__init__(self, context, worklist)
        options = context.options
        self.selector = selector if selector is not None else make_selector(options.cs)
        self._taint_config = taint_config
        self.taint = None

    def initialize(self):
        self.manager = CSManager()
        self.call_graph = CSCallGraph(self.manager)
        self.processor = StmtProcessor(self)

        config = self._taint_config
        if config is None and self.context.options.taint_config is not None:
            config = TaintConfig.load(self.context.options.taint_config, self.hierarchy)
        if config is not None:
            self.taint = TaintAnalysis(self, config)

        LOG.info("context selector: %r", self.selector)
        entry = self.manager.get_cs_method(self.selector.get_empty_context(),
                                           self.context.entry_method)
        self.call_graph.add_entry_method(entry)
        self.add_reachable(entry)

    def ir_of(self, cs_method):
        return cs_method.method.ir

    def var_of(self, pointer):
        if isinstance(pointer, CSVar):
            return pointer.var
        return None

    def local(self, pointer, var):
        return self.manager.get_cs_var(pointer.context, var)

    def process_call(self, recv, recv_obj):
        """Dispatch every call on ``recv``'s variable for receiver ``recv_obj``."""
        manager = self.manager
        for call_site in recv.var.invokes:
            callee = self.resolve_callee(recv_obj, call_site)
            if callee is None:
                continue
            cs_call_site = manager.get_cs_call_site(recv.context, call_site)
            callee_context = self.selector.select_context(cs_call_site, callee, recv_obj)
            cs_callee = manager.get_cs_method(callee_context, callee)
            if callee.ir is not None and callee.ir.this is not None:
                self.worklist.add_pointer_entry(
                    manager.get_cs_var(callee_context, callee.ir.this),
                    PointsToSet([recv_obj]),
                )
            self.process_one_call(cs_call_site, cs_callee)
            self.transfer_taint(cs_call_site, callee, recv)

    def process_one_call(self, cs_call_site, cs_callee):
        invoke = cs_call_site.call_site
        callee = cs_callee.method
        if self.taint is not None and invoke.result is not None:
            obj = self.taint.produce_taint_obj(invoke, callee)
            if obj is not None:
                self.add_taint(cs_call_site.context, invoke.result, obj)

        edge = Edge(call_kind_of(invoke), cs_call_site, cs_callee)
        if not self.call_graph.add_edge(edge):
            return
        LOG.debug("call edge %r", edge)
        self.add_reachable(cs_callee)
        if callee.ir is not None:
            get_cs_var = self.manager.get_cs_var
            self.bind_call(
                invoke,
                callee.ir,
                lambda v: get_cs_var(cs_call_site.context, v),
                lambda v: get_cs_var(cs_callee.context, v),
            )

    # ---------------------------------------------------------------- taint
    def add_taint(self, context, var, obj):
        cs_obj = self.manager.get_cs_obj(self.selector.get_empty_context(), obj)
        self.worklist.add_pointer_entry(self.manager.get_cs_var(context, var),
                                        PointsToSet([cs_obj]))

    def transfer_taint(self, cs_call_site, callee, base):
        if self.taint is None:
            return
        for var, obj in self.taint.handle_taint_transfer(cs_call_site, callee, base):
            self.add_taint(cs_call_site.context, var, obj)

    def on_new_objects(self, pointer, diff):
        if self.taint is None or not pointer.var.arg_invokes:
            return
        if not any(self.taint.is_taint(cs_obj.obj) for cs_obj in diff):
            return
        context = pointer.context
        for invoke in pointer.var.arg_invokes:
            cs_call_site = self.manager.get_cs_call_site(context, invoke)
            if invoke.is_static:
                callee = self.resolve_callee(None, invoke)
                if callee is not None:
                    self.transfer_taint(cs_call_site, callee, None)
                continue
            recv = self.manager.get_cs_var(context, invoke.base)
            for recv_obj in recv.get_points_to_set().objects():
                callee = self.resolve_callee(recv_obj, invoke)
                if callee is not None:
                    self.transfer_taint(cs_call_site, callee, recv)

    def on_finish(self):
        if self.taint is not None:
            self.taint.on_finish()

    def make_result(self):
        flows = self.taint.flows if self.taint is not None else ()
        return CSPointerAnalysisResult(self.manager, self.call_graph, flows)

"""
Analysis context for ptaflow.

The ``AnalysisContext`` is the explicit "world" handed to a solver: the
class hierarchy, the entry method, the heap model and the options of the
run. Nothing in the analysis looks these up globally; every component
receives the context (or the pieces of it it needs) by reference.
"""

import logging

from ptaflow.language import ir
from .errors import ConfigurationError
from .options import AnalysisOptions

LOG = logging.getLogger(__name__)


class AnalysisContext(object):
    """
    Shared state of one analysis run.

    Attributes:
        program: Program being analyzed
        hierarchy: ClassHierarchy of the program
        entry_method: JMethod where the analysis starts
        options: AnalysisOptions of the run
        heap_model: HeapModel built from ``options.heap_model`` unless given
    """
    __slots__ = "program", "hierarchy", "entry_method", "options", "heap_model"

    def __init__(self, program, options=None, heap_model=None):
        self.program = program
        self.hierarchy = program.hierarchy
        self.entry_method = program.entry_method
        self.options = options if options is not None else AnalysisOptions()
        if heap_model is None:
            from ptaflow.analysis.pta.core.heap import make_heap_model
            heap_model = make_heap_model(self.options.heap_model)
        self.heap_model = heap_model

    def validate(self):
        """
        Check that the program is well formed before solving.

        Every class, method and field referenced by a method body must be
        owned by the class hierarchy, and the entry method must have a body.

        Raises:
            ConfigurationError: Describing the first problems found.
        """
        problems = []
        entry = self.entry_method
        if entry is None:
            raise ConfigurationError("no entry method")
        if not self.hierarchy.contains(entry.declaring_class):
            problems.append("entry method %r is not in the class hierarchy" % (entry,))
        if entry.ir is None:
            problems.append("entry method %r has no body" % (entry,))

        for method in self.hierarchy.all_methods():
            if method.ir is None:
                continue
            for stmt in method.ir:
                problems.extend(self._check_stmt(method, stmt))

        if problems:
            for p in problems:
                LOG.error("%s", p)
            raise ConfigurationError(
                "malformed program (%d problems): %s" % (len(problems), problems[0])
            )

    def _check_stmt(self, method, stmt):
        hierarchy = self.hierarchy
        if isinstance(stmt, ir.Invoke):
            ref = stmt.method_ref
            if not hierarchy.contains(ref.declaring_class):
                yield "%r calls %r on a class outside the hierarchy" % (method, ref)
            elif stmt.kind is not ir.InvokeKind.DYNAMIC:
                subtypes = stmt.kind in (ir.InvokeKind.VIRTUAL, ir.InvokeKind.INTERFACE)
                if not hierarchy.declares_method(ref.declaring_class, ref.subsignature, subtypes):
                    yield "%r calls unknown method %r" % (method, ref)
        elif isinstance(stmt, (ir.LoadField, ir.StoreField)):
            if not hierarchy.contains(stmt.field.declaring_class):
                yield "%r accesses unknown field %r" % (method, stmt.field)
        elif isinstance(stmt, ir.New):
            if not hierarchy.contains(stmt.type):
                yield "%r allocates unknown class %r" % (method, stmt.type)

"""
Intermediate representation consumed by the points-to analysis.

The IR of a method is a flat list of statements over method-local
variables. Statements form a closed union:

- ``New``: ``x = new T``
- ``Copy``: ``x = y``
- ``LoadField``: ``x = y.f`` or ``x = T.f``
- ``StoreField``: ``x.f = y`` or ``T.f = y``
- ``LoadArray``: ``x = a[i]``
- ``StoreArray``: ``a[i] = x``
- ``Invoke``: ``r = x.m(args)`` / ``r = T.m(args)``
- ``Return``: ``return x``

Each variable indexes the field, array and call statements in which it is
the base, so that the solver can revisit exactly those statements when a
new object reaches the variable.
"""

from __future__ import annotations

import enum
from typing import List, Optional

from ptaflow.util.canonical import CanonicalObject


class InvokeKind(enum.Enum):
    """The invocation form of a call statement."""
    STATIC = "static"
    SPECIAL = "special"
    VIRTUAL = "virtual"
    INTERFACE = "interface"
    DYNAMIC = "dynamic"


class Var(object):
    """
    A method-local variable.

    Attributes:
        name: Variable name, unique within its method
        method: JMethod the variable belongs to
        type: Optional declared type name
        store_fields: ``StoreField`` statements with this variable as base
        load_fields: ``LoadField`` statements with this variable as base
        store_arrays: ``StoreArray`` statements with this variable as base
        load_arrays: ``LoadArray`` statements with this variable as base
        invokes: Instance ``Invoke`` statements with this variable as receiver
        arg_invokes: ``Invoke`` statements passing this variable as an argument
    """
    __slots__ = (
        "name",
        "method",
        "type",
        "store_fields",
        "load_fields",
        "store_arrays",
        "load_arrays",
        "invokes",
        "arg_invokes",
    )

    def __init__(self, name: str, method=None, type: Optional[str] = None):
        self.name = name
        self.method = method
        self.type = type
        self.store_fields: List[StoreField] = []
        self.load_fields: List[LoadField] = []
        self.store_arrays: List[StoreArray] = []
        self.load_arrays: List[LoadArray] = []
        self.invokes: List[Invoke] = []
        self.arg_invokes: List[Invoke] = []

    def __repr__(self):
        if self.method is None:
            return self.name
        return "%s/%s" % (self.method.signature, self.name)


class MethodRef(CanonicalObject):
    """
    Symbolic reference to a method: the statically-declared class of a call
    site plus the subsignature being called.
    """
    __slots__ = "declaring_class", "subsignature"

    def __init__(self, declaring_class, subsignature: str):
        self.declaring_class = declaring_class
        self.subsignature = subsignature
        self.setCanonical(declaring_class, subsignature)

    def __repr__(self):
        return "%s.%s" % (self.declaring_class.name, self.subsignature)


class Stmt(object):
    """
    Base class of all statements.

    Attributes:
        index: Position within the containing method, assigned by ``IR``
        container: JMethod containing the statement, assigned by ``IR``
    """
    __slots__ = "index", "container"

    def __init__(self):
        self.index = -1
        self.container = None

    def get_def(self) -> Optional[Var]:
        return None

    def get_uses(self) -> List[Var]:
        return []


class New(Stmt):
    """Allocation ``lvalue = new type``; the statement is the allocation site."""
    __slots__ = "lvalue", "type"

    def __init__(self, lvalue: Var, type):
        Stmt.__init__(self)
        self.lvalue = lvalue
        self.type = type

    def get_def(self):
        return self.lvalue

    def __repr__(self):
        return "%s = new %s" % (self.lvalue.name, self.type.name)


class Copy(Stmt):
    __slots__ = "lvalue", "rvalue"

    def __init__(self, lvalue: Var, rvalue: Var):
        Stmt.__init__(self)
        self.lvalue = lvalue
        self.rvalue = rvalue

    def get_def(self):
        return self.lvalue

    def get_uses(self):
        return [self.rvalue]

    def __repr__(self):
        return "%s = %s" % (self.lvalue.name, self.rvalue.name)


class LoadField(Stmt):
    """``lvalue = base.field``, or ``lvalue = T.field`` when ``base`` is None."""
    __slots__ = "lvalue", "field", "base"

    def __init__(self, lvalue: Var, field, base: Optional[Var] = None):
        Stmt.__init__(self)
        self.lvalue = lvalue
        self.field = field
        self.base = base

    @property
    def is_static(self) -> bool:
        return self.base is None

    def get_def(self):
        return self.lvalue

    def get_uses(self):
        return [] if self.base is None else [self.base]

    def __repr__(self):
        if self.base is None:
            return "%s = %r" % (self.lvalue.name, self.field)
        return "%s = %s.%s" % (self.lvalue.name, self.base.name, self.field.name)


class StoreField(Stmt):
    """``base.field = rvalue``, or ``T.field = rvalue`` when ``base`` is None."""
    __slots__ = "field", "rvalue", "base"

    def __init__(self, field, rvalue: Var, base: Optional[Var] = None):
        Stmt.__init__(self)
        self.field = field
        self.rvalue = rvalue
        self.base = base

    @property
    def is_static(self) -> bool:
        return self.base is None

    def get_uses(self):
        if self.base is None:
            return [self.rvalue]
        return [self.base, self.rvalue]

    def __repr__(self):
        if self.base is None:
            return "%r = %s" % (self.field, self.rvalue.name)
        return "%s.%s = %s" % (self.base.name, self.field.name, self.rvalue.name)


class LoadArray(Stmt):
    __slots__ = "lvalue", "base", "index_var"

    def __init__(self, lvalue: Var, base: Var, index_var: Optional[Var] = None):
        Stmt.__init__(self)
        self.lvalue = lvalue
        self.base = base
        self.index_var = index_var

    def get_def(self):
        return self.lvalue

    def get_uses(self):
        return [v for v in (self.base, self.index_var) if v is not None]

    def __repr__(self):
        idx = self.index_var.name if self.index_var is not None else "*"
        return "%s = %s[%s]" % (self.lvalue.name, self.base.name, idx)


class StoreArray(Stmt):
    __slots__ = "base", "index_var", "rvalue"

    def __init__(self, base: Var, rvalue: Var, index_var: Optional[Var] = None):
        Stmt.__init__(self)
        self.base = base
        self.rvalue = rvalue
        self.index_var = index_var

    def get_uses(self):
        return [v for v in (self.base, self.index_var, self.rvalue) if v is not None]

    def __repr__(self):
        idx = self.index_var.name if self.index_var is not None else "*"
        return "%s[%s] = %s" % (self.base.name, idx, self.rvalue.name)


class Invoke(Stmt):
    """
    A call statement.

    Attributes:
        kind: InvokeKind of the call
        method_ref: MethodRef naming the statically-declared callee
        args: Actual argument variables
        base: Receiver variable for instance calls, None for static calls
        result: Variable receiving the return value, or None if unused
    """
    __slots__ = "kind", "method_ref", "args", "base", "result"

    def __init__(self, kind: InvokeKind, method_ref: MethodRef, args=(), base=None, result=None):
        Stmt.__init__(self)
        self.kind = kind
        self.method_ref = method_ref
        self.args = list(args)
        self.base = base
        self.result = result

    @property
    def is_static(self) -> bool:
        return self.kind is InvokeKind.STATIC

    def get_def(self):
        return self.result

    def get_uses(self):
        uses = [] if self.base is None else [self.base]
        return uses + list(self.args)

    def __repr__(self):
        call = "%s(%s)" % (
            self.method_ref,
            ", ".join(a.name for a in self.args),
        )
        if self.base is not None:
            call = "%s.%s" % (self.base.name, call)
        call = "invoke%s %s" % (self.kind.value, call)
        if self.result is not None:
            call = "%s = %s" % (self.result.name, call)
        if self.container is not None:
            call = "%s@%d: %s" % (self.container.signature, self.index, call)
        return call


class Return(Stmt):
    __slots__ = ("value",)

    def __init__(self, value: Optional[Var] = None):
        Stmt.__init__(self)
        self.value = value

    def get_uses(self):
        return [] if self.value is None else [self.value]

    def __repr__(self):
        return "return" if self.value is None else "return %s" % self.value.name


class IR(object):
    """
    The body of a concrete method.

    Building an ``IR`` numbers its statements and fills in the per-variable
    statement indexes used by the solver.

    Attributes:
        method: JMethod owning this IR
        this: Receiver variable, None for static methods
        params: Formal parameter variables (excluding ``this``)
        stmts: Statements in order
        return_vars: Variables returned by ``Return`` statements
        invokes: All ``Invoke`` statements of the method
    """
    __slots__ = "method", "this", "params", "stmts", "return_vars", "invokes", "_vars"

    def __init__(self, method, params=(), this=None, stmts=()):
        self.method = method
        self.this = this
        self.params = list(params)
        self.stmts = list(stmts)
        self.return_vars: List[Var] = []
        self.invokes: List[Invoke] = []
        self._vars = {}

        for var in ([this] if this is not None else []) + self.params:
            self._vars[var.name] = var
        for i, stmt in enumerate(self.stmts):
            stmt.index = i
            stmt.container = method
            self._index(stmt)

    def _index(self, stmt):
        for var in filter(None, [stmt.get_def()] + stmt.get_uses()):
            self._vars.setdefault(var.name, var)

        if isinstance(stmt, StoreField) and stmt.base is not None:
            stmt.base.store_fields.append(stmt)
        elif isinstance(stmt, LoadField) and stmt.base is not None:
            stmt.base.load_fields.append(stmt)
        elif isinstance(stmt, StoreArray):
            stmt.base.store_arrays.append(stmt)
        elif isinstance(stmt, LoadArray):
            stmt.base.load_arrays.append(stmt)
        elif isinstance(stmt, Invoke):
            self.invokes.append(stmt)
            if stmt.base is not None:
                stmt.base.invokes.append(stmt)
            for arg in stmt.args:
                if stmt not in arg.arg_invokes:
                    arg.arg_invokes.append(stmt)
        elif isinstance(stmt, Return) and stmt.value is not None:
            if stmt.value not in self.return_vars:
                self.return_vars.append(stmt.value)

    def get_var(self, name: str) -> Optional[Var]:
        return self._vars.get(name)

    def get_vars(self) -> List[Var]:
        return list(self._vars.values())

    def get_param(self, i: int) -> Var:
        return self.params[i]

    def __iter__(self):
        return iter(self.stmts)

    def __repr__(self):
        return "IR(%s)" % self.method

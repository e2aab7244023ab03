from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

import pytest

from ptaflow.analysis.pta import solve
from ptaflow.analysis.pta.core.heap import MergedObj, MockObj, NewObj
from ptaflow.application import AnalysisContext, AnalysisOptions, Program
from ptaflow.language import load_program
from ptaflow.language.loader import split_method_ref


class ProgramBuilder:
    """
    Small harness that assembles the JSON description accepted by
    ``load_program`` so tests can state programs compactly.
    """

    def __init__(self) -> None:
        self.classes: List[Dict[str, Any]] = []

    # ------------------------------------------------------------ classes
    def cls(self, name, super=None, interfaces=(), methods=(), fields=(),
            interface=False, abstract=False):
        spec: Dict[str, Any] = {"name": name, "methods": list(methods), "fields": list(fields)}
        if super:
            spec["super"] = super
        if interfaces:
            spec["interfaces"] = list(interfaces)
        if interface:
            spec["interface"] = True
        if abstract:
            spec["abstract"] = True
        self.classes.append(spec)
        return self

    @staticmethod
    def method(subsig, body=None, params=(), static=False, abstract=False):
        spec: Dict[str, Any] = {"subsignature": subsig, "params": list(params)}
        if static:
            spec["static"] = True
        if abstract:
            spec["abstract"] = True
        if body is not None:
            spec["body"] = list(body)
        return spec

    # --------------------------------------------------------- statements
    @staticmethod
    def new(lhs, type):
        return {"op": "new", "lhs": lhs, "type": type}

    @staticmethod
    def copy(lhs, rhs):
        return {"op": "copy", "lhs": lhs, "rhs": rhs}

    @staticmethod
    def load(lhs, field, base=None):
        s = {"op": "load", "lhs": lhs, "field": field}
        if base is not None:
            s["base"] = base
        return s

    @staticmethod
    def store(field, rhs, base=None):
        s = {"op": "store", "field": field, "rhs": rhs}
        if base is not None:
            s["base"] = base
        return s

    @staticmethod
    def aload(lhs, base, index=None):
        s = {"op": "aload", "lhs": lhs, "base": base}
        if index is not None:
            s["index"] = index
        return s

    @staticmethod
    def astore(base, rhs, index=None):
        s = {"op": "astore", "base": base, "rhs": rhs}
        if index is not None:
            s["index"] = index
        return s

    @staticmethod
    def invoke(method, base=None, args=(), lhs=None, kind=None):
        s: Dict[str, Any] = {"op": "invoke", "method": method, "args": list(args)}
        if base is not None:
            s["base"] = base
        if lhs is not None:
            s["lhs"] = lhs
        if kind is not None:
            s["kind"] = kind
        return s

    @staticmethod
    def ret(value=None):
        s: Dict[str, Any] = {"op": "return"}
        if value is not None:
            s["value"] = value
        return s

    # --------------------------------------------------------------- build
    def data(self, entry="Main.main()") -> Dict[str, Any]:
        return {"entry": entry, "classes": self.classes}

    def build(self, entry="Main.main()") -> Program:
        return load_program(self.data(entry), name="test")


def find_method(program, signature):
    cls_name, subsig = split_method_ref(signature)
    method = program.hierarchy.get_class(cls_name).get_declared_method(subsig)
    assert method is not None, signature
    return method


def obj_label(obj) -> str:
    """Stable label of an abstract object: ``Method/lhs`` of its allocation."""
    if isinstance(obj, NewObj):
        return "%s/%s" % (obj.alloc.container.signature, obj.alloc.lvalue.name)
    if isinstance(obj, MergedObj):
        return obj.type.name
    if isinstance(obj, MockObj):
        return "%s:%s" % (obj.descriptor, obj.type.name)
    return repr(obj)


@dataclass(frozen=True)
class Analysis:
    program: Program
    result: Any

    def var(self, signature: str, name: str):
        var = find_method(self.program, signature).ir.get_var(name)
        assert var is not None, (signature, name)
        return var

    def pts(self, signature: str, name: str) -> set:
        return self.result.get_points_to_set(self.var(signature, name))

    def objs(self, signature: str, name: str) -> set:
        return {obj_label(o) for o in self.pts(signature, name)}

    def types(self, signature: str, name: str) -> set:
        return {o.get_type().name for o in self.pts(signature, name)}

    def reachable(self) -> set:
        cg = self.result.get_ci_call_graph()
        return {m.signature for m in cg.reachable_methods()}

    def callees(self, signature: str) -> set:
        cg = self.result.get_ci_call_graph()
        method = find_method(self.program, signature)
        return {m.signature for m in cg.callees_of_method(method)}

    def edges(self) -> set:
        cg = self.result.get_ci_call_graph()
        return {
            (e.kind.name, e.call_site.container.signature, e.call_site.index, e.callee.signature)
            for e in cg.edges()
        }


def run_analysis(program, worklist=None, **options) -> Analysis:
    context = AnalysisContext(program, AnalysisOptions(**options))
    kwargs = {} if worklist is None else {"worklist": worklist}
    return Analysis(program, solve(context, **kwargs))


@pytest.fixture
def builder() -> ProgramBuilder:
    return ProgramBuilder()


@pytest.fixture
def analyze():
    return run_analysis


@pytest.fixture
def animals(builder) -> ProgramBuilder:
    """
    Abstract ``Animal.foo()`` with two overrides; ``main`` calls ``a.foo()``
    where ``a`` may be a Dog or a Cat.
    """
    b = builder
    b.cls("Animal", abstract=True, methods=[b.method("foo()", abstract=True)])
    b.cls("Dog", super="Animal", methods=[
        b.method("foo()", body=[b.new("r", "Dog"), b.ret("r")]),
    ])
    b.cls("Cat", super="Animal", methods=[
        b.method("foo()", body=[b.new("r", "Cat"), b.ret("r")]),
    ])
    b.cls("Main", methods=[
        b.method("main()", static=True, body=[
            b.new("d", "Dog"),
            b.new("c", "Cat"),
            b.copy("a", "d"),
            b.copy("a", "c"),
            b.invoke("Animal.foo()", base="a", lhs="x"),
        ]),
    ])
    return b


@pytest.fixture
def container_program(builder) -> ProgramBuilder:
    """
    ``Box`` stores its argument in a field; two boxes hold distinct
    objects, and a static ``id`` method is called from two sites.
    """
    b = builder
    b.cls("Item")
    b.cls("Box", fields=["item"], methods=[
        b.method("set(Item)", params=["v"], body=[b.store("Box.item", "v", base="this")]),
        b.method("get()", body=[b.load("r", "Box.item", base="this"), b.ret("r")]),
    ])
    b.cls("Main", methods=[
        b.method("id(Item)", static=True, params=["p"], body=[b.ret("p")]),
        b.method("main()", static=True, body=[
            b.new("b1", "Box"),
            b.new("b2", "Box"),
            b.new("i1", "Item"),
            b.new("i2", "Item"),
            b.invoke("Box.set(Item)", base="b1", args=["i1"]),
            b.invoke("Box.set(Item)", base="b2", args=["i2"]),
            b.invoke("Box.get()", base="b1", lhs="g1"),
            b.invoke("Box.get()", base="b2", lhs="g2"),
            b.invoke("Main.id(Item)", args=["i1"], lhs="r1"),
            b.invoke("Main.id(Item)", args=["i2"], lhs="r2"),
        ]),
    ])
    return b

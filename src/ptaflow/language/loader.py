"""
JSON program loader.

Builds a ``Program`` (class hierarchy, method IRs and entry method) from a
JSON document of the following shape::

    {
      "entry": "Main.main()",
      "classes": [
        {"name": "Animal", "abstract": true,
         "methods": [{"subsignature": "speak()", "abstract": true}]},
        {"name": "Dog", "super": "Animal",
         "methods": [{"subsignature": "speak()", "body": [...]}]},
        {"name": "Main",
         "methods": [{"subsignature": "main()", "static": true,
                      "params": [], "body": [...]}]}
      ]
    }

Statements are objects keyed by ``op``::

    {"op": "new",    "lhs": "x", "type": "Dog"}
    {"op": "copy",   "lhs": "x", "rhs": "y"}
    {"op": "load",   "lhs": "x", "base": "y", "field": "A.f"}   # omit base for static
    {"op": "store",  "base": "y", "field": "A.f", "rhs": "x"}   # omit base for static
    {"op": "aload",  "lhs": "x", "base": "a", "index": "i"}
    {"op": "astore", "base": "a", "index": "i", "rhs": "x"}
    {"op": "invoke", "kind": "virtual", "method": "A.m(B)",
     "base": "x", "args": ["y"], "lhs": "r"}
    {"op": "return", "value": "r"}

Instance methods implicitly receive a ``this`` variable.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping

from ptaflow.application.errors import ProgramFormatError
from ptaflow.application.program import Program
from . import ir
from .classes import ClassHierarchy, JClass

LOG = logging.getLogger(__name__)


def split_method_ref(text: str):
    """Split ``"pkg.A.m(B,C)"`` into ``("pkg.A", "m(B,C)")``."""
    paren = text.find("(")
    if paren < 0 or not text.endswith(")"):
        raise ProgramFormatError("malformed method reference %r" % text)
    dot = text.rfind(".", 0, paren)
    if dot <= 0:
        raise ProgramFormatError("method reference %r has no class" % text)
    return text[:dot], text[dot + 1:]


def split_field_ref(text: str):
    """Split ``"pkg.A.f"`` into ``("pkg.A", "f")``."""
    cls, sep, name = text.rpartition(".")
    if not sep or not cls or not name:
        raise ProgramFormatError("malformed field reference %r" % text)
    return cls, name


class ProgramLoader(object):
    """
    Two-pass loader: all classes and member declarations are created first,
    then method bodies are translated, so bodies may reference classes
    declared later in the document.
    """

    def __init__(self, data: Mapping[str, Any], name=None):
        if not isinstance(data, Mapping):
            raise ProgramFormatError("program description must be a JSON object")
        self.data = data
        self.name = name
        self.hierarchy = ClassHierarchy()
        self._class_specs: Dict[str, Mapping[str, Any]] = {}
        self._building = set()

    def load(self) -> Program:
        specs = self.data.get("classes")
        if not isinstance(specs, list):
            raise ProgramFormatError("'classes' must be a list")
        for spec in specs:
            if not isinstance(spec, Mapping):
                raise ProgramFormatError("class description must be an object: %r" % (spec,))
            name = spec.get("name")
            if not name:
                raise ProgramFormatError("class without a name: %r" % (spec,))
            if name in self._class_specs:
                raise ProgramFormatError("duplicate class %s" % name)
            self._class_specs[name] = spec

        for name in self._class_specs:
            self._build_class(name)
        for name, spec in self._class_specs.items():
            self._declare_members(self.hierarchy.get_class(name), spec)
        for name, spec in self._class_specs.items():
            self._build_bodies(self.hierarchy.get_class(name), spec)

        entry = self._entry_method()
        LOG.debug(
            "loaded %d classes, entry %r", len(self._class_specs), entry
        )
        return Program(self.hierarchy, entry, self.name)

    # ------------------------------------------------------------- classes
    def _build_class(self, name: str) -> JClass:
        existing = self.hierarchy.get_class(name)
        if existing is not None:
            return existing
        spec = self._class_specs.get(name)
        if spec is None:
            raise ProgramFormatError("unknown class %s" % name)
        if name in self._building:
            raise ProgramFormatError("cyclic inheritance involving %s" % name)
        self._building.add(name)

        superclass = None
        if spec.get("super"):
            superclass = self._build_class(spec["super"])
        interfaces = [self._build_class(i) for i in spec.get("interfaces", ())]

        self._building.discard(name)
        return self.hierarchy.new_class(
            name,
            superclass,
            interfaces,
            is_interface=bool(spec.get("interface", False)),
            is_abstract=bool(spec.get("abstract", False)),
        )

    def _declare_members(self, jclass: JClass, spec):
        for field in spec.get("fields", ()):
            if isinstance(field, str):
                jclass.declare_field(field)
            else:
                jclass.declare_field(field["name"], bool(field.get("static", False)))

        for mspec in spec.get("methods", ()):
            subsig = mspec.get("subsignature")
            if not subsig or "(" not in subsig:
                raise ProgramFormatError(
                    "method of %s has a malformed subsignature: %r" % (jclass.name, subsig)
                )
            abstract = bool(mspec.get("abstract", False)) or (
                jclass.is_interface and "body" not in mspec
            )
            try:
                jclass.declare_method(subsig, bool(mspec.get("static", False)), abstract)
            except ValueError as e:
                raise ProgramFormatError(str(e)) from e

    def _class(self, name: str) -> JClass:
        jclass = self.hierarchy.get_class(name)
        if jclass is None:
            raise ProgramFormatError("reference to unknown class %s" % name)
        return jclass

    # -------------------------------------------------------------- bodies
    def _build_bodies(self, jclass: JClass, spec):
        for mspec in spec.get("methods", ()):
            method = jclass.get_declared_method(mspec["subsignature"])
            if method.is_abstract:
                if mspec.get("body"):
                    raise ProgramFormatError("abstract method %r has a body" % method)
                continue
            method.set_ir(MethodBodyBuilder(self, method, mspec).build())

    def _entry_method(self):
        entry = self.data.get("entry")
        if not entry:
            raise ProgramFormatError("program has no 'entry' method")
        cls_name, subsig = split_method_ref(entry)
        method = self._class(cls_name).get_declared_method(subsig)
        if method is None:
            raise ProgramFormatError("entry method %s not found" % entry)
        return method


class MethodBodyBuilder(object):
    """Translates the statement list of one method into an ``IR``."""

    def __init__(self, loader: ProgramLoader, method, spec):
        self.loader = loader
        self.method = method
        self.spec = spec
        self.vars: Dict[str, ir.Var] = {}

    def var(self, name) -> ir.Var:
        if not isinstance(name, str) or not name:
            raise ProgramFormatError(
                "bad variable name %r in %r" % (name, self.method)
            )
        v = self.vars.get(name)
        if v is None:
            v = ir.Var(name, self.method)
            self.vars[name] = v
        return v

    def opt_var(self, name):
        return None if name is None else self.var(name)

    def field(self, text, is_static):
        cls_name, name = split_field_ref(text)
        return self.loader.hierarchy.resolve_field(
            self.loader._class(cls_name), name, is_static
        )

    def build(self) -> ir.IR:
        this = None if self.method.is_static else self.var("this")
        params = [self.var(p) for p in self.spec.get("params", ())]
        stmts = [self.stmt(s) for s in self.spec.get("body", ())]
        return ir.IR(self.method, params, this, stmts)

    def stmt(self, s) -> ir.Stmt:
        try:
            op = s["op"]
        except (TypeError, KeyError):
            raise ProgramFormatError("statement without 'op' in %r: %r" % (self.method, s))
        builder = getattr(self, "op_" + str(op), None)
        if builder is None:
            raise ProgramFormatError("unknown statement op %r in %r" % (op, self.method))
        try:
            return builder(s)
        except KeyError as e:
            raise ProgramFormatError(
                "statement %r in %r is missing %s" % (s, self.method, e)
            ) from e

    def op_new(self, s):
        return ir.New(self.var(s["lhs"]), self.loader._class(s["type"]))

    def op_copy(self, s):
        return ir.Copy(self.var(s["lhs"]), self.var(s["rhs"]))

    def op_load(self, s):
        base = self.opt_var(s.get("base"))
        return ir.LoadField(self.var(s["lhs"]), self.field(s["field"], base is None), base)

    def op_store(self, s):
        base = self.opt_var(s.get("base"))
        return ir.StoreField(self.field(s["field"], base is None), self.var(s["rhs"]), base)

    def op_aload(self, s):
        return ir.LoadArray(self.var(s["lhs"]), self.var(s["base"]), self.opt_var(s.get("index")))

    def op_astore(self, s):
        return ir.StoreArray(self.var(s["base"]), self.var(s["rhs"]), self.opt_var(s.get("index")))

    def op_invoke(self, s):
        base = self.opt_var(s.get("base"))
        kind_name = s.get("kind", "static" if base is None else "virtual")
        try:
            kind = ir.InvokeKind(kind_name)
        except ValueError:
            raise ProgramFormatError("unknown invoke kind %r" % kind_name)
        if (kind is ir.InvokeKind.STATIC) != (base is None):
            raise ProgramFormatError(
                "%s call in %r must %shave a base" % (
                    kind_name, self.method, "" if base is None else "not "
                )
            )
        cls_name, subsig = split_method_ref(s["method"])
        ref = ir.MethodRef(self.loader._class(cls_name), subsig)
        args = [self.var(a) for a in s.get("args", ())]
        return ir.Invoke(kind, ref, args, base, self.opt_var(s.get("lhs")))

    def op_return(self, s):
        return ir.Return(self.opt_var(s.get("value")))


def load_program(data: Mapping[str, Any], name=None) -> Program:
    """Build a Program from an already-decoded JSON document."""
    return ProgramLoader(data, name).load()


def load_program_file(path) -> Program:
    """
    Read and build a Program from a JSON file.

    Raises:
        ProgramFormatError: If the file is not valid JSON or not a valid
            program description.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ProgramFormatError("%s: invalid JSON: %s" % (path, e)) from e
    return load_program(data, name=str(path))

"""
Class hierarchy model for the analyzed program.

This module provides the in-memory storage the analysis queries for
virtual dispatch: classes and interfaces (``JClass``), their declared
methods (``JMethod``) and fields (``JField``), and the ``ClassHierarchy``
that links them together.

Methods are identified by a *subsignature*, the method name followed by
its parameter types, e.g. ``"foo(A,int)"``. Two methods override each other
when they share a subsignature.

**Query interface used by the analysis:**
- ``declared_method(cls, subsig)``
- ``superclass_of(cls)``
- ``direct_subclasses_of(cls)``
- ``direct_subinterfaces_of(iface)``
- ``direct_implementors_of(iface)``
- ``is_interface(cls)`` / ``is_abstract(method)``
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional


class JField(object):
    """
    A field declared by a class.

    Fields are created by the class hierarchy and live as long as it does;
    identity is object identity.

    Attributes:
        declaring_class: JClass declaring the field
        name: Field name
        is_static: Whether the field is a static field
    """
    __slots__ = "declaring_class", "name", "is_static"

    def __init__(self, declaring_class: "JClass", name: str, is_static: bool = False):
        self.declaring_class = declaring_class
        self.name = name
        self.is_static = is_static

    def __repr__(self):
        return "%s.%s" % (self.declaring_class.name, self.name)


class JMethod(object):
    """
    A method declared by a class.

    Abstract methods have no IR. The IR of concrete methods is attached by
    the program loader (or by hand) through ``set_ir``.

    Attributes:
        declaring_class: JClass declaring the method
        subsignature: Name plus parameter types, e.g. ``"foo(A)"``
        is_static: Whether the method is static
        is_abstract: Whether the method is abstract (has no body)
        ir: IR of the method body, or None for abstract methods
    """
    __slots__ = "declaring_class", "subsignature", "is_static", "is_abstract", "ir"

    def __init__(
        self,
        declaring_class: "JClass",
        subsignature: str,
        is_static: bool = False,
        is_abstract: bool = False,
    ):
        self.declaring_class = declaring_class
        self.subsignature = subsignature
        self.is_static = is_static
        self.is_abstract = is_abstract
        self.ir = None

    @property
    def name(self) -> str:
        return self.subsignature.split("(", 1)[0]

    @property
    def signature(self) -> str:
        return "%s.%s" % (self.declaring_class.name, self.subsignature)

    def set_ir(self, ir) -> None:
        self.ir = ir

    def get_ir(self):
        return self.ir

    def __repr__(self):
        return "<%s: %s>" % (self.declaring_class.name, self.subsignature)


class JClass(object):
    """
    A class or interface.

    Attributes:
        name: Fully-qualified class name
        superclass: Direct superclass, or None for a root class
        interfaces: Directly implemented (or, for interfaces, extended)
            interfaces
        is_interface: Whether this type is an interface
        is_abstract: Whether this class is abstract
    """
    __slots__ = (
        "name",
        "superclass",
        "interfaces",
        "is_interface",
        "is_abstract",
        "_methods",
        "_fields",
    )

    def __init__(
        self,
        name: str,
        superclass: Optional["JClass"] = None,
        interfaces: Iterable["JClass"] = (),
        is_interface: bool = False,
        is_abstract: bool = False,
    ):
        self.name = name
        self.superclass = superclass
        self.interfaces = list(interfaces)
        self.is_interface = is_interface
        self.is_abstract = is_abstract or is_interface
        self._methods: Dict[str, JMethod] = {}
        self._fields: Dict[str, JField] = {}

    def declare_method(self, subsignature: str, is_static=False, is_abstract=False) -> JMethod:
        if subsignature in self._methods:
            raise ValueError("%s already declares %s" % (self.name, subsignature))
        method = JMethod(self, subsignature, is_static, is_abstract)
        self._methods[subsignature] = method
        return method

    def declare_field(self, name: str, is_static=False) -> JField:
        field = self._fields.get(name)
        if field is None:
            field = JField(self, name, is_static)
            self._fields[name] = field
        return field

    def get_declared_method(self, subsignature: str) -> Optional[JMethod]:
        return self._methods.get(subsignature)

    def get_declared_field(self, name: str) -> Optional[JField]:
        return self._fields.get(name)

    def get_declared_methods(self) -> List[JMethod]:
        return list(self._methods.values())

    def __repr__(self):
        return self.name


class ClassHierarchy(object):
    """
    Arena of classes indexed by name, plus the reverse subtype relations.

    Classes must be added after their superclass and interfaces so that the
    reverse relations can be recorded on insertion.
    """

    def __init__(self) -> None:
        self._classes: Dict[str, JClass] = {}
        self._subclasses: Dict[JClass, List[JClass]] = defaultdict(list)
        self._subinterfaces: Dict[JClass, List[JClass]] = defaultdict(list)
        self._implementors: Dict[JClass, List[JClass]] = defaultdict(list)

    # ------------------------------------------------------------ building
    def add_class(self, jclass: JClass) -> JClass:
        """
        Register a class and link it to its supertypes.

        Raises:
            ValueError: If a class with the same name is already registered.
        """
        if jclass.name in self._classes:
            raise ValueError("duplicate class %s" % jclass.name)
        self._classes[jclass.name] = jclass

        if jclass.superclass is not None:
            self._subclasses[jclass.superclass].append(jclass)
        for iface in jclass.interfaces:
            if jclass.is_interface:
                self._subinterfaces[iface].append(jclass)
            else:
                self._implementors[iface].append(jclass)
        return jclass

    def new_class(self, name, superclass=None, interfaces=(), is_interface=False,
                  is_abstract=False) -> JClass:
        """Create and register a class in one step."""
        return self.add_class(
            JClass(name, superclass, interfaces, is_interface, is_abstract)
        )

    # ------------------------------------------------------------- queries
    def get_class(self, name: str) -> Optional[JClass]:
        return self._classes.get(name)

    def contains(self, jclass: JClass) -> bool:
        return self._classes.get(jclass.name) is jclass

    def all_classes(self) -> List[JClass]:
        return list(self._classes.values())

    def all_methods(self) -> List[JMethod]:
        return [m for c in self._classes.values() for m in c.get_declared_methods()]

    def declared_method(self, jclass: JClass, subsignature: str) -> Optional[JMethod]:
        return jclass.get_declared_method(subsignature)

    def superclass_of(self, jclass: JClass) -> Optional[JClass]:
        return jclass.superclass

    def direct_subclasses_of(self, jclass: JClass) -> List[JClass]:
        return list(self._subclasses.get(jclass, ()))

    def direct_subinterfaces_of(self, iface: JClass) -> List[JClass]:
        return list(self._subinterfaces.get(iface, ()))

    def direct_implementors_of(self, iface: JClass) -> List[JClass]:
        return list(self._implementors.get(iface, ()))

    def is_interface(self, jclass: JClass) -> bool:
        return jclass.is_interface

    def is_abstract(self, method: JMethod) -> bool:
        return method.is_abstract

    def is_subclass(self, superclass: JClass, subclass: JClass) -> bool:
        """Return True if ``subclass`` is ``superclass`` or a subtype of it."""
        pending = [subclass]
        seen = set()
        while pending:
            c = pending.pop()
            if c is superclass:
                return True
            if c in seen:
                continue
            seen.add(c)
            if c.superclass is not None:
                pending.append(c.superclass)
            pending.extend(c.interfaces)
        return False

    def declares_method(self, jclass: JClass, subsignature: str, subtypes: bool = False) -> bool:
        """
        Return True if ``jclass`` or one of its supertypes declares
        ``subsignature``; with ``subtypes``, subtypes of ``jclass`` count too.
        """
        pending = [jclass]
        seen = set()
        while pending:
            c = pending.pop()
            if c in seen:
                continue
            seen.add(c)
            if c.get_declared_method(subsignature) is not None:
                return True
            if c.superclass is not None:
                pending.append(c.superclass)
            pending.extend(c.interfaces)
        if subtypes:
            pending = [jclass]
            while pending:
                c = pending.pop()
                for sub in (self.direct_subclasses_of(c) + self.direct_subinterfaces_of(c)
                            + self.direct_implementors_of(c)):
                    if sub in seen:
                        continue
                    seen.add(sub)
                    if sub.get_declared_method(subsignature) is not None:
                        return True
                    pending.append(sub)
        return False

    def resolve_field(self, jclass: JClass, name: str, is_static: bool = False) -> JField:
        """
        Resolve a field reference ``jclass.name``.

        The field declared nearest to ``jclass`` along the superclass chain
        is returned. A field that no class declares is implicitly declared
        on ``jclass`` so that every reference to it resolves to one object.
        """
        c = jclass
        while c is not None:
            field = c.get_declared_field(name)
            if field is not None:
                return field
            c = c.superclass
        return jclass.declare_field(name, is_static)

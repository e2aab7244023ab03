"""Heap abstraction for the points-to analysis.

A heap model maps allocation sites to abstract objects. The abstraction is
a policy: ``AllocationSiteBasedModel`` gives every ``New`` statement its own
object, ``TypeBasedHeapModel`` merges all allocations of one type. Either
way the model memoizes, so the same site always yields the same object.

Objects that do not come from an allocation site (e.g. taint objects
created by the taint plugin) are *mock objects*, identified by a
descriptor, an arbitrary allocation key and a type.
"""

from __future__ import annotations

from typing import Dict, List

from ptaflow.application.errors import ConfigurationError


class Obj(object):
    """Base class of abstract objects.

    Objects are immutable once created and compared by identity; the heap
    model that created them guarantees uniqueness.
    """
    __slots__ = ()

    def get_type(self):
        """JClass of the object."""
        raise NotImplementedError

    def get_allocation(self):
        """The allocation site (or mock allocation key) of the object."""
        raise NotImplementedError

    def get_container_method(self):
        """JMethod that allocated the object, or None if unknown."""
        return None

    def get_container_type(self):
        """Class declaring the allocating method, used by type sensitivity."""
        method = self.get_container_method()
        if method is not None:
            return method.declaring_class
        return self.get_type()


class NewObj(Obj):
    """Object allocated by one ``New`` statement."""
    __slots__ = ("alloc",)

    def __init__(self, alloc):
        self.alloc = alloc

    def get_type(self):
        return self.alloc.type

    def get_allocation(self):
        return self.alloc

    def get_container_method(self):
        return self.alloc.container

    def __repr__(self):
        container = self.alloc.container
        where = container.signature if container is not None else "?"
        return "NewObj{%s@%d: new %s}" % (where, self.alloc.index, self.alloc.type.name)


class MergedObj(Obj):
    """Object standing for every allocation of one type."""
    __slots__ = ("type",)

    def __init__(self, type):
        self.type = type

    def get_type(self):
        return self.type

    def get_allocation(self):
        return self.type

    def __repr__(self):
        return "MergedObj{%s}" % self.type.name


class MockObj(Obj):
    """Object introduced by the analysis itself rather than by the program."""
    __slots__ = "descriptor", "alloc", "type", "container"

    def __init__(self, descriptor, alloc, type, container=None):
        self.descriptor = descriptor
        self.alloc = alloc
        self.type = type
        self.container = container

    def get_type(self):
        return self.type

    def get_allocation(self):
        return self.alloc

    def get_container_method(self):
        return self.container

    def __repr__(self):
        return "MockObj{%s: %r, %s}" % (self.descriptor, self.alloc, self.type.name)


class HeapModel(object):
    """Base heap model; subclasses choose the key objects are merged by."""

    def __init__(self) -> None:
        self._objs: Dict[object, Obj] = {}
        self._mocks: Dict[tuple, MockObj] = {}

    def _key(self, new_stmt):
        raise NotImplementedError

    def _create(self, new_stmt) -> Obj:
        raise NotImplementedError

    def get_obj(self, new_stmt) -> Obj:
        """Return the abstract object allocated by ``new_stmt``."""
        key = self._key(new_stmt)
        obj = self._objs.get(key)
        if obj is None:
            obj = self._create(new_stmt)
            self._objs[key] = obj
        return obj

    def get_mock_obj(self, descriptor, alloc, type, container=None) -> MockObj:
        key = (descriptor, alloc, type)
        obj = self._mocks.get(key)
        if obj is None:
            obj = MockObj(descriptor, alloc, type, container)
            self._mocks[key] = obj
        return obj

    def get_objects(self) -> List[Obj]:
        return list(self._objs.values()) + list(self._mocks.values())


class AllocationSiteBasedModel(HeapModel):
    """One abstract object per allocation site."""

    def _key(self, new_stmt):
        return new_stmt

    def _create(self, new_stmt):
        return NewObj(new_stmt)


class TypeBasedHeapModel(HeapModel):
    """One abstract object per allocated type."""

    def _key(self, new_stmt):
        return new_stmt.type

    def _create(self, new_stmt):
        return MergedObj(new_stmt.type)


HEAP_MODELS = {
    "allocation-site": AllocationSiteBasedModel,
    "type": TypeBasedHeapModel,
}


def make_heap_model(name: str) -> HeapModel:
    try:
        return HEAP_MODELS[name]()
    except KeyError:
        raise ConfigurationError("unknown heap model %r" % name) from None

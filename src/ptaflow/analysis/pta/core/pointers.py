"""
Pointers, points-to sets and context-sensitive wrappers.

A pointer is any location that can hold references:

- ``VarPtr``: a local variable (CI analysis)
- ``CSVar``: a local variable under a calling context (CS analysis)
- ``StaticField``: a static field
- ``InstanceField``: a field of one abstract object
- ``ArrayIndex``: the (collapsed) elements of one abstract array object

Pointers compare structurally and each owns exactly one ``PointsToSet``.
In the CS analysis the abstract objects stored in points-to sets are
``CSObj`` values, and instance fields/array indexes are keyed by them.
"""

from ptaflow.util.canonical import CanonicalObject


class PointsToSet(object):
    """
    A growing set of abstract objects.

    Iteration follows insertion order, which keeps analysis output stable
    from run to run.
    """
    __slots__ = ("_objs",)

    def __init__(self, objs=()):
        self._objs = dict.fromkeys(objs)

    def add(self, obj):
        """Add ``obj``; return True if it was not already present."""
        if obj in self._objs:
            return False
        self._objs[obj] = None
        return True

    def add_all(self, other):
        """Add every object of ``other`` and return the newly added ones."""
        diff = PointsToSet()
        for obj in other:
            if self.add(obj):
                diff._objs[obj] = None
        return diff

    def contains(self, obj):
        return obj in self._objs

    def objects(self):
        return list(self._objs)

    def is_empty(self):
        return not self._objs

    def copy(self):
        return PointsToSet(self._objs)

    def __contains__(self, obj):
        return obj in self._objs

    def __iter__(self):
        return iter(self._objs)

    def __len__(self):
        return len(self._objs)

    def __bool__(self):
        return bool(self._objs)

    def __eq__(self, other):
        if isinstance(other, PointsToSet):
            return self._objs.keys() == other._objs.keys()
        return NotImplemented

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None

    def __repr__(self):
        return "{%s}" % ", ".join(repr(o) for o in self._objs)


class Pointer(CanonicalObject):
    """Base class of pointers; ``pts`` is not part of the identity."""
    __slots__ = ("pts",)

    def __init__(self, *key):
        self.setCanonical(*key)
        self.pts = PointsToSet()

    def get_points_to_set(self):
        return self.pts


class VarPtr(Pointer):
    __slots__ = ()

    def __init__(self, var):
        Pointer.__init__(self, var)

    @property
    def var(self):
        return self.canonical[0]

    def __repr__(self):
        return "VarPtr{%r}" % (self.var,)


class CSVar(Pointer):
    __slots__ = ()

    def __init__(self, context, var):
        Pointer.__init__(self, context, var)

    @property
    def context(self):
        return self.canonical[0]

    @property
    def var(self):
        return self.canonical[1]

    def __repr__(self):
        return "%r:%r" % (self.context, self.var)


class StaticField(Pointer):
    __slots__ = ()

    def __init__(self, field):
        Pointer.__init__(self, field)

    @property
    def field(self):
        return self.canonical[0]

    def __repr__(self):
        return "StaticField{%r}" % (self.field,)


class InstanceField(Pointer):
    __slots__ = ()

    def __init__(self, base, field):
        Pointer.__init__(self, base, field)

    @property
    def base(self):
        return self.canonical[0]

    @property
    def field(self):
        return self.canonical[1]

    def __repr__(self):
        return "InstanceField{%r.%s}" % (self.base, self.field.name)


class ArrayIndex(Pointer):
    __slots__ = ()

    def __init__(self, base):
        Pointer.__init__(self, base)

    @property
    def base(self):
        return self.canonical[0]

    def __repr__(self):
        return "ArrayIndex{%r[*]}" % (self.base,)


class CSObj(CanonicalObject):
    """An abstract object under a heap context."""
    __slots__ = ()

    def __init__(self, context, obj):
        self.setCanonical(context, obj)

    @property
    def context(self):
        return self.canonical[0]

    @property
    def obj(self):
        return self.canonical[1]

    def get_type(self):
        return self.obj.get_type()

    def __repr__(self):
        return "%r:%r" % (self.context, self.obj)


class CSMethod(CanonicalObject):
    """A method under a calling context."""
    __slots__ = ()

    def __init__(self, context, method):
        self.setCanonical(context, method)

    @property
    def context(self):
        return self.canonical[0]

    @property
    def method(self):
        return self.canonical[1]

    def __repr__(self):
        return "%r:%r" % (self.context, self.method)


class CSCallSite(CanonicalObject):
    """
    A call site under the calling context of its containing method.

    ``container`` is the ``CSMethod`` the call site belongs to; it is
    determined by the context and the call site, so it is not part of the
    identity.
    """
    __slots__ = ("container",)

    def __init__(self, context, call_site, container=None):
        self.setCanonical(context, call_site)
        self.container = container

    @property
    def context(self):
        return self.canonical[0]

    @property
    def call_site(self):
        return self.canonical[1]

    def __repr__(self):
        return "%r:%r" % (self.context, self.call_site)

"""
Canonical objects for the points-to analysis.

Analysis elements (contexts, pointers, context-sensitive wrappers) are
compared structurally: two elements are equal when they have the same type
and the same canonical values. Managers memoize them so that in practice one
instance exists per key, but structural equality keeps sets and dictionaries
well behaved even when a second instance is built by hand (e.g. in tests).
"""


class CanonicalObject(object):
    """
    Base class for objects that are compared by their canonical values.

    Subclasses call ``setCanonical`` with the values that define their
    identity. The hash is computed once, so the canonical values must be
    immutable.

    Example:
        >>> class Point(CanonicalObject):
        ...     pass
        >>> Point(1, 2) == Point(1, 2)
        True
        >>> Point(1, 2) is Point(1, 2)
        False
    """
    __slots__ = "canonical", "hash", "__weakref__"

    def __init__(self, *args):
        self.setCanonical(*args)

    def setCanonical(self, *args):
        """
        Set the values that define this object's identity.

        Args:
            *args: Hashable values
        """
        self.canonical = args
        self.hash = id(type(self)) ^ hash(args)

    def __hash__(self):
        return self.hash

    def __eq__(self, other):
        return type(self) == type(other) and self.canonical == other.canonical

    def __ne__(self, other):
        return not self == other

    def __repr__(self):
        canonicalStr = ", ".join([repr(obj) for obj in self.canonical])
        return "%s(%s)" % (type(self).__name__, canonicalStr)


class Sentinel(object):
    """
    A named marker value that is only equal to itself.

    Used for special argument positions (``base``, ``result``) in the taint
    configuration.
    """
    __slots__ = "name", "__weakref__"

    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return self.name

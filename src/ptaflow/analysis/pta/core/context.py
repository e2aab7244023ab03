"""
Calling and heap contexts.

A context is an immutable, k-limited sequence of elements (call sites,
abstract objects or types, depending on the selector that produced it).
The context-insensitive analysis uses the single empty context.
"""

from ptaflow.util.canonical import CanonicalObject


class Context(CanonicalObject):
    """
    An immutable sequence of context elements.

    Contexts are compared structurally, so two contexts built from the same
    elements are interchangeable as dictionary keys.
    """
    __slots__ = ()

    def __init__(self, *elements):
        self.setCanonical(*elements)

    @property
    def elements(self):
        return self.canonical

    def get_length(self):
        return len(self.canonical)

    def get_element(self, i):
        return self.canonical[i]

    def append(self, element, limit):
        """
        Return this context extended by ``element``, keeping only the last
        ``limit`` elements.
        """
        if limit <= 0:
            return EMPTY_CONTEXT
        return Context(*(self.canonical + (element,))[-limit:])

    def truncate(self, limit):
        """Return a context made of the last ``limit`` elements."""
        if limit <= 0:
            return EMPTY_CONTEXT
        if len(self.canonical) <= limit:
            return self
        return Context(*self.canonical[-limit:])

    def __len__(self):
        return len(self.canonical)

    def __repr__(self):
        return "[%s]" % ", ".join(repr(e) for e in self.canonical)


EMPTY_CONTEXT = Context()

"""Call edges and call kinds."""

import enum

from ptaflow.language.ir import InvokeKind
from ptaflow.util.canonical import CanonicalObject


class CallKind(enum.Enum):
    STATIC = "static"
    SPECIAL = "special"
    VIRTUAL = "virtual"
    INTERFACE = "interface"
    DYNAMIC = "dynamic"
    OTHER = "other"


_KINDS = {
    InvokeKind.STATIC: CallKind.STATIC,
    InvokeKind.SPECIAL: CallKind.SPECIAL,
    InvokeKind.VIRTUAL: CallKind.VIRTUAL,
    InvokeKind.INTERFACE: CallKind.INTERFACE,
    InvokeKind.DYNAMIC: CallKind.DYNAMIC,
}


def call_kind_of(invoke):
    """Return the ``CallKind`` matching the invocation form of ``invoke``."""
    return _KINDS.get(invoke.kind, CallKind.OTHER)


class Edge(CanonicalObject):
    """
    A call edge ``call_site -> callee``.

    In the context-sensitive call graph the call site is a ``CSCallSite``
    and the callee a ``CSMethod``; either way ``call_site.container`` is
    the caller.
    """
    __slots__ = ()

    def __init__(self, kind, call_site, callee):
        self.setCanonical(kind, call_site, callee)

    @property
    def kind(self):
        return self.canonical[0]

    @property
    def call_site(self):
        return self.canonical[1]

    @property
    def callee(self):
        return self.canonical[2]

    @property
    def caller(self):
        return self.call_site.container

    def __repr__(self):
        return "[%s]%r -> %r" % (self.kind.name, self.call_site, self.callee)

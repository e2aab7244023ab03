"""
The solver worklist.

One queue carries two kinds of entries: ``PointerEntry`` (propagate a set
of objects to a pointer) and ``MethodEntry`` (process the statements of a
newly reachable method). The fixpoint does not depend on the order in which
entries are taken; ``WorkList`` is FIFO, subclasses may override ``poll``.
"""

from collections import deque, namedtuple

PointerEntry = namedtuple("PointerEntry", ["pointer", "pts"])
MethodEntry = namedtuple("MethodEntry", ["method"])


class WorkList(object):
    def __init__(self):
        self.entries = deque()

    def add_pointer_entry(self, pointer, pts):
        self.entries.append(PointerEntry(pointer, pts))

    def add_method_entry(self, method):
        self.entries.append(MethodEntry(method))

    def poll(self):
        """Remove and return the next entry."""
        return self.entries.popleft()

    def is_empty(self):
        return not self.entries

    def __len__(self):
        return len(self.entries)

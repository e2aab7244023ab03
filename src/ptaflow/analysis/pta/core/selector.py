"""
Context selectors.

A context selector decides which context a callee is analyzed under and
which heap context a newly allocated object receives. All selectors here
are k-limited: a method context keeps at most ``k`` elements and a heap
context at most ``k - 1``.

**Variants:**
- ``ContextInsensitiveSelector`` (``"ci"``): always the empty context
- ``KCallSelector`` (``"<k>-call"``): the last k call sites
- ``KObjSelector`` (``"<k>-obj"``): the last k receiver objects
- ``KTypeSelector`` (``"<k>-type"``): the last k types containing the
  allocation sites of the receiver objects
"""

import re

from ptaflow.application.errors import ConfigurationError
from .context import EMPTY_CONTEXT


class ContextSelector(object):
    """Interface of context selectors."""

    def get_empty_context(self):
        return EMPTY_CONTEXT

    def select_context(self, cs_call_site, callee, recv=None):
        """
        Select the context of ``callee`` when called from ``cs_call_site``.

        Args:
            cs_call_site: CSCallSite of the call
            callee: JMethod being called
            recv: CSObj of the receiver, None for static calls
        """
        raise NotImplementedError

    def select_heap_context(self, cs_method, obj):
        """Select the heap context of ``obj`` allocated in ``cs_method``."""
        raise NotImplementedError


class ContextInsensitiveSelector(ContextSelector):
    def select_context(self, cs_call_site, callee, recv=None):
        return EMPTY_CONTEXT

    def select_heap_context(self, cs_method, obj):
        return EMPTY_CONTEXT

    def __repr__(self):
        return "ci"


class KLimitingSelector(ContextSelector):
    """Base of the k-limited selectors."""
    suffix = None

    def __init__(self, k):
        if k < 1:
            raise ConfigurationError("context limit must be positive, got %d" % k)
        self.k = k
        self.hk = k - 1

    def select_heap_context(self, cs_method, obj):
        return cs_method.context.truncate(self.hk)

    def __repr__(self):
        return "%d-%s" % (self.k, self.suffix)


class KCallSelector(KLimitingSelector):
    suffix = "call"

    def select_context(self, cs_call_site, callee, recv=None):
        return cs_call_site.context.append(cs_call_site.call_site, self.k)


class KObjSelector(KLimitingSelector):
    suffix = "obj"

    def select_context(self, cs_call_site, callee, recv=None):
        if recv is None:
            return cs_call_site.context
        return recv.context.append(recv.obj, self.k)


class KTypeSelector(KLimitingSelector):
    suffix = "type"

    def select_context(self, cs_call_site, callee, recv=None):
        if recv is None:
            return cs_call_site.context
        return recv.context.append(recv.obj.get_container_type(), self.k)


SELECTORS = {
    "call": KCallSelector,
    "obj": KObjSelector,
    "type": KTypeSelector,
}

_SELECTOR_RE = re.compile(r"^(\d+)-(call|obj|type)$")


def make_selector(name):
    """
    Build a selector from its name: ``"ci"``, ``"1-call"``, ``"2-obj"``,
    ``"2-type"`` and so on.

    Raises:
        ConfigurationError: If the name is not recognized.
    """
    if name == "ci":
        return ContextInsensitiveSelector()
    match = _SELECTOR_RE.match(name or "")
    if match is None:
        raise ConfigurationError(
            "unknown context sensitivity %r (expected ci, <k>-call, <k>-obj or <k>-type)"
            % (name,)
        )
    return SELECTORS[match.group(2)](int(match.group(1)))

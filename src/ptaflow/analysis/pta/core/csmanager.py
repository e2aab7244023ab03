"""
Pointer managers.

Each manager memoizes the analysis elements it creates, so that one pointer
(and therefore one points-to set) exists per key. ``PointerManager`` serves
the context-insensitive solver; ``CSManager`` serves the context-sensitive
one and additionally owns the context-sensitive objects, methods and call
sites.
"""

from .pointers import (
    ArrayIndex,
    CSCallSite,
    CSMethod,
    CSObj,
    CSVar,
    InstanceField,
    StaticField,
    VarPtr,
)


class _Memo(object):
    def __init__(self):
        self._elements = {}

    def _get(self, cls, *key):
        k = (cls,) + key
        element = self._elements.get(k)
        if element is None:
            element = cls(*key)
            self._elements[k] = element
        return element

    def find(self, cls, *key):
        """Return the existing element of ``cls`` for ``key`` without creating one."""
        return self._elements.get((cls,) + key)

    def _all(self, cls):
        return [e for k, e in self._elements.items() if k[0] is cls]


class PointerManager(_Memo):
    def get_var_ptr(self, var):
        return self._get(VarPtr, var)

    def get_static_field(self, field):
        return self._get(StaticField, field)

    def get_instance_field(self, base, field):
        return self._get(InstanceField, base, field)

    def get_array_index(self, base):
        return self._get(ArrayIndex, base)

    def get_vars(self):
        return self._all(VarPtr)

    def get_static_fields(self):
        return self._all(StaticField)

    def get_instance_fields(self):
        return self._all(InstanceField)

    def get_array_indexes(self):
        return self._all(ArrayIndex)


class CSManager(PointerManager):
    def get_cs_var(self, context, var):
        return self._get(CSVar, context, var)

    def get_cs_obj(self, context, obj):
        return self._get(CSObj, context, obj)

    def get_cs_method(self, context, method):
        return self._get(CSMethod, context, method)

    def get_cs_call_site(self, context, call_site):
        key = (CSCallSite, context, call_site)
        cs_call_site = self._elements.get(key)
        if cs_call_site is None:
            container = self.get_cs_method(context, call_site.container)
            cs_call_site = CSCallSite(context, call_site, container)
            self._elements[key] = cs_call_site
        return cs_call_site

    def get_cs_vars(self):
        return self._all(CSVar)

    def get_cs_vars_of(self, var):
        return [v for v in self._all(CSVar) if v.var is var]

    def get_objects(self):
        return self._all(CSObj)

    def get_cs_methods(self):
        return self._all(CSMethod)

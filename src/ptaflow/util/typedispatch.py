"""Type-based dispatch for statement processing.

A ``TypeDispatcher`` subclass declares one handler per node type with the
``@dispatch`` decorator. Calling the dispatcher with a node selects the
handler registered for the node's type (searching the MRO once per type and
caching the answer). The default handler raises ``TypeDispatchError``, so a
statement kind without a handler is reported instead of silently ignored.
"""

__all__ = [
    "TypeDispatcher",
    "defaultdispatch",
    "dispatch",
    "TypeDispatchError",
    "TypeDispatchDeclarationError",
]

import inspect


class TypeDispatchError(Exception):
    """Raised when a dispatcher is called with a type it does not handle."""
    pass


class TypeDispatchDeclarationError(Exception):
    """Raised at class creation time for malformed dispatch declarations."""
    pass


def _flattenTypes(types, result):
    for child in types:
        if isinstance(child, (list, tuple)):
            _flattenTypes(child, result)
        elif isinstance(child, type):
            result.append(child)
        else:
            raise TypeDispatchDeclarationError(
                "Expected a type, got %r instead." % (child,)
            )
    return result


def dispatch(*types):
    """Mark a method as the handler for the given types.

    Args:
        *types: Types (or nested lists/tuples of types) handled by the method.
    """
    def decorate(f):
        f.__dispatch__ = tuple(_flattenTypes(types, []))
        return f

    return decorate


def defaultdispatch(f):
    """Mark a method as the handler for types without a specific handler."""
    f.__dispatch__ = (None,)
    return f


def exceptionDefault(self, node, *args):
    raise TypeDispatchError("%s cannot handle %r" % (type(self).__name__, node))


class typedispatcher(type):
    """Metaclass that collects ``@dispatch`` handlers into a lookup table.

    Handlers declared on base classes are inherited unless the subclass
    declares its own handler for the same type.
    """

    def __new__(mcs, name, bases, d):
        lut = {}

        for k, v in d.items():
            types = getattr(v, "__dispatch__", None)
            if types is None:
                continue
            for t in types:
                if t in lut:
                    raise TypeDispatchDeclarationError(
                        "%s declares multiple handlers for %r" % (name, t)
                    )
                lut[t] = v

        for base in bases:
            for ancestor in inspect.getmro(base):
                for t, handler in getattr(ancestor, "__typeDispatchTable__", {}).items():
                    lut.setdefault(t, handler)

        if None not in lut:
            raise TypeDispatchDeclarationError("%s has no default dispatch" % (name,))

        d["__typeDispatchTable__"] = lut
        return type.__new__(mcs, name, bases, d)


class TypeDispatcher(object, metaclass=typedispatcher):
    """
    Base class for dispatching on the runtime type of the first argument.

    Example:
        >>> class Describe(TypeDispatcher):
        ...     @dispatch(int)
        ...     def visitInt(self, node):
        ...         return "integer"
        >>> Describe()(42)
        'integer'

    Calling ``Describe()("x")`` raises ``TypeDispatchError``.
    """
    exceptionDefault = defaultdispatch(exceptionDefault)

    def __call__(self, node, *args):
        t = type(node)
        table = self.__typeDispatchTable__
        func = table.get(t)

        if func is None:
            for supercls in t.mro():
                func = table.get(supercls)
                if func is not None:
                    break
            else:
                func = table[None]
            table[t] = func

        return func(self, node, *args)

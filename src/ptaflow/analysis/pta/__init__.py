"""
Points-to analysis.

``solve`` picks the solver variant from the options of an
``AnalysisContext``: the context-insensitive solver for ``cs="ci"`` without
taint configuration, the context-sensitive solver otherwise.

**Usage:**
```python
from ptaflow.analysis.pta import run_pta
from ptaflow.application import AnalysisOptions

result = run_pta(program, AnalysisOptions(cs="1-call"))
for var in result.get_vars():
    print(var, result.get_points_to_set(var))
```
"""

from ptaflow.application.context import AnalysisContext
from .ci.solver import CISolver
from .cs.solver import CSSolver
from .result import CSPointerAnalysisResult, PointerAnalysisResult


def make_solver(context, **kwargs):
    """Create the solver matching ``context.options``."""
    if context.options.is_context_sensitive:
        return CSSolver(context, **kwargs)
    return CISolver(context, **kwargs)


def solve(context, **kwargs):
    """Run the points-to analysis described by ``context`` to its fixpoint."""
    return make_solver(context, **kwargs).solve()


def run_pta(program, options=None, **kwargs):
    """Analyze ``program`` with ``options`` and return the result."""
    return solve(AnalysisContext(program, options), **kwargs)


__all__ = [
    "CISolver",
    "CSSolver",
    "PointerAnalysisResult",
    "CSPointerAnalysisResult",
    "make_solver",
    "run_pta",
    "solve",
]

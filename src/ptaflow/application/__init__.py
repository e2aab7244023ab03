"""
ptaflow application layer.

**Core Components:**

1. **Program Representation** (`program.py`): `Program`, the class
   hierarchy plus the entry method.
2. **Options** (`options.py`): `AnalysisOptions`, the knobs of a run.
3. **Context Management** (`context.py`): `AnalysisContext`, the explicit
   world (hierarchy, entry, heap model, options) passed to solvers.
4. **Error Handling** (`errors.py`): exception classes.

**Usage:**
```python
from ptaflow.application import AnalysisContext, AnalysisOptions
from ptaflow.language import load_program_file
from ptaflow.analysis.pta import solve

program = load_program_file("program.json")
context = AnalysisContext(program, AnalysisOptions(cs="2-obj"))
result = solve(context)
```
"""

from .program import Program
from .options import AnalysisOptions
from .errors import (
    AnalysisError,
    ConfigurationError,
    InternalError,
    ProgramFormatError,
)
from .context import AnalysisContext

__all__ = [
    "Program",
    "AnalysisOptions",
    "AnalysisContext",
    "AnalysisError",
    "ConfigurationError",
    "InternalError",
    "ProgramFormatError",
]

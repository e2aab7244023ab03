"""
Analysis options.

``AnalysisOptions`` collects the knobs of a points-to analysis run. Options
are plain values so they can be built from CLI arguments, from a dictionary,
or directly in code; they are interpreted (and validated) when the
``AnalysisContext`` creates the heap model and the solver creates the
context selector.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from .errors import ConfigurationError

HEAP_MODELS = ("allocation-site", "type")


@dataclass
class AnalysisOptions:
    """
    Options for one analysis run.

    Attributes:
        cs: Context-sensitivity variant, ``"ci"`` or ``"<k>-call"``,
            ``"<k>-obj"``, ``"<k>-type"``
        heap_model: Heap abstraction, one of ``HEAP_MODELS``
        taint_config: Path to a taint configuration (CS analysis only)
    """
    cs: str = "ci"
    heap_model: str = "allocation-site"
    taint_config: Optional[str] = None

    def __post_init__(self):
        if self.heap_model not in HEAP_MODELS:
            raise ConfigurationError(
                "unknown heap model %r (expected one of %s)"
                % (self.heap_model, ", ".join(HEAP_MODELS))
            )

    @property
    def is_context_sensitive(self) -> bool:
        return self.cs != "ci" or self.taint_config is not None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnalysisOptions":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(
                "unknown analysis options: %s" % ", ".join(sorted(unknown))
            )
        return cls(**dict(data))

    @classmethod
    def from_args(cls, args) -> "AnalysisOptions":
        """Build options from an ``argparse`` namespace."""
        taint = getattr(args, "taint_config", None)
        return cls(
            cs=getattr(args, "cs", "ci"),
            heap_model=getattr(args, "heap", "allocation-site"),
            taint_config=str(taint) if taint is not None else None,
        )

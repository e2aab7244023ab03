"""
ptaflow: whole-program points-to analysis with on-the-fly call graph
construction.
"""

__version__ = "0.1.0"

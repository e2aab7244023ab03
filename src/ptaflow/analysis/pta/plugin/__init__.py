"""Analysis plugins driven by the context-sensitive solver."""

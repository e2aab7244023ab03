"""Context-sensitive points-to analysis."""

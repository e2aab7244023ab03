"""Context-insensitive points-to analysis."""

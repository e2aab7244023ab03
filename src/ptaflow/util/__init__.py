"""Utility modules shared by the analysis packages."""

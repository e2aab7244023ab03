"""
Error handling for ptaflow.

This module defines the exception classes raised while loading a program,
configuring an analysis, or running a solver. Conditions that are an
expected part of the analysis (a call site without a dispatch target, a
duplicate edge) are not errors and never raise.
"""


class AnalysisError(Exception):
    """
    Base class for all errors raised by ptaflow.
    """
    pass


class ConfigurationError(AnalysisError):
    """
    Exception raised for malformed analysis input.

    Raised before the fixpoint starts when the program refers to classes or
    methods the class hierarchy does not know, when no entry method is
    available, or when analysis options cannot be interpreted.
    """
    pass


class ProgramFormatError(ConfigurationError):
    """
    Exception raised when a program or plugin description cannot be parsed.
    """
    pass


class InternalError(AnalysisError):
    """
    Exception raised for internal errors in ptaflow.

    This indicates a bug or a broken invariant inside the engine, as opposed
    to a problem with the analyzed program.
    """
    pass

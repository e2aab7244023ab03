"""
Program model consumed by the analyses: class hierarchy, method IR and the
JSON loader that builds them.
"""

from .classes import ClassHierarchy, JClass, JField, JMethod
from .ir import (
    IR,
    Copy,
    Invoke,
    InvokeKind,
    LoadArray,
    LoadField,
    MethodRef,
    New,
    Return,
    Stmt,
    StoreArray,
    StoreField,
    Var,
)
from .loader import load_program, load_program_file

__all__ = [
    "ClassHierarchy",
    "JClass",
    "JField",
    "JMethod",
    "IR",
    "Copy",
    "Invoke",
    "InvokeKind",
    "LoadArray",
    "LoadField",
    "MethodRef",
    "New",
    "Return",
    "Stmt",
    "StoreArray",
    "StoreField",
    "Var",
    "load_program",
    "load_program_file",
]

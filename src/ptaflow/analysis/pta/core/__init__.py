"""Pointers, heap model, contexts and the data structures of the solvers."""

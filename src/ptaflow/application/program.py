"""
Program representation for ptaflow.

A ``Program`` bundles what the analysis needs to know about the analyzed
code: the class hierarchy (which owns every class, method and IR) and the
entry method where execution starts.
"""


class Program(object):
    """
    The analyzed program.

    Attributes:
        hierarchy: ClassHierarchy owning all classes and methods
        entry_method: JMethod where analysis starts
        name: Optional display name (e.g. the file it was loaded from)
    """
    __slots__ = "hierarchy", "entry_method", "name"

    def __init__(self, hierarchy, entry_method, name=None):
        self.hierarchy = hierarchy
        self.entry_method = entry_method
        self.name = name

    def methods(self):
        """All methods declared in the program."""
        return self.hierarchy.all_methods()

    def __repr__(self):
        return "Program(%s, entry=%r)" % (self.name or "<memory>", self.entry_method)

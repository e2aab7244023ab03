"""
Taint analysis on top of the context-sensitive points-to analysis.

Taint is modeled with objects: a call to a *source* method produces a taint
object (a mock object remembering the source call) that flows through the
PFG like any other object. *Transfer* methods create new taint objects
between the base, the arguments and the result of a call, and a *sink*
method reports a flow whenever one of its configured arguments may point
to a taint object.

Configuration is a JSON document::

    {
      "sources":   [{"method": "Src.get()", "type": "Secret"}],
      "sinks":     [{"method": "Log.write(Secret)", "index": 0}],
      "transfers": [{"method": "Secret.copy()", "from": "base",
                     "to": "result", "type": "Secret"}]
    }

``from`` and ``to`` are ``"base"``, ``"result"`` or an argument index.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict, namedtuple
from pathlib import Path

from ptaflow.application.errors import ConfigurationError, ProgramFormatError
from ptaflow.language.loader import split_method_ref
from ptaflow.util.canonical import Sentinel
from ..core.heap import MockObj
from ..core.pointers import CSVar

LOG = logging.getLogger(__name__)

TAINT_DESC = "TaintObj"

BASE = Sentinel("base")
RESULT = Sentinel("result")

Source = namedtuple("Source", ["method", "type"])
Sink = namedtuple("Sink", ["method", "index"])
TaintTransfer = namedtuple("TaintTransfer", ["method", "source", "target", "type"])


class TaintFlow(namedtuple("TaintFlow", ["source_call", "sink_call", "index"])):
    """A taint object created at ``source_call`` reaching argument ``index`` of ``sink_call``."""
    __slots__ = ()

    def __str__(self):
        return "TaintFlow{%r -> %r/%d}" % (self.source_call, self.sink_call, self.index)


class TaintConfig(object):
    """Sources, sinks and transfers, resolved against a class hierarchy."""

    def __init__(self, sources=(), sinks=(), transfers=()):
        self.sources = list(sources)
        self.sinks = list(sinks)
        self.transfers = list(transfers)

    @classmethod
    def load(cls, path, hierarchy):
        """
        Read a configuration file.

        Raises:
            ProgramFormatError: If the file is not valid JSON.
            ConfigurationError: If an entry is malformed.
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ProgramFormatError("%s: invalid JSON: %s" % (path, e)) from e
        except OSError as e:
            raise ConfigurationError("cannot read taint config %s: %s" % (path, e)) from e
        return cls.from_dict(data, hierarchy)

    @classmethod
    def from_dict(cls, data, hierarchy):
        if not isinstance(data, dict):
            raise ProgramFormatError("taint config must be a JSON object")
        resolver = _EntryResolver(hierarchy)
        sources, sinks, transfers = [], [], []
        try:
            for entry in data.get("sources", ()):
                method = resolver.method(entry["method"])
                if method is not None:
                    sources.append(Source(method, resolver.type(entry["type"])))
            for entry in data.get("sinks", ()):
                method = resolver.method(entry["method"])
                if method is not None:
                    sinks.append(Sink(method, int(entry["index"])))
            for entry in data.get("transfers", ()):
                method = resolver.method(entry["method"])
                if method is not None:
                    transfers.append(TaintTransfer(
                        method,
                        _position(entry["from"]),
                        _position(entry["to"]),
                        resolver.type(entry["type"]),
                    ))
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError("malformed taint config entry: %s" % e) from e
        LOG.info("taint config: %d sources, %d sinks, %d transfers",
                 len(sources), len(sinks), len(transfers))
        return cls(sources, sinks, transfers)

    def __repr__(self):
        return "TaintConfig(sources=%r, sinks=%r, transfers=%r)" % (
            self.sources, self.sinks, self.transfers)


def _position(value):
    if value == "base":
        return BASE
    if value == "result":
        return RESULT
    if isinstance(value, bool):
        raise ValueError("bad taint position %r" % value)
    return int(value)


class _EntryResolver(object):
    def __init__(self, hierarchy):
        self.hierarchy = hierarchy

    def method(self, text):
        cls_name, subsig = split_method_ref(text)
        jclass = self.hierarchy.get_class(cls_name)
        method = jclass.get_declared_method(subsig) if jclass is not None else None
        if method is None:
            LOG.warning("taint config: ignoring unknown method %s", text)
        return method

    def type(self, name):
        jclass = self.hierarchy.get_class(name)
        if jclass is None:
            raise ConfigurationError("taint config: unknown type %s" % name)
        return jclass


class TaintAnalysis(object):
    """
    Taint hooks consulted by the context-sensitive solver.

    Taint objects always live in the empty heap context.
    """

    def __init__(self, solver, config):
        self.solver = solver
        self.config = config
        self.heap_model = solver.heap_model
        self._sources = {}
        for source in config.sources:
            self._sources.setdefault(source.method, source)
        self._sinks = defaultdict(list)
        for sink in config.sinks:
            self._sinks[sink.method].append(sink)
        self._transfers = defaultdict(list)
        for transfer in config.transfers:
            self._transfers[transfer.method].append(transfer)
        self.flows = None

    def make_taint(self, source_call, type):
        return self.heap_model.get_mock_obj(TAINT_DESC, source_call, type, source_call.container)

    def is_taint(self, obj):
        return isinstance(obj, MockObj) and obj.descriptor == TAINT_DESC

    def produce_taint_obj(self, call_site, callee):
        """Return the taint object produced by calling source ``callee``, if any."""
        source = self._sources.get(callee)
        if source is None:
            return None
        return self.make_taint(call_site, source.type)

    def handle_taint_transfer(self, cs_call_site, callee, base):
        """
        Apply the transfers of ``callee`` at ``cs_call_site``.

        Args:
            cs_call_site: CSCallSite of the call
            callee: JMethod being called
            base: CSVar of the receiver, None for static calls

        Returns:
            List of ``(var, taint object)`` pairs; each variable lives in
            the context of ``cs_call_site``.
        """
        produced = []
        invoke = cs_call_site.call_site
        for transfer in self._transfers.get(callee, ()):
            target = self._target_var(invoke, transfer.target)
            if target is None:
                continue
            for obj in self._taints_at(cs_call_site, invoke, transfer.source, base):
                produced.append((target, self.make_taint(obj.alloc, transfer.type)))
        return produced

    def _target_var(self, invoke, position):
        if position is RESULT:
            return invoke.result
        if position is BASE:
            return invoke.base
        LOG.debug("taint transfer to argument %r ignored at %r", position, invoke)
        return None

    def _taints_at(self, cs_call_site, invoke, position, base):
        if position is BASE:
            pointer = base
        elif position is RESULT:
            pointer = None
        elif 0 <= position < len(invoke.args):
            pointer = self.solver.manager.find(
                CSVar, cs_call_site.context, invoke.args[position])
        else:
            pointer = None
        if pointer is None:
            return []
        return [cs_obj.obj for cs_obj in pointer.get_points_to_set()
                if self.is_taint(cs_obj.obj)]

    def on_finish(self):
        """Collect the taint flows reaching sink calls."""
        flows = set()
        manager = self.solver.manager
        for edge in self.solver.call_graph.edges():
            sinks = self._sinks.get(edge.callee.method)
            if not sinks:
                continue
            cs_call_site = edge.call_site
            invoke = cs_call_site.call_site
            for sink in sinks:
                if not 0 <= sink.index < len(invoke.args):
                    continue
                arg = manager.find(CSVar, cs_call_site.context, invoke.args[sink.index])
                if arg is None:
                    continue
                for cs_obj in arg.get_points_to_set():
                    if self.is_taint(cs_obj.obj):
                        flows.add(TaintFlow(cs_obj.obj.alloc, invoke, sink.index))
        self.flows = sorted(flows, key=lambda f: (repr(f.source_call), repr(f.sink_call), f.index))
        for flow in self.flows:
            LOG.info("%s", flow)
        return self.flows
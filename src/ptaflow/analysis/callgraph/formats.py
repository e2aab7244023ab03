"""
Call graph output format generators.

This module provides functions to render a method-level call graph, and
optionally the points-to sets and taint flows of a points-to analysis
result, as text, DOT (Graphviz) or JSON.
"""

import json
from typing import Any, Dict, List

import networkx as nx


def method_name(method) -> str:
    return method.signature


def call_site_name(call_site) -> str:
    return "%s@%d" % (call_site.container.signature, call_site.index)


def find_cycles(call_graph) -> List[List[str]]:
    """Return the elementary cycles of the call graph, as method names."""
    graph = nx.DiGraph(call_graph.to_networkx())
    cycles = []
    for cycle in nx.simple_cycles(graph):
        names = [method_name(m) for m in cycle]
        start = names.index(min(names))
        cycles.append(names[start:] + names[:start])
    return sorted(cycles)


def _invocations(call_graph) -> Dict[str, List[str]]:
    invocations = {}
    for method in call_graph.reachable_methods():
        callees = {method_name(c) for c in call_graph.callees_of_method(method)}
        invocations[method_name(method)] = sorted(callees)
    return invocations


def _points_to(result) -> Dict[str, List[str]]:
    points_to = {}
    for var in result.get_vars():
        objs = result.get_points_to_set(var)
        if objs:
            points_to[repr(var)] = sorted(repr(o) for o in objs)
    return dict(sorted(points_to.items()))


def _show_cycles(args) -> bool:
    return bool(getattr(args, "show_cycles", False))


def generate_text_output(call_graph, args, result=None) -> str:
    """Generate text output for the call graph (and points-to result)."""
    output = []
    output.append("Call Graph Analysis")
    output.append("=" * 50)
    output.append("")

    invocations = _invocations(call_graph)
    output.append(f"Reachable methods ({len(invocations)}):")
    for name in sorted(invocations):
        output.append(f"  - {name}")
    output.append("")

    output.append(f"Call edges ({call_graph.num_of_edges()}):")
    for line in sorted(
        f"  {call_site_name(e.call_site)} [{e.kind.name}] -> {method_name(e.callee)}"
        for e in call_graph.edges()
    ):
        output.append(line)
    output.append("")

    output.append("Call Relationships:")
    for caller in sorted(invocations):
        callees = invocations[caller]
        if callees:
            output.append(f"  {caller} -> {', '.join(callees)}")
        else:
            output.append(f"  {caller} -> (no calls)")

    if result is not None:
        output.append("")
        output.append("Points-to sets:")
        for var, objs in _points_to(result).items():
            output.append(f"  {var} -> {{{', '.join(objs)}}}")

        flows = result.get_taint_flows()
        if flows:
            output.append("")
            output.append(f"Taint flows ({len(flows)}):")
            for flow in flows:
                output.append(
                    f"  {call_site_name(flow.source_call)} -> "
                    f"{call_site_name(flow.sink_call)} (arg {flow.index})"
                )

    if _show_cycles(args):
        cycles = find_cycles(call_graph)
        if cycles:
            output.append("")
            output.append("Cycles detected:")
            for i, cycle in enumerate(cycles):
                output.append(f"  Cycle {i+1}: {' -> '.join(cycle + cycle[:1])}")

    return "\n".join(output)


def generate_dot_output(call_graph, args, result=None) -> str:
    """Generate DOT format output for the call graph."""
    lines = []
    lines.append("digraph CallGraph {")
    lines.append("    rankdir=TB;")
    lines.append("    node [shape=box, style=filled, fillcolor=lightblue];")
    lines.append("")

    invocations = _invocations(call_graph)
    entries = {method_name(m) for m in call_graph.entry_methods()}

    for name in sorted(invocations):
        safe_name = name.replace('"', '\\"')
        if name in entries:
            lines.append(f'    "{safe_name}" [label="{safe_name}", fillcolor=lightgreen];')
        else:
            lines.append(f'    "{safe_name}" [label="{safe_name}"];')

    lines.append("")

    for caller in sorted(invocations):
        for callee in invocations[caller]:
            caller_safe = caller.replace('"', '\\"')
            callee_safe = callee.replace('"', '\\"')
            lines.append(f'    "{caller_safe}" -> "{callee_safe}";')

    lines.append("}")
    return "\n".join(lines)


def generate_json_output(call_graph, args, result=None) -> str:
    """Generate JSON output for the call graph (and points-to result)."""
    invocations = _invocations(call_graph)
    data: Dict[str, Any] = {
        "entry": sorted(method_name(m) for m in call_graph.entry_methods()),
        "functions": sorted(invocations),
        "invocations": invocations,
        "edges": sorted(
            (
                {
                    "call_site": call_site_name(e.call_site),
                    "kind": e.kind.name,
                    "callee": method_name(e.callee),
                }
                for e in call_graph.edges()
            ),
            key=lambda e: (e["call_site"], e["callee"], e["kind"]),
        ),
    }
    if _show_cycles(args):
        data["cycles"] = find_cycles(call_graph)

    if result is not None:
        data["points_to"] = _points_to(result)
        data["taint_flows"] = [
            {
                "source": call_site_name(f.source_call),
                "sink": call_site_name(f.sink_call),
                "index": f.index,
            }
            for f in result.get_taint_flows()
        ]

    return json.dumps(data, indent=2)


FORMATTERS = {
    "text": generate_text_output,
    "dot": generate_dot_output,
    "json": generate_json_output,
}

import pytest

from ptaflow.analysis.pta import CSPointerAnalysisResult, CSSolver
from ptaflow.analysis.pta.core.context import EMPTY_CONTEXT, Context
from ptaflow.analysis.pta.core.pointers import CSVar
from ptaflow.application import AnalysisContext, AnalysisOptions


BOTH = {"Main.main()/i1", "Main.main()/i2"}


def test_one_call_separates_call_sites(container_program, analyze):
    analysis = analyze(container_program.build(), cs="1-call")
    assert isinstance(analysis.result, CSPointerAnalysisResult)
    assert analysis.objs("Main.main()", "g1") == {"Main.main()/i1"}
    assert analysis.objs("Main.main()", "g2") == {"Main.main()/i2"}
    assert analysis.objs("Main.main()", "r1") == {"Main.main()/i1"}
    assert analysis.objs("Main.main()", "r2") == {"Main.main()/i2"}
    # Projection over contexts still sees both objects in the callee.
    assert analysis.objs("Main.id(Item)", "p") == BOTH


def test_one_obj_separates_receivers_only(container_program, analyze):
    analysis = analyze(container_program.build(), cs="1-obj")
    assert analysis.objs("Main.main()", "g1") == {"Main.main()/i1"}
    assert analysis.objs("Main.main()", "g2") == {"Main.main()/i2"}
    # Static calls inherit the caller's context, so id() merges.
    assert analysis.objs("Main.main()", "r1") == BOTH


def test_one_type_merges_receivers_allocated_in_same_class(container_program, analyze):
    analysis = analyze(container_program.build(), cs="1-type")
    assert analysis.objs("Main.main()", "g1") == BOTH


def test_ci_selector_matches_ci_solver(container_program, analyze):
    ci = analyze(container_program.build())
    program = container_program.build()
    context = AnalysisContext(program, AnalysisOptions())
    cs = CSSolver(context).solve()
    for name in ("g1", "g2", "r1", "r2", "b1"):
        method = program.entry_method
        expected = {repr(o) for o in ci.pts("Main.main()", name)}
        assert {repr(o) for o in cs.get_points_to_set(method.ir.get_var(name))} == expected


def test_cs_vars_and_call_graph(container_program, analyze):
    analysis = analyze(container_program.build(), cs="1-call")
    result = analysis.result
    p = analysis.var("Main.id(Item)", "p")
    contexts = {cs_var.context for cs_var in result.get_cs_vars_of(p)}
    assert len(contexts) == 2
    assert all(len(c) == 1 for c in contexts)
    for cs_var in result.get_cs_vars_of(p):
        assert len(result.get_cs_points_to_set(cs_var)) == 1
    assert all(isinstance(v, CSVar) for v in result.get_cs_vars())

    cs_cg = result.get_call_graph()
    ci_cg = result.get_ci_call_graph()
    # Six call edges under contexts collapse onto six context-free edges.
    assert cs_cg.num_of_edges() == 6
    assert ci_cg.num_of_edges() == 6
    assert ci_cg.num_of_methods() == 4
    assert cs_cg.num_of_methods() == 7
    assert result.get_ci_call_graph() is ci_cg


def test_cs_end_to_end_dispatch(animals, analyze):
    analysis = analyze(animals.build(), cs="2-obj")
    assert analysis.edges() == {
        ("VIRTUAL", "Main.main()", 4, "Dog.foo()"),
        ("VIRTUAL", "Main.main()", 4, "Cat.foo()"),
    }
    assert analysis.types("Main.main()", "x") == {"Dog", "Cat"}


def test_heap_contexts_follow_allocating_method(builder, analyze):
    b = builder
    b.cls("T")
    b.cls("Main", methods=[
        b.method("make()", static=True, body=[b.new("o", "T"), b.ret("o")]),
        b.method("main()", static=True, body=[
            b.invoke("Main.make()", lhs="a"),
            b.invoke("Main.make()", lhs="b"),
        ]),
    ])
    analysis = analyze(b.build(), cs="2-call")
    a = analysis.result.get_cs_vars_of(analysis.var("Main.main()", "a"))[0]
    b_ = analysis.result.get_cs_vars_of(analysis.var("Main.main()", "b"))[0]
    (obj_a,) = a.get_points_to_set()
    (obj_b,) = b_.get_points_to_set()
    assert obj_a.obj is obj_b.obj
    assert obj_a.context != obj_b.context
    assert len(obj_a.context) == 1
    # Context-free queries drop heap contexts.
    assert analysis.result.may_alias(a.var, b_.var)


def test_cs_solver_rejects_unknown_selector(animals):
    from ptaflow.application.errors import ConfigurationError

    context = AnalysisContext(animals.build(), AnalysisOptions(cs="deep"))
    with pytest.raises(ConfigurationError):
        CSSolver(context)


def test_context_k_limiting():
    c = EMPTY_CONTEXT.append("a", 2).append("b", 2).append("c", 2)
    assert c == Context("b", "c")
    assert c.truncate(1) == Context("c")
    assert c.truncate(0) is EMPTY_CONTEXT
    assert c.append("d", 0) is EMPTY_CONTEXT
    assert hash(Context("b", "c")) == hash(c)
    assert EMPTY_CONTEXT.get_length() == 0

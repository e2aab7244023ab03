import json

import pytest

from ptaflow.application.errors import ConfigurationError, ProgramFormatError
from ptaflow.language import InvokeKind, LoadField, New, StoreField, load_program_file
from ptaflow.language.loader import load_program, split_field_ref, split_method_ref


def test_split_references():
    assert split_method_ref("pkg.A.m(B,C)") == ("pkg.A", "m(B,C)")
    assert split_field_ref("pkg.A.f") == ("pkg.A", "f")
    with pytest.raises(ProgramFormatError):
        split_method_ref("m()")
    with pytest.raises(ProgramFormatError):
        split_method_ref("A.m")
    with pytest.raises(ProgramFormatError):
        split_field_ref("f")


def test_load_builds_hierarchy_and_ir(animals):
    program = animals.build()
    hierarchy = program.hierarchy
    animal = hierarchy.get_class("Animal")
    dog = hierarchy.get_class("Dog")

    assert program.entry_method.signature == "Main.main()"
    assert dog.superclass is animal
    assert set(hierarchy.direct_subclasses_of(animal)) == {dog, hierarchy.get_class("Cat")}
    assert animal.get_declared_method("foo()").is_abstract
    assert animal.get_declared_method("foo()").ir is None

    foo = dog.get_declared_method("foo()")
    assert foo.ir.this.name == "this"
    assert [v.name for v in foo.ir.return_vars] == ["r"]

    main_ir = program.entry_method.ir
    assert main_ir.this is None
    assert [s.index for s in main_ir.stmts] == list(range(5))
    assert all(s.container is program.entry_method for s in main_ir)
    call = main_ir.invokes[0]
    assert call.kind is InvokeKind.VIRTUAL
    assert call.base is main_ir.get_var("a")
    assert main_ir.get_var("a").invokes == [call]
    assert call.result is main_ir.get_var("x")


def test_var_indexes_field_accesses(builder):
    b = builder
    b.cls("A", fields=["f", {"name": "s", "static": True}])
    b.cls("Main", methods=[b.method("main()", static=True, body=[
        b.new("a", "A"),
        b.store("A.f", "a", base="a"),
        b.load("x", "A.f", base="a"),
        b.store("A.s", "a"),
        b.load("y", "A.s"),
        b.astore("arr", "a"),
        b.aload("z", "arr"),
    ])])
    program = b.build()
    body = program.entry_method.ir
    a = body.get_var("a")
    assert isinstance(body.stmts[0], New)
    assert [type(s) for s in a.store_fields] == [StoreField]
    assert [type(s) for s in a.load_fields] == [LoadField]
    assert body.stmts[3].is_static and body.stmts[4].is_static
    assert body.stmts[3].field is program.hierarchy.get_class("A").get_declared_field("s")
    assert len(body.get_var("arr").store_arrays) == 1
    assert len(body.get_var("arr").load_arrays) == 1


def test_inherited_field_resolves_to_declaring_class(builder):
    b = builder
    b.cls("A", fields=["f"])
    b.cls("B", super="A")
    b.cls("Main", methods=[b.method("main()", static=True, body=[
        b.new("o", "B"),
        b.load("x", "B.f", base="o"),
    ])])
    program = b.build()
    field = program.entry_method.ir.stmts[1].field
    assert field.declaring_class.name == "A"


def test_interface_methods_without_body_are_abstract(builder):
    b = builder
    b.cls("I", interface=True, methods=[b.method("m()")])
    b.cls("C", interfaces=["I"], methods=[b.method("m()", body=[])])
    b.cls("Main", methods=[b.method("main()", static=True, body=[])])
    program = b.build()
    iface = program.hierarchy.get_class("I")
    assert iface.is_interface
    assert iface.get_declared_method("m()").is_abstract
    assert program.hierarchy.direct_implementors_of(iface) == [program.hierarchy.get_class("C")]


@pytest.mark.parametrize(
    "data, message",
    [
        ([], "JSON object"),
        ({"classes": {}}, "'classes' must be a list"),
        ({"entry": "Main.main()", "classes": [{"super": "A"}]}, "without a name"),
        ({"classes": [{"name": "Main"}]}, "no 'entry'"),
        ({"entry": "Main.run()", "classes": [{"name": "Main"}]}, "not found"),
        ({"entry": "Nope.main()", "classes": [{"name": "Main"}]}, "unknown class"),
        ({"entry": "A.m()", "classes": [{"name": "A"}, {"name": "A"}]}, "duplicate class"),
        ({"entry": "A.m()", "classes": [{"name": "A", "super": "B"},
                                        {"name": "B", "super": "A"}]}, "cyclic"),
        ({"entry": "A.m()", "classes": [{"name": "A", "super": "Missing"}]}, "unknown class"),
    ],
)
def test_malformed_programs(data, message):
    with pytest.raises(ProgramFormatError, match=message):
        load_program(data)


def test_malformed_statements(builder):
    b = builder
    b.cls("Main", methods=[b.method("main()", static=True, body=[{"op": "jump"}])])
    with pytest.raises(ProgramFormatError, match="unknown statement op"):
        b.build()


def test_static_call_with_base_is_rejected(builder):
    b = builder
    b.cls("Main", methods=[
        b.method("f()", static=True, body=[]),
        b.method("main()", static=True, body=[
            b.new("m", "Main"),
            b.invoke("Main.f()", base="m", kind="static"),
        ]),
    ])
    with pytest.raises(ProgramFormatError, match="must not have a base"):
        b.build()


def test_virtual_call_without_base_is_rejected(builder):
    b = builder
    b.cls("Main", methods=[
        b.method("f()", body=[]),
        b.method("main()", static=True, body=[b.invoke("Main.f()", kind="virtual")]),
    ])
    with pytest.raises(ProgramFormatError, match="must have a base"):
        b.build()


def test_missing_statement_key(builder):
    b = builder
    b.cls("Main", methods=[b.method("main()", static=True, body=[{"op": "copy", "lhs": "x"}])])
    with pytest.raises(ProgramFormatError, match="missing"):
        b.build()


def test_reference_to_unknown_class_in_body(builder):
    b = builder
    b.cls("Main", methods=[b.method("main()", static=True, body=[b.new("x", "Ghost")])])
    with pytest.raises(ConfigurationError, match="Ghost"):
        b.build()


def test_load_program_file(tmp_path, animals):
    path = tmp_path / "program.json"
    path.write_text(json.dumps(animals.data()))
    program = load_program_file(path)
    assert program.name == str(path)
    assert program.hierarchy.get_class("Dog") is not None


def test_load_program_file_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(ProgramFormatError, match="invalid JSON"):
        load_program_file(path)

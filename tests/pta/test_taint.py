import json
import random

import pytest

from ptaflow.analysis.pta.core.worklist import PointerEntry, WorkList
from ptaflow.analysis.pta.plugin.taint import BASE, RESULT, TaintConfig
from ptaflow.application.errors import ConfigurationError, ProgramFormatError


SOURCE = {"method": "Src.get()", "type": "Secret"}
SINK = {"method": "Log.write(Secret)", "index": 0}
TRANSFERS = [
    {"method": "Secret.copy()", "from": "base", "to": "result", "type": "Secret"},
    {"method": "Util.wrap(Secret)", "from": 0, "to": "result", "type": "Secret"},
    {"method": "Holder.set(Secret)", "from": 0, "to": "base", "type": "Holder"},
]


@pytest.fixture
def leaky(builder):
    b = builder
    b.cls("Secret", methods=[b.method("copy()", body=[])])
    b.cls("Holder", methods=[b.method("set(Secret)", params=["x"], body=[])])
    b.cls("Src", methods=[b.method("get()", static=True, body=[])])
    b.cls("Log", methods=[b.method("write(Secret)", static=True, params=["x"], body=[])])
    b.cls("Util", methods=[b.method("wrap(Secret)", static=True, params=["x"], body=[])])
    b.cls("Main", methods=[b.method("main()", static=True, body=[
        b.invoke("Src.get()", lhs="s"),                     # 0
        b.invoke("Log.write(Secret)", args=["s"]),          # 1
        b.invoke("Secret.copy()", base="s", lhs="t"),       # 2
        b.invoke("Log.write(Secret)", args=["t"]),          # 3
        b.invoke("Util.wrap(Secret)", args=["s"], lhs="w"),  # 4
        b.invoke("Log.write(Secret)", args=["w"]),          # 5
        b.new("h", "Holder"),                               # 6
        b.invoke("Holder.set(Secret)", base="h", args=["s"]),  # 7
        b.invoke("Log.write(Secret)", args=["h"]),          # 8
        b.new("c", "Secret"),                               # 9
        b.invoke("Log.write(Secret)", args=["c"]),          # 10
    ])])
    return b


def write_config(tmp_path, transfers=()):
    path = tmp_path / "taint.json"
    path.write_text(json.dumps({"sources": [SOURCE], "sinks": [SINK], "transfers": list(transfers)}))
    return str(path)


def flow_indexes(result):
    return {(f.source_call.index, f.sink_call.index, f.index) for f in result.get_taint_flows()}


def test_direct_flow_only_without_transfers(leaky, analyze, tmp_path):
    analysis = analyze(leaky.build(), taint_config=write_config(tmp_path))
    assert flow_indexes(analysis.result) == {(0, 1, 0)}
    assert analysis.types("Main.main()", "s") == {"Secret"}
    assert analysis.objs("Main.main()", "s") == {"TaintObj:Secret"}


def test_transfers_propagate_taint(leaky, analyze, tmp_path):
    analysis = analyze(leaky.build(), taint_config=write_config(tmp_path, TRANSFERS))
    assert flow_indexes(analysis.result) == {(0, 1, 0), (0, 3, 0), (0, 5, 0), (0, 8, 0)}
    assert analysis.objs("Main.main()", "h") == {"Main.main()/h", "TaintObj:Holder"}
    assert analysis.objs("Main.main()", "c") == {"Main.main()/c"}


@pytest.mark.parametrize("cs", ["ci", "1-call", "2-obj"])
def test_flows_do_not_depend_on_selector(leaky, analyze, tmp_path, cs):
    analysis = analyze(leaky.build(), cs=cs, taint_config=write_config(tmp_path, TRANSFERS))
    assert len(analysis.result.get_taint_flows()) == 4


def test_flows_are_reported_once(leaky, analyze, tmp_path):
    result = analyze(leaky.build(), taint_config=write_config(tmp_path, TRANSFERS)).result
    flows = result.get_taint_flows()
    assert len(flows) == len(set(flows))
    assert all(str(f).startswith("TaintFlow{") for f in flows)


def test_config_parsing(leaky):
    hierarchy = leaky.build().hierarchy
    config = TaintConfig.from_dict(
        {"sources": [SOURCE, {"method": "Nope.get()", "type": "Secret"}],
         "sinks": [SINK],
         "transfers": TRANSFERS},
        hierarchy,
    )
    assert [s.method.signature for s in config.sources] == ["Src.get()"]
    assert config.sinks[0].index == 0
    assert [(t.source, t.target) for t in config.transfers] == [
        (BASE, RESULT), (0, RESULT), (0, BASE)
    ]


@pytest.mark.parametrize("data", [
    {"sources": [{"method": "Src.get()", "type": "Missing"}]},
    {"sinks": [{"method": "Log.write(Secret)"}]},
    {"transfers": [{"method": "Secret.copy()", "from": "nowhere", "to": "result",
                    "type": "Secret"}]},
])
def test_config_errors(leaky, data):
    with pytest.raises(ConfigurationError):
        TaintConfig.from_dict(data, leaky.build().hierarchy)


def test_config_file_errors(leaky, tmp_path):
    hierarchy = leaky.build().hierarchy
    path = tmp_path / "bad.json"
    path.write_text("[1, 2")
    with pytest.raises(ProgramFormatError):
        TaintConfig.load(path, hierarchy)
    with pytest.raises(ConfigurationError):
        TaintConfig.load(tmp_path / "missing.json", hierarchy)


class LifoWorkList(WorkList):
    def poll(self):
        return self.entries.pop()


class ShuffledWorkList(WorkList):
    def __init__(self, seed):
        WorkList.__init__(self)
        self.rng = random.Random(seed)

    def poll(self):
        self.entries.rotate(-self.rng.randrange(len(self.entries)))
        return self.entries.popleft()


class PointersFirstWorkList(WorkList):
    """Newest pointer entry first; methods only once no pointer entry is left."""

    def poll(self):
        for i in range(len(self.entries) - 1, -1, -1):
            if isinstance(self.entries[i], PointerEntry):
                entry = self.entries[i]
                del self.entries[i]
                return entry
        return self.entries.popleft()


@pytest.fixture
def forwarding(builder):
    b = builder
    b.cls("Secret")
    b.cls("Holder", methods=[b.method("set(Secret)", params=["x"], body=[])])
    b.cls("Src", methods=[b.method("get()", static=True, body=[])])
    b.cls("Log", methods=[b.method("write(Secret)", static=True, params=["x"], body=[])])
    b.cls("Main", methods=[
        b.method("f(Holder,Secret)", static=True, params=["hp", "xp"], body=[
            b.invoke("Holder.set(Secret)", base="hp", args=["xp"]),
            b.invoke("Log.write(Secret)", args=["hp"]),
        ]),
        b.method("main()", static=True, body=[
            b.invoke("Src.get()", lhs="s"),
            b.new("h", "Holder"),
            b.invoke("Main.f(Holder,Secret)", args=["h", "s"]),
        ]),
    ])
    return b


HOLDER_TRANSFER = [{"method": "Holder.set(Secret)", "from": 0, "to": "base", "type": "Holder"}]


@pytest.mark.parametrize("make_worklist", [
    WorkList,
    LifoWorkList,
    PointersFirstWorkList,
    lambda: ShuffledWorkList(3),
    lambda: ShuffledWorkList(11),
])
def test_taint_through_parameters_is_independent_of_worklist_order(
        forwarding, analyze, tmp_path, make_worklist):
    config = write_config(tmp_path, HOLDER_TRANSFER)
    analysis = analyze(forwarding.build(), taint_config=config, worklist=make_worklist())
    assert flow_indexes(analysis.result) == {(0, 1, 0)}


@pytest.mark.parametrize("make_worklist", [
    LifoWorkList,
    PointersFirstWorkList,
    lambda: ShuffledWorkList(5),
])
def test_transfer_flows_are_independent_of_worklist_order(leaky, analyze, tmp_path, make_worklist):
    config = write_config(tmp_path, TRANSFERS)
    reference = flow_indexes(analyze(leaky.build(), taint_config=config).result)
    analysis = analyze(leaky.build(), taint_config=config, worklist=make_worklist())
    assert flow_indexes(analysis.result) == reference


def test_arguments_index_their_calls(leaky):
    main = leaky.build().entry_method
    s = main.ir.get_var("s")
    assert [stmt.index for stmt in s.arg_invokes] == [1, 4, 7]
    assert [stmt.index for stmt in s.invokes] == [2]

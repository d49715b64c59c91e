from cards2flow.diagnostics import collect, diagnostic, gate


def test_severity_depends_on_mode():
    d = diagnostic("missing_route_target", "a.json", "gone", action_index=0)

    assert d.severity(strict=True) == "error"
    assert d.severity(strict=False) == "warning"


def test_ignored_file_is_never_fatal():
    d = diagnostic("ignored_file", "note.json", "not a card")

    assert d.severity(strict=True) == "warning"


def test_marker_corruption_is_always_fatal():
    d = diagnostic("marker_corruption", "flows/demo.ygtc", "two begin markers")

    assert d.severity(strict=False) == "error"
    assert d.severity(strict=True) == "error"


def test_collect_sorts_by_path_then_action_index():
    batch_a = [diagnostic("duplicate_route_key", "b.json", "dup", action_index=3)]
    batch_b = [
        diagnostic("missing_route_target", "b.json", "gone", action_index=1),
        diagnostic("missing_flow", "b.json", "no flow"),
        diagnostic("ignored_file", "a.json", "skip"),
    ]

    ordered = collect(batch_a, batch_b)

    assert [(d.path, d.action_index) for d in ordered] == [
        ("a.json", None),
        ("b.json", None),
        ("b.json", 1),
        ("b.json", 3),
    ]
    # concatenation order does not matter
    assert collect(batch_b, batch_a) == ordered


def test_gate_reports_every_error():
    diags = [
        diagnostic("identity_conflict", "a.json", "A vs B", action_index=1),
        diagnostic("missing_route_target", "c.json", "gone", action_index=0),
        diagnostic("ignored_file", "n.json", "skip"),
    ]

    strict = gate(diags, strict=True)
    lenient = gate(diags, strict=False)

    assert not strict.ok
    assert [d.path for d in strict.errors] == ["a.json", "c.json"]
    assert len(strict.warnings) == 1
    assert lenient.ok
    assert len(lenient.warnings) == 3


def test_location_includes_action_index():
    assert diagnostic("flow_conflict", "a.json", "x", action_index=2).location == "a.json#/actions/2"
    assert diagnostic("missing_flow", "a.json", "x").location == "a.json"

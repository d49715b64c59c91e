import json

import pytest
import yaml
from conftest import card_json, submit

from cards2flow import pipeline
from cards2flow.config import GenerateConfig
from cards2flow.pipeline import flow_name_problem, generate, summarize


def snapshot(root):
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


def make_config(tmp_path, **kwargs):
    kwargs.setdefault("default_flow", "main")
    return GenerateConfig(
        cards_dir=tmp_path / "cards", out_dir=tmp_path / "out", name="demo", **kwargs
    )


def write_welcome_flow(root, write_card):
    write_card(root, "welcome.json", card_json([submit("Next", step="details")]))
    write_card(root, "details.json", card_json([submit("Done", step="done")]))
    write_card(root, "done.json", card_json())


def test_generates_workspace(tmp_path, write_card):
    write_welcome_flow(tmp_path / "cards", write_card)
    cfg = make_config(tmp_path)

    result = generate(cfg)

    assert result.ok
    assert result.verdict.warnings == []
    out = tmp_path / "out"
    assert (out / "assets/cards/welcome.json").is_file()
    assert (out / "assets/cards/done.json").is_file()

    text = (out / "flows/main.ygtc").read_text(encoding="utf-8")
    assert text.startswith("# BEGIN GENERATED (cards2flow)\n")
    assert text.endswith("# END GENERATED (cards2flow)\n")
    doc = yaml.safe_load(text)
    assert doc["id"] == "main"
    assert doc["start"] == "welcome"
    assert doc["nodes"]["welcome"]["routing"] == [{"key": "details", "to": "details"}]
    assert doc["nodes"]["done"]["routing"] == "out"

    readme = (out / "README.md").read_text(encoding="utf-8")
    assert readme.startswith("# demo\n")
    assert "- `main` entry: `welcome`" in readme

    assert result.flow_paths == [out / "flows/main.ygtc"]
    assert result.cards_processed == 3


def test_missing_step_strict_writes_nothing(tmp_path, write_card):
    cards = tmp_path / "cards"
    write_card(cards, "a.json", card_json([submit("Go", step="nowhere")]))

    result = generate(make_config(tmp_path, strict=True))

    assert not result.ok
    assert [e.kind for e in result.verdict.errors] == ["missing_route_target"]
    assert not (tmp_path / "out").exists()


def test_missing_step_lenient_creates_stub(tmp_path, write_card):
    cards = tmp_path / "cards"
    write_card(cards, "a.json", card_json([submit("Go", step="nowhere")]))

    result = generate(make_config(tmp_path))

    assert result.ok
    assert [w.kind for w in result.verdict.warnings] == ["missing_route_target"]
    doc = yaml.safe_load((tmp_path / "out/flows/main.ygtc").read_text(encoding="utf-8"))
    assert doc["nodes"]["nowhere"]["stub"] is True
    assert doc["nodes"]["nowhere"]["card"]["card_spec"]["asset_path"] == "TODO"


def test_identity_conflict(tmp_path, write_card):
    cards = tmp_path / "cards"
    write_card(cards, "x.json", card_json([submit("One", cardId="A"), submit("Two", cardId="B")]))

    strict = generate(make_config(tmp_path, strict=True))
    assert [e.kind for e in strict.verdict.errors] == ["identity_conflict"]
    assert not (tmp_path / "out").exists()

    lenient = generate(make_config(tmp_path))
    assert lenient.ok
    assert [c.card_id for c in lenient.groups[0].cards] == ["A"]
    manifest = json.loads((tmp_path / "out/.cards2flow/manifest.json").read_text())
    assert manifest["flows"][0]["cards"][0]["card_id"] == "A"
    assert [w["kind"] for w in manifest["warnings"]] == ["identity_conflict"]
    assert manifest["warnings"][0]["path"] == "x.json#/actions/1"


def test_second_run_is_byte_identical(tmp_path, write_card):
    write_welcome_flow(tmp_path / "cards", write_card)
    cfg = make_config(tmp_path)

    generate(cfg)
    first = snapshot(tmp_path / "out")
    generate(cfg)
    second = snapshot(tmp_path / "out")

    manifest = ".cards2flow/manifest.json"
    first.pop(manifest)
    second.pop(manifest)
    assert first == second


def test_hand_edits_outside_markers_survive(tmp_path, write_card):
    write_welcome_flow(tmp_path / "cards", write_card)
    cfg = make_config(tmp_path)
    generate(cfg)

    flow = tmp_path / "out/flows/main.ygtc"
    readme = tmp_path / "out/README.md"
    flow.write_bytes(b"# owner: team-a\r\n" + flow.read_bytes() + b"\n# trailing note\n")
    readme.write_bytes(readme.read_bytes() + b"\n## Notes\nkeep me\n")

    write_card(tmp_path / "cards", "done.json", card_json([submit("Again", step="welcome")]))
    generate(cfg)

    flow_bytes = flow.read_bytes()
    assert flow_bytes.startswith(b"# owner: team-a\r\n# BEGIN GENERATED (cards2flow)\n")
    assert flow_bytes.endswith(b"# END GENERATED (cards2flow)\n\n# trailing note\n")
    assert b"key: welcome" in flow_bytes
    assert readme.read_text(encoding="utf-8").endswith("## Notes\nkeep me\n")


def test_marker_corruption_aborts_even_when_lenient(tmp_path, write_card):
    write_welcome_flow(tmp_path / "cards", write_card)
    flow = tmp_path / "out/flows/main.ygtc"
    flow.parent.mkdir(parents=True)
    flow.write_text("# BEGIN GENERATED (cards2flow)\nbroken: true\n", encoding="utf-8")
    before = snapshot(tmp_path / "out")

    result = generate(make_config(tmp_path))

    assert not result.ok
    assert [e.kind for e in result.verdict.errors] == ["marker_corruption"]
    assert result.verdict.errors[0].path == "flows/main.ygtc"
    assert snapshot(tmp_path / "out") == before


def test_readme_without_markers_gets_section_appended(tmp_path, write_card):
    write_welcome_flow(tmp_path / "cards", write_card)
    readme = tmp_path / "out/README.md"
    readme.parent.mkdir(parents=True)
    readme.write_text("# My pack\n\nHand written.\n", encoding="utf-8")

    generate(make_config(tmp_path))

    text = readme.read_text(encoding="utf-8")
    assert text.startswith("# My pack\n\nHand written.\n\n<!-- BEGIN GENERATED FLOWS (cards2flow) -->\n")
    assert text.endswith("<!-- END GENERATED FLOWS (cards2flow) -->\n")


def test_folder_grouping_writes_one_file_per_flow(tmp_path, write_card):
    cards = tmp_path / "cards"
    write_card(cards, "billing/start.json", card_json())
    write_card(cards, "support/start.json", card_json())

    result = generate(make_config(tmp_path, group_by="folder", default_flow=None))

    assert result.ok
    assert [g.flow_name for g in result.groups] == ["billing", "support"]
    assert (tmp_path / "out/flows/billing.ygtc").is_file()
    assert (tmp_path / "out/flows/support.ygtc").is_file()
    assert (tmp_path / "out/assets/cards/billing/start.json").is_file()


def test_summary(tmp_path, write_card):
    cards = tmp_path / "cards"
    write_card(cards, "a.json", card_json([submit("Go", step="nowhere")]))
    cfg = make_config(tmp_path)

    text = summarize(cfg, generate(cfg))

    assert "Cards processed: 1" in text
    assert "  - main (1 cards)" in text
    assert "  - flows/main.ygtc" in text
    assert "Warnings: 1" in text
    assert "Pack:" not in text


@pytest.mark.parametrize("name", ["onboarding/v2", "a\\b", "..", ""])
def test_unusable_flow_names(name):
    assert flow_name_problem(name) is not None


@pytest.mark.parametrize("name", ["main", "release..2", ".drafts", "a.b"])
def test_usable_flow_names(name):
    assert flow_name_problem(name) is None


@pytest.mark.parametrize("strict", [True, False])
def test_flow_name_with_separator_is_reported_with_other_errors(tmp_path, write_card, strict):
    cards = tmp_path / "cards"
    write_card(cards, "a.json", card_json([submit("Go", flow="onboarding/v2")]))
    write_card(cards, "x.json", card_json([submit("One", cardId="A"), submit("Two", cardId="B")]))

    result = generate(make_config(tmp_path, strict=strict))

    assert not result.ok
    kinds = [e.kind for e in result.verdict.errors]
    assert kinds == (["invalid_flow_name", "identity_conflict"] if strict else ["invalid_flow_name"])
    assert result.verdict.errors[0].path == "a.json"
    assert not (tmp_path / "out").exists()


def test_dotted_flow_names_are_written(tmp_path, write_card):
    cards = tmp_path / "cards"
    write_card(cards, "a.json", card_json([submit("Go", flow="release..2")]))
    write_card(cards, ".drafts/b.json", card_json())

    result = generate(make_config(tmp_path, group_by="folder", default_flow=None))

    assert result.ok
    assert (tmp_path / "out/flows/release..2.ygtc").is_file()
    assert (tmp_path / "out/flows/.drafts.ygtc").is_file()


def test_target_changed_after_planning_aborts_before_writing(tmp_path, write_card, monkeypatch):
    write_welcome_flow(tmp_path / "cards", write_card)
    flow = tmp_path / "out/flows/main.ygtc"
    plan_outputs = pipeline.plan_outputs

    def plan_then_edit(cfg, graphs):
        planned = plan_outputs(cfg, graphs)
        flow.parent.mkdir(parents=True)
        flow.write_text("# BEGIN GENERATED (cards2flow)\nhalf edited\n", encoding="utf-8")
        return planned

    monkeypatch.setattr(pipeline, "plan_outputs", plan_then_edit)
    result = generate(make_config(tmp_path))

    assert not result.ok
    assert not result.written
    assert [e.kind for e in result.verdict.errors] == ["marker_corruption"]
    assert snapshot(tmp_path / "out") == {
        "flows/main.ygtc": b"# BEGIN GENERATED (cards2flow)\nhalf edited\n"
    }


def test_manifest_is_written_last(tmp_path, write_card, monkeypatch):
    write_welcome_flow(tmp_path / "cards", write_card)
    commit_write = pipeline.commit_write

    def fail_on_readme(plan):
        if plan.label == "README.md":
            raise OSError("disk full")
        return commit_write(plan)

    monkeypatch.setattr(pipeline, "commit_write", fail_on_readme)
    with pytest.raises(OSError):
        generate(make_config(tmp_path))

    assert (tmp_path / "out/flows/main.ygtc").is_file()
    assert not (tmp_path / "out/.cards2flow/manifest.json").exists()

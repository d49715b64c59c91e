import pytest
from conftest import card_json, submit

from cards2flow.cli import main


def test_main_prints_summary(tmp_path, write_card, capsys):
    cards = tmp_path / "cards"
    write_card(cards, "start.json", card_json([submit("Go", step="end")]))
    write_card(cards, "end.json", card_json())

    main(["--cards", str(cards), "--out", str(tmp_path / "pack"), "--default-flow", "main"])

    out = capsys.readouterr().out
    assert "Cards processed: 2" in out
    assert "  - flows/main.ygtc" in out
    assert (tmp_path / "pack/flows/main.ygtc").is_file()


def test_main_reports_warnings_on_stderr(tmp_path, write_card, capsys):
    write_card(tmp_path / "cards", "start.json", card_json())

    main(["--cards", str(tmp_path / "cards"), "--out", str(tmp_path / "pack")])

    err = capsys.readouterr().err
    assert "warning: start.json:" in err
    assert (tmp_path / "pack/flows/misc.ygtc").is_file()


def test_strict_failure_exits_2(tmp_path, write_card, capsys):
    write_card(tmp_path / "cards", "start.json", card_json())

    with pytest.raises(SystemExit) as excinfo:
        main(["--cards", str(tmp_path / "cards"), "--out", str(tmp_path / "pack"), "--strict"])

    assert excinfo.value.code == 2
    err = capsys.readouterr().err
    assert "error: [missing_flow] start.json:" in err
    assert "no files were written" in err
    assert not (tmp_path / "pack").exists()


def test_invalid_group_by_is_rejected(tmp_path):
    with pytest.raises(SystemExit):
        main(["--cards", str(tmp_path), "--out", str(tmp_path / "pack"), "--group-by", "nope"])


def test_unusable_flow_name_exits_2(tmp_path, write_card, capsys):
    write_card(tmp_path / "cards", "start.json", card_json([submit("Go", flow="onboarding/v2")]))

    with pytest.raises(SystemExit) as excinfo:
        main(["--cards", str(tmp_path / "cards"), "--out", str(tmp_path / "pack")])

    assert excinfo.value.code == 2
    err = capsys.readouterr().err
    assert "error: [invalid_flow_name] start.json:" in err
    assert "no files were written" in err

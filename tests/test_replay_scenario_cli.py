from __future__ import annotations

from pathlib import Path


SCENARIOS = Path(__file__).resolve().parents[1] / "scenarios"


def test_replay_cli_reports_events(capsys) -> None:
    from tools.replay_scenario import main

    assert main([str(SCENARIOS / "boardroom_reference.yaml")]) == 0
    out = capsys.readouterr().out.splitlines()
    assert "Staked account=alice amount=4800000000000000000000" in out
    assert out[-1] == "ok: 7 calls, 6 checks, 1 expected rejections"


def test_replay_cli_missing_file(tmp_path, capsys) -> None:
    from tools.replay_scenario import main

    assert main([str(tmp_path / "missing.yaml")]) == 2
    assert "replay_scenario error" in capsys.readouterr().err


def test_replay_cli_failed_expectation(tmp_path, capsys) -> None:
    from tools.replay_scenario import main

    path = tmp_path / "bad.yaml"
    path.write_text(
        "engines:\n  boardroom: {}\nsteps:\n  - expect: boardroom.total_supply\n    equals: 1\n",
        encoding="utf-8",
    )
    assert main([str(path), "--quiet"]) == 1
    assert "FAIL" in capsys.readouterr().err

# backend/tests/test_cli.py
from __future__ import annotations

import json

from propdash.cli.__main__ import run

from snapshots import sample_snapshot


def test_chasing_command_prints_summary(tmp_path, capsys):
    f = tmp_path / "snapshot.json"
    f.write_text(json.dumps(sample_snapshot()), encoding="utf-8")

    assert run(["chasing", str(f)]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["rentChasing"]["totalOverdue"] == 2


def test_now_flag_overrides_snapshot_instant(tmp_path, capsys):
    f = tmp_path / "snapshot.json"
    f.write_text(json.dumps(sample_snapshot()), encoding="utf-8")

    # A month earlier nothing is overdue yet.
    assert run(["chasing", str(f), "--now", "2026-02-01T00:00:00Z"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["rentChasing"]["totalOverdue"] == 0


def test_missing_file_exits_with_error(tmp_path, capsys):
    assert run(["dashboard", str(tmp_path / "nope.json")]) == 2
    assert "cannot read snapshot" in capsys.readouterr().err


def test_unparseable_now_flag_exits_with_error(tmp_path, capsys):
    f = tmp_path / "snapshot.json"
    f.write_text(json.dumps(sample_snapshot()), encoding="utf-8")

    assert run(["risk", str(f), "--now", "not-a-date"]) == 2
    assert "unparseable evaluation time" in capsys.readouterr().err

from __future__ import annotations

import pytest

from neat_speciation.cli import main, parse_args


def test_defaults():
    args = parse_args([])
    assert args.pop_size == 200
    assert args.threshold == 90.0
    assert args.max_iterations == 20000
    assert args.distance_threshold == 0.15
    assert args.report is None


def test_short_run_writes_report(tmp_path, capsys):
    report = tmp_path / "run.md"
    main(
        [
            "--pop-size", "30",
            "--max-iterations", "3",
            "--seed", "1",
            "--log-level", "WARNING",
            "--report", str(report),
        ]
    )

    out = capsys.readouterr().out
    assert out.startswith("Parameters:")
    assert "Maximum number of iterations (3) reached" in out or "Threshold 90.0 reached" in out
    assert f"report: {report.resolve()}" in out
    text = report.read_text(encoding="utf-8")
    assert text.startswith("# NEAT Speciation Run Report")
    assert "## History" in text


def test_mismatched_task_dimensions():
    with pytest.raises(SystemExit):
        main(["--inputs", "3", "--max-iterations", "1"])

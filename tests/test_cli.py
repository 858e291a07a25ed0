import os

from bsd_probe.cli import main


def test_curve_command(capsys):
    assert main(["curve", "-5", "5", "--max-prime", "20"]) == 0
    out = capsys.readouterr().out
    assert "rank estimate: 2" in out
    assert "(4, -7)" in out


def test_sweep_command_writes_checkpoint_and_summary(tmp_path, capsys):
    summary = tmp_path / "summary.json"
    code = main(["sweep", "0", "1", "1", "0", "1", "1", "--max-prime", "10", "--bound", "5",
                 "--interval", "2", "--checkpoint-dir", str(tmp_path / "runs"),
                 "--summary", str(summary), "--no-progress"])
    assert code == 0
    out = capsys.readouterr().out
    assert "4/4 curves" in out
    assert len(os.listdir(tmp_path / "runs")) == 1
    assert summary.exists()


def test_sweep_resume_latest(tmp_path, capsys):
    args = ["sweep", "0", "1", "1", "0", "1", "1", "--max-prime", "10", "--bound", "5",
            "--interval", "2", "--checkpoint-dir", str(tmp_path), "--no-progress"]
    assert main(args) == 0
    assert main(args + ["--resume", "latest"]) == 0
    assert "4/4 curves" in capsys.readouterr().out


def test_invalid_step_exits_with_2(capsys):
    assert main(["sweep", "0", "1", "0", "0", "1", "1", "--no-progress"]) == 2
    assert "invalid configuration" in capsys.readouterr().out


def test_resume_latest_needs_directory():
    assert main(["sweep", "0", "1", "1", "0", "1", "1", "--resume", "latest", "--no-progress"]) == 2

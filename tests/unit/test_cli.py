"""
Unit tests for backend/cli.py
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from backend.cli import main
from backend.settings import Settings


@pytest.fixture
def cli_settings():
    with patch("backend.cli.get_settings") as mock_get_settings:
        mock_get_settings.return_value = Settings(environment="test", _env_file=None)
        yield mock_get_settings.return_value


@pytest.fixture
def session_file(tmp_path, sample_session):
    path = tmp_path / "session.json"
    path.write_text(sample_session.model_dump_json())
    return path


@pytest.mark.unit
class TestFitCommand:
    """Tests for the fit subcommand."""

    def test_fit_single_session(self, cli_settings, session_file, tmp_path, capsys):
        time_model = tmp_path / "time_model.json"
        time_model.write_text(json.dumps({"work_seconds_per_10_reps": 30}))

        main(["fit", str(session_file), "--target", "20", "--time-model", str(time_model)])

        output = json.loads(capsys.readouterr().out)
        assert len(output["sessions"]) == 1
        report = output["reports"][0]
        assert report["status"] == "ok"
        assert report["before_minutes"] == 13.7
        assert report["after_minutes"] == 15.8
        assert report["actions"][0]["action"] == "add_sets"

    def test_fit_program_to_file(self, cli_settings, sample_session, tmp_path):
        program = tmp_path / "program.json"
        program.write_text(
            json.dumps({"sessions": [sample_session.model_dump(mode="json")] * 2})
        )
        output = tmp_path / "out.json"
        time_model = tmp_path / "time_model.json"
        time_model.write_text("{}")
        main([
            "fit", str(program), "--target", "20", "--tolerance", "5",
            "--time-model", str(time_model), "-o", str(output),
        ])

        data = json.loads(output.read_text())
        assert [r["status"] for r in data["reports"]] == ["ok", "ok"]

    def test_fit_uses_settings_time_model(self, cli_settings, session_file, capsys):
        """Settings time model adds 8 + 5 minutes of warmup/cooldown allowance."""
        main(["fit", str(session_file), "--target", "27"])

        report = json.loads(capsys.readouterr().out)["reports"][0]
        assert report["before_minutes"] == 26.7
        assert report["allowed_min"] == 22
        assert report["allowed_max"] == 32

    def test_missing_file_exits(self, cli_settings, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["fit", str(tmp_path / "nope.json")])
        assert exc_info.value.code == 1
        assert "Error: File not found" in capsys.readouterr().err

    def test_invalid_json_exits(self, cli_settings, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        with pytest.raises(SystemExit) as exc_info:
            main(["fit", str(bad)])
        assert exc_info.value.code == 1
        assert "Error: Invalid JSON" in capsys.readouterr().err

    def test_invalid_session_exits(self, cli_settings, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"weekday": "Monday"}))
        with pytest.raises(SystemExit) as exc_info:
            main(["fit", str(bad)])
        assert exc_info.value.code == 1
        assert "Error: Invalid input" in capsys.readouterr().err


@pytest.mark.unit
class TestGenerateCommand:
    """Tests for the generate subcommand."""

    def test_generate_runs_pipeline(self, cli_settings, tmp_path, capsys):
        profile = tmp_path / "request.json"
        profile.write_text(json.dumps({"profile": {"primary_goal": "strength"}}))

        result = MagicMock()
        result.model_dump.return_value = {"reports": []}
        result.needs_review = False
        pipeline = MagicMock()
        pipeline.run = AsyncMock(return_value=result)

        with patch("backend.cli.create_pipeline", return_value=pipeline), \
                patch("backend.cli.configure_logging"):
            main(["generate", str(profile)])

        request = pipeline.run.await_args.args[0]
        assert request.profile.primary_goal == "strength"
        assert json.loads(capsys.readouterr().out) == {"reports": [], "needs_review": False}

    def test_generation_error_exits(self, cli_settings, tmp_path, capsys):
        from application.exceptions import BackendExhaustedError

        profile = tmp_path / "request.json"
        profile.write_text(json.dumps({"profile": {"primary_goal": "strength"}}))
        pipeline = MagicMock()
        pipeline.run = AsyncMock(side_effect=BackendExhaustedError("All generation backends failed"))

        with patch("backend.cli.create_pipeline", return_value=pipeline), \
                patch("backend.cli.configure_logging"):
            with pytest.raises(SystemExit) as exc_info:
                main(["generate", str(profile)])

        assert exc_info.value.code == 1
        assert "Error: All generation backends failed" in capsys.readouterr().err

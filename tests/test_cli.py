import json
import threading
from unittest.mock import patch

import pytest

from amenibook import cli, daemon, lambda_handler


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    for name in ("AMENIBOOK_CONFIG", "AMENIBOOK_DATABASE_URL", "AMENIBOOK_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"database_url": "sqlite:///:memory:", "log_level": "WARNING"}))
    return str(path)


def _run(argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    return exc.value.code


class TestCli:

    def test_list_jobs_empty(self, config_path, capsys):
        code = _run(["--config", config_path, "--list-jobs", "--email", "resident@example.com"])

        assert code == 0
        assert "No booking jobs." in capsys.readouterr().out

    def test_create_recurring_job(self, config_path, capsys):
        code = _run([
            "--config", config_path, "--create", "recurring",
            "--email", "resident@example.com", "--last-name", "Doe", "--unit", "204",
            "--amenity-id", "pool-1", "--amenity-name", "Pool",
            "--frequency", "weekly", "--time", "18:00", "--days", "2,4",
        ])

        out = capsys.readouterr().out
        assert code == 0
        assert "Booking job created!" in out
        assert "weekly at 18:00 (days: 2,4)" in out

    def test_create_rejects_bad_days(self, config_path, capsys):
        code = _run([
            "--config", config_path, "--create", "recurring",
            "--email", "resident@example.com", "--last-name", "Doe", "--unit", "204",
            "--amenity-id", "pool-1", "--amenity-name", "Pool",
            "--frequency", "weekly", "--time", "18:00", "--days", "8",
        ])

        assert code == 1
        assert "Error:" in capsys.readouterr().out

    def test_create_one_time_in_the_past(self, config_path, capsys):
        code = _run([
            "--config", config_path, "--create", "one_time",
            "--email", "resident@example.com", "--last-name", "Doe", "--unit", "204",
            "--amenity-id", "pool-1", "--amenity-name", "Pool",
            "--date", "2000-01-01", "--time", "18:00",
        ])

        assert code == 1
        assert "is in the past" in capsys.readouterr().out

    def test_pause_unknown_job(self, config_path, capsys):
        code = _run(["--config", config_path, "--pause-job", "missing"])

        assert code == 1
        assert "Booking job not found: missing" in capsys.readouterr().out

    def test_process_empty(self, config_path, capsys):
        code = _run(["--config", config_path, "--process"])

        assert code == 0
        assert "Processed 0 jobs: 0 booked, 0 failed" in capsys.readouterr().out

    def test_no_action_prints_help(self, config_path):
        assert _run(["--config", config_path]) == 1


class TestDaemon:

    def test_run_stops_on_shutdown(self, config_path):
        from amenibook.config import load_config

        shutdown = threading.Event()
        shutdown.set()
        worker = threading.Thread(target=daemon.run, args=(load_config(config_path), shutdown))

        worker.start()
        worker.join(5)

        assert not worker.is_alive()


class TestLambdaHandler:

    def test_runs_one_pass(self, config_path, monkeypatch):
        monkeypatch.setenv("AMENIBOOK_CONFIG", config_path)

        with patch.object(lambda_handler, "get_secret_config", return_value={}) as secret:
            response = lambda_handler.lambda_handler({"config_secret": "test/config"}, None)

        secret.assert_called_once_with("test/config")
        assert response["statusCode"] == 200
        assert json.loads(response["body"]) == {"success": True, "processed": 0, "booked": 0, "failed": 0}

    def test_bad_config(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text("{oops")
        monkeypatch.setenv("AMENIBOOK_CONFIG", str(path))

        with patch.object(lambda_handler, "get_secret_config", return_value={}):
            response = lambda_handler.lambda_handler({}, None)

        assert response["statusCode"] == 500
        assert json.loads(response["body"])["success"] is False

    def test_partial_secret_section_keeps_defaults(self, config_path, monkeypatch):
        monkeypatch.setenv("AMENIBOOK_CONFIG", config_path)
        secret = {"scheduler": {"interval_minutes": 5}, "respage": {"timeout": 10}}

        with patch.object(lambda_handler, "get_secret_config", return_value=secret):
            response = lambda_handler.lambda_handler({}, None)

        assert response["statusCode"] == 200

    def test_pass_failure_returns_500(self, config_path, monkeypatch):
        monkeypatch.setenv("AMENIBOOK_CONFIG", config_path)

        with patch.object(lambda_handler, "get_secret_config", return_value={}), \
                patch.object(lambda_handler, "create_app", side_effect=RuntimeError("database is locked")):
            response = lambda_handler.lambda_handler({}, None)

        assert response["statusCode"] == 500
        assert json.loads(response["body"]) == {"success": False, "error": "database is locked"}

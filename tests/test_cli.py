"""Tests for the command line interface."""

from unittest.mock import patch

from click.testing import CliRunner

from codemate.cli import main


def test_init_db(storage):
    with patch("codemate.cli.open_storage", return_value=storage):
        result = CliRunner().invoke(main, ["init-db"])
    assert result.exit_code == 0
    assert "Database ready" in result.output
    assert storage.db_path.exists()


def test_create_user(storage):
    runner = CliRunner()
    with patch("codemate.cli.open_storage", return_value=storage):
        result = runner.invoke(main, ["create-user", "alex", "--password", "secret"])
        assert result.exit_code == 0
        assert "Created user alex" in result.output
        assert storage.get_user_by_username("alex").password == "secret"

        again = runner.invoke(main, ["create-user", "alex", "--password", "secret"])
    assert again.exit_code == 1
    assert "already exists" in again.output


def test_serve_runs_uvicorn():
    with patch("codemate.cli.uvicorn.run") as run:
        result = CliRunner().invoke(main, ["serve", "--port", "9000"])
    assert result.exit_code == 0
    run.assert_called_once_with("codemate.server:app", host="127.0.0.1", port=9000, reload=False)

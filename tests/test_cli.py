import json
from pathlib import Path

from typer.testing import CliRunner

from deindexer import cli
from deindexer.workflows.errors import BatchAbortedError, MissingCredentialsError

runner = CliRunner()


def test_minimal_help():
    result = runner.invoke(cli.app, [])
    assert result.exit_code == 0
    assert "deindexer remove" in result.output


def test_find_lists_matching_entries():
    result = runner.invoke(cli.app, ["--find", "cache"])
    assert result.exit_code == 0
    assert "--cache-dir" in result.output


def test_find_groups_hits_and_requires_every_term():
    output = cli._run_find("refresh token")
    assert output.startswith("Credentials:")
    assert "DEINDEXER_REFRESH_TOKEN" in output
    assert "DEINDEXER_CLIENT_ID" in output
    assert "Tuning:" not in output
    by_dir = cli._run_find("cache dir")
    assert "--cache-dir" in by_dir
    assert "DEINDEXER_CACHE_DIR" in by_dir
    assert "--no-cache" not in by_dir


def test_find_without_matches_suggests_terms():
    result = runner.invoke(cli.app, ["--find", "sitemap"])
    assert result.exit_code == 0
    assert "No matches for 'sitemap'" in result.output


def test_remove_prints_report(monkeypatch, tmp_path: Path):
    captured = {}

    def fake_run_removal(site, csv_file, **kwargs):
        captured["site"] = site
        captured["kwargs"] = kwargs
        summary = {
            "site_url": "sc-domain:a.com",
            "counts": {"total": 1, "by_status": {"URL is unknown to Google": 1}},
            "deletable": [],
            "deletion": None,
        }
        return summary, 0

    monkeypatch.setattr(cli, "run_removal", fake_run_removal)
    result = runner.invoke(cli.app, ["remove", "a.com", str(tmp_path / "urls.csv"), "--concurrency", "5"])

    assert result.exit_code == 0
    assert "❓ URL is unknown to Google: 1 pages" in result.output
    assert captured["site"] == "a.com"
    assert captured["kwargs"]["config"].concurrency == 5


def test_remove_json_output(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(cli, "run_removal", lambda *a, **k: ({"counts": {"total": 0}}, 0))
    result = runner.invoke(cli.app, ["remove", "a.com", str(tmp_path / "urls.csv"), "--json"])
    assert result.exit_code == 0
    assert json.loads(result.stdout.strip().splitlines()[-1]) == {"counts": {"total": 0}}


def test_remove_missing_credentials_exits_2(monkeypatch, tmp_path: Path):
    def boom(*args, **kwargs):
        raise MissingCredentialsError()

    monkeypatch.setattr(cli, "run_removal", boom)
    result = runner.invoke(cli.app, ["remove", "a.com", str(tmp_path / "urls.csv")])
    assert result.exit_code == 2


def test_remove_missing_csv_exits_2(tmp_path: Path):
    result = runner.invoke(cli.app, ["remove", "a.com", str(tmp_path / "missing.csv"), "--dry-run"])
    assert result.exit_code == 2


def test_remove_batch_abort_exits_3(monkeypatch, tmp_path: Path):
    def boom(*args, **kwargs):
        raise BatchAbortedError(0, 1, "https://a.com/x") from RuntimeError("unmapped")

    monkeypatch.setattr(cli, "run_removal", boom)
    result = runner.invoke(cli.app, ["remove", "a.com", str(tmp_path / "urls.csv")])
    assert result.exit_code == 3

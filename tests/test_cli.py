"""Tests for the command line interface."""

import pytest
import yaml

from dbquery_exporter import __version__
from dbquery_exporter.cli import main


def _config_file(tmp_path, dsn, metrics):
    path = tmp_path / "config.yml"
    path.write_text(yaml.dump({"DSN": dsn, "Metrics": metrics}), encoding="utf-8")
    return str(path)


def test_version(capsys):
    main(["version"])
    assert __version__ in capsys.readouterr().out


def test_no_command_exits():
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1


def test_missing_config_exits(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(["-c", str(tmp_path / "absent.yml"), "scrape"])
    assert exc.value.code == 1


def test_scrape_prints_metrics(tmp_path, sqlite_dsn, capsys):
    path = _config_file(tmp_path, sqlite_dsn, {
        "active_sessions": {
            "Query": "SELECT region, count(*) AS c FROM sessions GROUP BY region",
            "Type": "gauge",
            "Description": "Active sessions",
            "Labels": ["region"],
            "Value": "c",
        },
    })
    main(["-c", path, "scrape"])
    out = capsys.readouterr().out
    assert "# HELP query_exporter_active_sessions Active sessions" in out
    assert 'query_exporter_active_sessions{region="eu"} 3.0' in out


def test_check_config_ok(tmp_path, capsys):
    path = _config_file(tmp_path, "sqlite://", {
        "jobs": {"Query": "SELECT 1 AS v", "Type": "counter", "Labels": ["queue"], "Value": "v"},
    })
    main(["-c", path, "check-config"])
    out = capsys.readouterr().out
    assert "query_exporter_jobs" in out
    assert "1 metric(s) OK" in out


def test_check_config_flags_invalid_type(tmp_path, capsys):
    path = _config_file(tmp_path, "sqlite://", {
        "lat": {"Query": "SELECT 1 AS v", "Type": "histogram", "Value": "v"},
    })
    with pytest.raises(SystemExit) as exc:
        main(["-c", path, "check-config"])
    assert exc.value.code == 1
    assert "INVALID type 'histogram'" in capsys.readouterr().out


def test_serve_rejects_bad_bind(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(yaml.dump({"DSN": "sqlite://", "Server": {"Bind": 9104}}), encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        main(["-c", str(path), "serve"])
    assert exc.value.code == 1

"""Tests for the installs-reporter CLI."""

import csv

import pytest
import yaml
from click.testing import CliRunner

from installs_reporter import settings as settings_mod
from installs_reporter.cli import main

from fixtures.devices import sample_fleet


@pytest.fixture
def snapshot(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(settings_mod, "_USER_SETTINGS", tmp_path / "no-user-config.yaml")
    path = tmp_path / "fleet.yaml"
    with open(path, "w") as f:
        yaml.safe_dump({"devices": sample_fleet()[:5]}, f)
    return str(path)


@pytest.fixture
def runner():
    return CliRunner()


class TestOptions:
    def test_prints_yaml(self, runner, snapshot):
        result = runner.invoke(main, ["options", "-i", snapshot])
        assert result.exit_code == 0, result.output
        payload = yaml.safe_load(result.output)
        assert payload["managed_installs"] == ["Chrome", "Firefox", "Office", "Slack", "Zoom"]
        assert payload["devices_with_data"] == 3


class TestView:
    def test_summary(self, runner, snapshot):
        result = runner.invoke(main, ["view", "-i", snapshot])
        assert result.exit_code == 0, result.output
        assert "Installs Config Report" in result.output
        assert "Rows: 3" in result.output
        assert "Device Status" in result.output

    def test_yaml_generated_report(self, runner, snapshot):
        result = runner.invoke(
            main,
            ["view", "-i", snapshot, "--format", "yaml", "--item", "Chrome", "--usage", "engineering", "--sort", "Serial"],
        )
        assert result.exit_code == 0, result.output
        payload = yaml.safe_load(result.output)
        assert payload["mode"] == "flat"
        assert [r["serial_number"] for r in payload["rows"]] == ["M001", "W001"]
        assert payload["facet_counts"]["usage"]["Staff"] == 1
        assert payload["meta"]["report_stamp"]

    def test_invalid_status_value(self, runner, snapshot):
        result = runner.invoke(main, ["view", "-i", snapshot, "--install-status", "exploded"])
        assert result.exit_code != 0
        assert "--install-status" in result.output

    def test_missing_config_file(self, runner, snapshot, tmp_path):
        result = runner.invoke(main, ["--config", str(tmp_path / "none.yaml"), "view", "-i", snapshot])
        assert result.exit_code == 1
        assert "Settings file not found" in result.output

    def test_unreadable_snapshot(self, runner, snapshot, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("just a string\n")
        result = runner.invoke(main, ["view", "-i", str(bad)])
        assert result.exit_code == 1
        assert "devices" in result.output


class TestExport:
    def test_aggregate_csv(self, runner, snapshot, tmp_path):
        out = tmp_path / "out" / "config.csv"
        result = runner.invoke(main, ["export", "-i", snapshot, "-o", str(out), "--fleet", "Alpha"])
        assert result.exit_code == 0, result.output
        assert "Wrote 2 aggregate rows" in result.output
        with open(out, newline="") as f:
            rows = list(csv.reader(f))
        assert rows[0][:3] == ["Device", "Serial", "Asset Tag"]
        assert [r[1] for r in rows[1:]] == ["W001", "M001"]

    def test_flat_csv_sorted_descending(self, runner, snapshot, tmp_path):
        out = tmp_path / "flat.csv"
        args = ["export", "-i", snapshot, "-o", str(out), "--item", "Chrome", "--sort", "Device", "--desc"]
        result = runner.invoke(main, args)
        assert result.exit_code == 0, result.output
        with open(out, newline="") as f:
            rows = list(csv.reader(f))
        assert [r[0] for r in rows[1:]] == ["STAFF-PC-02", "ENG-PC-01", "ENG-MAC-01"]

    def test_empty_result_writes_header_only(self, runner, snapshot, tmp_path):
        out = tmp_path / "empty.csv"
        result = runner.invoke(main, ["export", "-i", snapshot, "-o", str(out), "--search", "no-such-thing"])
        assert result.exit_code == 0, result.output
        assert out.read_text().count("\n") == 1


class TestMessages:
    def test_errors(self, runner, snapshot):
        result = runner.invoke(main, ["messages", "-i", snapshot])
        assert result.exit_code == 0, result.output
        assert "[munki] Checksum mismatch" in result.output
        assert "[cimian] Download timed out  (W001)" in result.output

    def test_item_warnings(self, runner, snapshot):
        result = runner.invoke(main, ["messages", "-i", snapshot, "--kind", "warning", "--item", "chrome"])
        assert result.exit_code == 0, result.output
        assert "Restart required" in result.output

    def test_none(self, runner, snapshot):
        result = runner.invoke(main, ["messages", "-i", snapshot, "--item", "Zoom"])
        assert result.output.strip() == "No error messages."

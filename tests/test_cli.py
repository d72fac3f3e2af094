"""
Command line tests for reconcile-fills.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

import json

import pytest
from click.testing import CliRunner

from reconcile_fills import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def fills_file(tmp_path, fills_csv):
    path = tmp_path / "fills.csv"
    path.write_text(fills_csv, encoding="utf-8")
    return path


def test_report_printed(runner, fills_file):
    result = runner.invoke(main, [str(fills_file)])

    assert result.exit_code == 0, result.output
    assert result.output.count("Security\tOpenDate") == 2
    assert "ADA-USD\t05-07-2021\t1.7039\t489.19\t0\t\t\t" in result.output
    assert "Fingerprint: sha256:" in result.output


def test_show_records_and_summary(runner, fills_file):
    result = runner.invoke(main, [str(fills_file), "--show-records", "--summary"])

    assert result.exit_code == 0, result.output
    assert "TradeRecord{product='ADA-USD', BUY" in result.output
    assert "Closed Lots" in result.output


def test_json_export(runner, fills_file, tmp_path):
    out = tmp_path / "lots.json"

    result = runner.invoke(main, [str(fills_file), "--json", str(out)])

    assert result.exit_code == 0, result.output
    assert "Exported 4 lots" in result.output
    assert len(json.loads(out.read_text(encoding="utf-8"))) == 4


def test_remainder_mode_option(runner, fills_file):
    product = runner.invoke(main, [str(fills_file)])
    legacy = runner.invoke(main, [str(fills_file), "--remainder-mode", "legacy_sum"])

    assert legacy.exit_code == 0, legacy.output
    assert product.output != legacy.output


def test_undersupplied_file_fails(runner, tmp_path, fills_csv):
    lines = fills_csv.splitlines()
    # Drop both ADA buys, leaving an ADA sell with nothing to close
    kept = [line for line in lines if "7204216" not in line and "7204250" not in line]
    path = tmp_path / "bad.csv"
    path.write_text("\n".join(kept) + "\n", encoding="utf-8")

    result = runner.invoke(main, [str(path)])

    assert result.exit_code == 1
    assert "Reconciliation failed" in result.output


def test_bad_header_fails(runner, tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("date,type,amount\n2021-01-01,BUY,1\n", encoding="utf-8")

    result = runner.invoke(main, [str(path)])

    assert result.exit_code == 1
    assert "Unexpected CSV header" in result.output


def test_invalid_env_config(runner, fills_file):
    result = runner.invoke(main, [str(fills_file)], env={"LOT_REMAINDER_MODE": "bogus"})

    assert result.exit_code == 2
    assert "Configuration error" in result.output


def test_missing_file(runner, tmp_path):
    result = runner.invoke(main, [str(tmp_path / "nope.csv")])

    assert result.exit_code != 0

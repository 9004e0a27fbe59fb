"""Tests for the click CLI."""

import json

from click.testing import CliRunner

from skimap.cli import cli

from sample_data import feature_collection


def test_summary(tmp_path):
    path = tmp_path / "soelden.geojson"
    path.write_text(json.dumps(feature_collection()), encoding='utf-8')

    result = CliRunner().invoke(cli, ['summary', str(path)])
    assert result.exit_code == 0, result.output
    assert "1 pistes, 1 lifts, 1 ski areas" in result.output
    assert "[3] Giggijoch (blue)" in result.output
    assert "pistes: 2 in polygon" in result.output


def test_summary_rejects_bad_file(tmp_path):
    path = tmp_path / "bad.geojson"
    path.write_text(json.dumps({'type': 'Feature'}), encoding='utf-8')

    result = CliRunner().invoke(cli, ['summary', str(path)])
    assert result.exit_code != 0
    assert "FeatureCollection" in result.output


def test_locate_origin():
    result = CliRunner().invoke(cli, ['locate', '46.9147', '10.9975', '-e', '2284'])
    assert result.exit_code == 0
    assert "x=0.00 y=0.00" in result.output


def test_locate_outside_region_still_projects():
    result = CliRunner().invoke(cli, ['locate', '48.0', '12.0'])
    assert result.exit_code == 0
    assert "x=" in result.output


def test_pick(tmp_path):
    path = tmp_path / "soelden.geojson"
    path.write_text(json.dumps(feature_collection()), encoding='utf-8')

    result = CliRunner().invoke(cli, ['pick', str(path), '46.905', '11.0'])
    assert result.exit_code == 0, result.output
    assert "piste piste-merged-101-102 (Giggijoch) at 0 m" in result.output

    result = CliRunner().invoke(cli, ['pick', str(path), '46.905', '11.01'])
    assert "Nothing within 15.0 units" in result.output

    result = CliRunner().invoke(cli, ['pick', str(path), '46.905', '11.006', '-r', '100'])
    assert "piste piste-merged-101-102" in result.output

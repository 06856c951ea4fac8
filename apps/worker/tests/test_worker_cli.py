"""
Tests for the Worker CLI
========================
"""

import click
import pytest
from click.testing import CliRunner

from worker import __version__
from worker.cli import cli, parse_uuid


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_help_lists_commands():
    result = CliRunner().invoke(cli, ["--help"])
    assert result.exit_code == 0
    for command in ("ingest:demo", "standings:rebuild", "stats:rebuild",
                    "matches:finalize", "sessions:purge", "seasons:list"):
        assert command in result.output


def test_parse_uuid():
    value = "5f0c6a2e-8d1b-4c3a-9e7f-1a2b3c4d5e6f"
    assert str(parse_uuid(value)) == value
    with pytest.raises(click.BadParameter):
        parse_uuid("not-a-uuid")


def test_finalize_rejects_bad_arguments():
    runner = CliRunner()
    result = runner.invoke(cli, ["matches:finalize", "not-a-uuid", "1", "0"])
    assert result.exit_code != 0
    assert "Invalid id" in result.output

    result = runner.invoke(cli, ["matches:finalize", "5f0c6a2e-8d1b-4c3a-9e7f-1a2b3c4d5e6f", "-1", "0"])
    assert result.exit_code != 0

"""
Tests for the maintenance CLI (scripts/label_db_cli.py)
"""

import importlib.util
import json
from argparse import Namespace
from pathlib import Path

import pytest

from domains.core.exceptions import DatabaseUnavailableError

from helpers import make_repository, raw_label

CLI_PATH = Path(__file__).resolve().parent.parent / "scripts" / "label_db_cli.py"


@pytest.fixture(scope="module")
def cli():
    module_spec = importlib.util.spec_from_file_location("label_db_cli", CLI_PATH)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


@pytest.fixture
def repository():
    return make_repository({"labels": [raw_label("animal"), raw_label("dog", ["animal"])], "texts": []})


def test_check_ok(cli, repository, capsys):
    assert cli.cmd_check(repository, Namespace()) == 0
    assert "2 个标签" in capsys.readouterr().out


def test_check_reports_error(cli, capsys):
    assert cli.cmd_check(make_repository("{"), Namespace()) == 1
    assert "valid JSON" in capsys.readouterr().out


def test_export_to_file(cli, repository, tmp_path):
    output = tmp_path / "snapshot.json"
    assert cli.cmd_export(repository, Namespace(output=str(output))) == 0

    exported = json.loads(output.read_text(encoding="utf-8"))
    assert [label["name"] for label in exported["labels"]] == ["animal", "dog"]


def test_export_refuses_broken_store(cli):
    with pytest.raises(DatabaseUnavailableError):
        cli.cmd_export(make_repository("[]"), Namespace(output=None))


def test_history_and_restore(cli, repository, capsys):
    repository.save({"labels": [], "texts": []})

    assert cli.cmd_history(repository, Namespace()) == 0
    assert "共 1 条" in capsys.readouterr().out

    assert cli.cmd_restore(repository, Namespace(index=0)) == 0
    assert [label["name"] for label in repository.last_saved()["labels"]] == ["animal", "dog"]


def test_restore_out_of_range(cli, repository):
    assert cli.cmd_restore(repository, Namespace(index=3)) == 1

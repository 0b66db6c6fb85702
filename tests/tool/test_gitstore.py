"""Tests for the gitstore command line tool."""

import json
from pathlib import Path

import pytest
import yaml

from gitstore.tool.gitstore import main


@pytest.fixture(autouse=True)
def chdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


def run_main(monkeypatch: pytest.MonkeyPatch, *args: str) -> None:
    monkeypatch.setattr("sys.argv", ["gitstore", *args])
    main()


def test_status_local(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test the status of a store without remote settings."""
    run_main(monkeypatch, "status", "--base-dir", str(tmp_path / "store"))
    result = yaml.safe_load(capsys.readouterr().out)
    assert result["mode"] == "LOCAL"
    assert result["pending"] is False
    assert result["error"].startswith("Missing env: GITSTORE_GIT_URL")
    assert result["revision"] is None
    assert result["steps"] == []
    assert (tmp_path / "store" / "gitstore").is_dir()


def test_status_reads_env_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test settings are loaded from a .env file in the current directory."""
    (tmp_path / ".env").write_text("GITSTORE_GIT_BRANCH=configs\n")
    run_main(monkeypatch, "status")
    result = yaml.safe_load(capsys.readouterr().out)
    assert result["branch"] == "configs"
    assert (tmp_path / "data").is_dir()


def test_write_and_read(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test writing and reading back a document."""
    run_main(monkeypatch, "write", "config.json", "--data", '{"port": 8080}')
    state = yaml.safe_load(capsys.readouterr().out)
    assert state["mode"] == "LOCAL"
    assert json.loads((tmp_path / "data" / "config.json").read_text()) == {"port": 8080}

    run_main(monkeypatch, "read", "config.json")
    assert json.loads(capsys.readouterr().out) == {"port": 8080}


def test_write_from_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test writing a document from a file."""
    source = tmp_path / "input.json"
    source.write_text('{"pools": []}')
    run_main(monkeypatch, "write", "provider_pools.json", "--file", str(source))
    capsys.readouterr()
    assert json.loads((tmp_path / "provider_pools.json").read_text()) == {"pools": []}


def test_write_invalid_json(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test invalid input is reported as an error."""
    with pytest.raises(SystemExit) as exc:
        run_main(monkeypatch, "write", "config.json", "--data", "{not json")
    assert exc.value.code == 1
    assert "gitstore error:" in capsys.readouterr().err


def test_read_missing(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test reading a missing key is reported as an error."""
    with pytest.raises(SystemExit) as exc:
        run_main(monkeypatch, "read", "missing.json")
    assert exc.value.code == 1
    assert "No stored content found for 'missing.json'" in capsys.readouterr().err


def test_sync(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test syncing a directory into the local mirror."""
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "a.json").write_text("{}")
    run_main(monkeypatch, "sync", "--dir", "configs")
    state = yaml.safe_load(capsys.readouterr().out)
    assert state["mode"] == "LOCAL"
    assert (tmp_path / "data" / "configs" / "a.json").read_text() == "{}"

"""Integration tests for the cadence CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cadence import cli
from cadence.errors import InsufficientSpace, IOFailure, RuntimeFailure, ValidationError
from tests.helpers.fs import AudioStubSpec, build_source_dir, tree_snapshot


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CADENCE_FORMAT", raising=False)
    monkeypatch.delenv("CADENCE_OVERWRITE", raising=False)


@pytest.fixture
def library(tmp_path: Path) -> Path:
    root = tmp_path / "library"
    build_source_dir(
        root,
        [
            AudioStubSpec(
                "one.mp3",
                size_bytes=64,
                tags={"artist": "The Band", "album": "Debut", "title": "Opener", "track": 1},
            ),
            AudioStubSpec(
                "two.flac",
                size_bytes=64,
                tags={"artist": "The Band", "album": "Debut", "title": "Closer", "track": 2},
            ),
        ],
    )
    return root


def _args(tmp_path: Path, *extra: str) -> list[str]:
    return [*extra, "--config", str(tmp_path / "no-settings.json")]


def _json_output(capsys: pytest.CaptureFixture[str]) -> dict:
    out = capsys.readouterr().out.strip().splitlines()
    return json.loads(out[-1])


def test_organize_json(tmp_path: Path, library: Path, capsys) -> None:
    dest = tmp_path / "dest"
    code = cli.main(
        _args(
            tmp_path,
            "organize",
            str(library),
            "--dest",
            str(dest),
            "--format",
            "%artist/%album/{%track - }%title.%extension",
            "--replace-the",
            "--json",
        )
    )
    assert code == 0
    envelope = _json_output(capsys)
    assert envelope["command"] == "organize"
    assert envelope["schema_version"] == "v1"
    assert envelope["data"]["state"] == "COMPLETED"
    assert envelope["data"]["counts"]["SUCCESS"] == 2
    assert sorted(tree_snapshot(dest)) == [
        "Band/Debut/1 - Opener.mp3",
        "Band/Debut/2 - Closer.flac",
    ]
    assert (library / "one.mp3").exists()


def test_organize_move_human_output(tmp_path: Path, library: Path, capsys) -> None:
    dest = tmp_path / "dest"
    code = cli.main(
        _args(
            tmp_path,
            "organize",
            str(library / "one.mp3"),
            "--dest",
            str(dest),
            "--format",
            "%title.%extension",
            "--move",
        )
    )
    assert code == 0
    out = capsys.readouterr().out
    assert "[1/1] SUCCESS" in out
    assert "state=COMPLETED" in out
    assert not (library / "one.mp3").exists()
    assert (dest / "Opener.mp3").exists()


def test_organize_rejects_bad_format(tmp_path: Path, library: Path, capsys) -> None:
    dest = tmp_path / "dest"
    code = cli.main(
        _args(tmp_path, "organize", str(library), "--dest", str(dest), "--format", "%bogus")
    )
    assert code == ValidationError.exit_code
    assert "Unknown tag" in capsys.readouterr().err
    assert not dest.exists()


def test_organize_without_sources(tmp_path: Path) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    code = cli.main(_args(tmp_path, "organize", str(empty), "--dest", str(tmp_path / "d")))
    assert code == ValidationError.exit_code


def test_settings_file_is_used(tmp_path: Path, library: Path) -> None:
    config = tmp_path / "settings.json"
    config.write_text(json.dumps({"format": "%album/%title.%extension", "replace_spaces": True}))
    dest = tmp_path / "dest"
    code = cli.main(
        ["organize", str(library / "two.flac"), "--dest", str(dest), "--config", str(config)]
    )
    assert code == 0
    assert sorted(tree_snapshot(dest)) == ["Debut/Closer.flac"]


def test_default_settings_path_is_used(
    tmp_path: Path, library: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    home = tmp_path / "home"
    config = home / ".config" / "cadence" / "settings.json"
    config.parent.mkdir(parents=True)
    config.write_text(json.dumps({"format": "%title.%extension"}))
    monkeypatch.setenv("HOME", str(home))
    dest = tmp_path / "dest"
    code = cli.main(["organize", str(library / "one.mp3"), "--dest", str(dest)])
    assert code == 0
    assert sorted(tree_snapshot(dest)) == ["Opener.mp3"]


def test_preview_json(tmp_path: Path, library: Path, capsys) -> None:
    dest = tmp_path / "dest"
    code = cli.main(
        _args(
            tmp_path,
            "preview",
            str(library),
            "--dest",
            str(dest),
            "--format",
            "%artist/%title.%extension",
            "--limit",
            "1",
            "--json",
        )
    )
    assert code == 0
    data = _json_output(capsys)["data"]
    assert data["file_count"] == 2
    assert data["previews"] == [str(dest / "The Band" / "Opener.mp3")]
    assert not dest.exists()


def test_tags_lists_every_tag(capsys) -> None:
    assert cli.main(["tags", "--json"]) == 0
    tags = _json_output(capsys)["data"]["tags"]
    assert tags["Artist's initial"] == "artistinitial"
    assert len(tags) == 16


def test_no_command_prints_help(capsys) -> None:
    assert cli.main([]) == 1
    assert "usage" in capsys.readouterr().out


@pytest.mark.parametrize(
    ("exc", "code"),
    [
        (ValidationError("bad input"), ValidationError.exit_code),
        (OSError("disk error"), IOFailure.exit_code),
        (RuntimeFailure("boom"), RuntimeFailure.exit_code),
    ],
)
def test_cli_maps_errors(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, exc, code) -> None:
    def raise_error(_args, **_kwargs):
        raise exc

    monkeypatch.setattr("cadence.commands.organize.run_organize", raise_error)
    argv = _args(tmp_path, "organize", "x.mp3", "--dest", str(tmp_path / "d"))
    assert cli.main(argv) == code


def test_failed_batch_exit_codes() -> None:
    from cadence.commands.organize import _exit_code
    from cadence.core.models import BatchState, FileOutcome, FileResult, OrganizeResult

    def failed(reason: str) -> OrganizeResult:
        item = FileResult(Path("/src/a.mp3"), None, FileOutcome.FAILED, reason)
        return OrganizeResult(state=BatchState.FAILED, files=(item,), error=reason)

    assert _exit_code(failed("insufficient-space")) == InsufficientSpace.exit_code
    assert _exit_code(failed("device disconnected")) == IOFailure.exit_code

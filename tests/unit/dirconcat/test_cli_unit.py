from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from dirconcat import __version__, cli
from dirconcat.config import CompressionLevel

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.mark.unit
def test_parse_args_maps_flags_to_settings() -> None:
    max_size = 1234
    settings = cli.parse_args(
        [
            "-i",
            "src",
            "-o",
            "out.txt",
            "-s",
            "*.log build/",
            "-n",
            "important.log",
            "-b",
            "-z",
            str(max_size),
            "-k",
            "3",
            "--ignore-hidden",
            "--compress",
            "--level",
            "high",
            "--no-overwrite",
        ],
    )

    assert settings.input == Path("src")
    assert settings.output == Path("out.txt")
    assert settings.skip == "*.log build/"
    assert settings.include == "important.log"
    assert settings.include_binary is True
    assert settings.max_file_size == max_size
    assert settings.chunks == 3
    assert settings.ignore_hidden is True
    assert settings.overwrite is False
    assert settings.effective_level is CompressionLevel.HIGH


@pytest.mark.unit
def test_parse_args_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["--version"])

    assert exc_info.value.code == 0
    captured = capsys.readouterr()
    assert __version__ in captured.out


@pytest.mark.unit
def test_parse_args_rejects_unknown_level() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args(["--level", "maximum"])


@pytest.mark.unit
def test_config_file_supplies_defaults_and_flags_win(tmp_path: Path) -> None:
    config = tmp_path / "dirconcat.yaml"
    config.write_text("chunks: 2\nskip: '*.log'\ncompress: true\ncompression_level: medium\n", encoding="utf-8")

    settings = cli.parse_args(["--config", str(config), "-k", "4"])

    assert settings.chunks == 4
    assert settings.skip == "*.log"
    assert settings.effective_level is CompressionLevel.MEDIUM


@pytest.mark.unit
def test_missing_config_file_is_a_usage_error(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["--config", str(tmp_path / "nope.yaml")])

    assert exc_info.value.code == 2


@pytest.mark.unit
def test_build_policy_merges_skip_and_ignore_file(tmp_path: Path) -> None:
    ignore = tmp_path / ".concatignore"
    ignore.write_text("# generated\nbuild/\n*.tmp\n", encoding="utf-8")
    settings = cli.parse_args(["-s", "*.log", "-n", "keep.log", "-c", str(ignore)])

    policy = cli.build_policy(settings)

    assert policy.exclude.patterns == ("*.log", "build/", "*.tmp")
    assert policy.include.patterns == ("keep.log",)


@pytest.mark.unit
def test_test_mode_reports_decision_without_touching_files(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    mocker: MockerFixture,
) -> None:
    walker = mocker.patch.object(cli, "collect_files")

    exit_code = cli.main(
        [
            "-i",
            str(tmp_path / "does-not-exist"),
            "-s",
            "*.log",
            "-n",
            "important.log",
            "-c",
            str(tmp_path / "missing-ignore"),
            "-t",
            "debug.log",
        ],
    )

    assert exit_code == 0
    walker.assert_not_called()
    out = capsys.readouterr().out.splitlines()
    assert out == ["Matches: False", "Includes: important.log", "Excludes: *.log"]


@pytest.mark.unit
def test_test_mode_treats_trailing_slash_as_directory(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["-s", "build/", "-c", str(tmp_path / "missing-ignore"), "-t", "build/"])

    assert exit_code == 0
    assert "Matches: False" in capsys.readouterr().out


@pytest.mark.unit
def test_main_fails_on_missing_input_directory(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(
        ["-i", str(tmp_path / "nope"), "-o", str(tmp_path / "out.txt"), "-c", str(tmp_path / "missing-ignore")],
    )

    assert exit_code == 1
    assert "input directory does not exist" in capsys.readouterr().err
    assert not (tmp_path / "out.txt").exists()


@pytest.mark.unit
def test_main_refuses_to_overwrite_without_flag(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    src = tmp_path / "src"
    src.mkdir()
    (src / "a.txt").write_text("hello", encoding="utf-8")
    output = tmp_path / "out.txt"
    output.write_text("keep me", encoding="utf-8")

    exit_code = cli.main(
        ["-i", str(src), "-o", str(output), "--no-overwrite", "-c", str(tmp_path / "missing-ignore")],
    )

    assert exit_code == 1
    assert "overwrite flag is not set" in capsys.readouterr().err
    assert output.read_text(encoding="utf-8") == "keep me"


@pytest.mark.unit
def test_main_reports_malformed_pattern(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["-i", str(tmp_path), "-s", "[abc", "-c", str(tmp_path / "missing-ignore")])

    assert exit_code == 1
    assert "Invalid glob pattern '[abc'" in capsys.readouterr().err


@pytest.mark.unit
def test_main_refuses_to_overwrite_any_existing_chunk(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    src = tmp_path / "src"
    src.mkdir()
    (src / "a.txt").write_text("hello", encoding="utf-8")
    output = tmp_path / "out" / "output.txt"
    output.parent.mkdir()
    second_chunk = tmp_path / "out" / "output2.txt"
    second_chunk.write_text("keep me", encoding="utf-8")

    exit_code = cli.main(
        ["-i", str(src), "-o", str(output), "-k", "3", "--no-overwrite", "-c", str(tmp_path / "missing-ignore")],
    )

    assert exit_code == 1
    assert "overwrite flag is not set" in capsys.readouterr().err
    assert second_chunk.read_text(encoding="utf-8") == "keep me"
    assert not output.exists()


@pytest.mark.unit
def test_parse_args_reports_invalid_chunk_count_as_usage_error(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["-k", "0"])

    assert exc_info.value.code == 2
    assert "invalid settings: chunks" in capsys.readouterr().err


@pytest.mark.unit
def test_parse_args_reports_unknown_config_key_as_usage_error(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    config = tmp_path / "dirconcat.yaml"
    config.write_text("chunkz: 2\n", encoding="utf-8")

    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["--config", str(config)])

    assert exc_info.value.code == 2
    assert "invalid settings: chunkz" in capsys.readouterr().err

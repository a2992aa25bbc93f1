"""Tests for the command-line surface and exit codes."""

import pytest

from publish_manager import step_runner
from publish_manager.cli import build_arg_parser, main


def test_parser_defaults():
    args = build_arg_parser().parse_args([])

    assert args.configuration == "Release"
    assert args.architecture == "x64"
    assert not args.self_contained
    assert not args.single_file
    assert not args.trimmed
    assert args.output_dir is None
    assert not args.clean
    assert not args.dry_run


def test_enum_values_are_case_insensitive():
    args = build_arg_parser().parse_args(["-c", "debug", "--architecture", "ARM64"])

    assert args.configuration == "Debug"
    assert args.architecture == "arm64"


@pytest.mark.parametrize("argv", [["--architecture", "mips"], ["--configuration", "Profile"]])
def test_invalid_enum_fails_before_side_effects(project_root, toolchain, argv):
    output_dir = project_root / "artifacts" / "win-x64"
    output_dir.mkdir(parents=True)

    with pytest.raises(SystemExit) as excinfo:
        main(argv + ["--clean", "--root", str(project_root)])

    assert excinfo.value.code == 2
    assert toolchain.calls == []
    assert output_dir.exists()


def test_success_returns_zero(project_root, toolchain, capsys):
    assert main(["--self-contained", "--single-file"], default_root=project_root) == 0

    (argv,) = toolchain.calls
    assert argv[argv.index("-o") + 1] == str(project_root / "artifacts" / "win-x64")
    assert "Publish succeeded" in capsys.readouterr().out


def test_failure_mirrors_toolchain_exit_code(project_root, toolchain, capsys):
    toolchain.returncodes["publish"] = 5

    assert main(["--root", str(project_root)]) == 5

    captured = capsys.readouterr()
    assert "dotnet publish failed with exit code 5" in captured.err
    assert "Publish succeeded" not in captured.out


def test_output_dir_option(project_root, toolchain, tmp_path_factory):
    target = tmp_path_factory.mktemp("out")

    assert main(["-o", str(target), "--root", str(project_root)]) == 0

    (argv,) = toolchain.calls
    assert argv[argv.index("-o") + 1] == str(target)


def test_reject_trim_policy_is_validation_error(project_root, toolchain):
    (project_root / "publish.toml").write_text('trim_policy = "reject"\n', encoding="utf-8")

    assert main(["--trimmed", "--root", str(project_root)]) == 2
    assert toolchain.calls == []


def test_missing_project_is_config_error(tmp_path, toolchain, capsys):
    assert main(["--root", str(tmp_path)]) == 2
    assert toolchain.calls == []
    assert "No .csproj" in capsys.readouterr().err


def test_dry_run_returns_zero(project_root, toolchain):
    assert main(["--dry-run", "--clean", "--root", str(project_root)]) == 0
    assert toolchain.calls == []


def test_explicit_root_wins_over_config_location(project_root, toolchain, tmp_path_factory):
    shared = tmp_path_factory.mktemp("shared")
    config_file = shared / "publish.toml"
    config_file.write_text('artifact_name = "Shared.exe"\n', encoding="utf-8")

    assert main(["--root", str(project_root), "--config", str(config_file)]) == 0

    (argv,) = toolchain.calls
    assert argv[2] == str(project_root.resolve() / "App" / "App.csproj")
    assert argv[argv.index("-o") + 1] == str(project_root.resolve() / "artifacts" / "win-x64")


def test_interrupt_returns_130(project_root, monkeypatch, capsys):
    class Child:
        def __init__(self):
            self.waits = 0

        def wait(self):
            self.waits += 1
            if self.waits == 1:
                raise KeyboardInterrupt
            return -2

        def poll(self):
            return None

        def terminate(self):
            pass

    monkeypatch.setattr(step_runner.subprocess, "Popen", lambda argv, cwd=None, env=None: Child())

    assert main(["--root", str(project_root)]) == 130
    assert "[ERROR] Interrupted" in capsys.readouterr().err

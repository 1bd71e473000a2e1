import os
import subprocess
from unittest.mock import patch

import pytest

from npmload.executor import CommandExecutionError, CommandExecutor


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def mock_run():
    with patch("npmload.executor.subprocess.run", return_value=_completed()) as run:
        yield run


@pytest.fixture(autouse=True)
def mock_which(fake_which):
    with patch("npmload.executor.shutil.which", side_effect=fake_which) as which:
        yield which


def _argv(call):
    return call.args[0]


# --- planning ---

def test_plan_points_create_command_at_folder(quiet_console):
    executor = CommandExecutor("my-app", console=quiet_console)
    commands = ["npx create-next-app@latest . --yes --use-npm", "npx create-vite@latest .", "npm install mongoose"]

    assert executor.plan(commands) == [
        "npx create-next-app@latest my-app --yes --use-npm",
        "npx create-vite@latest my-app",
        "npm install mongoose",
    ]


def test_plan_quotes_folder_with_spaces(quiet_console):
    executor = CommandExecutor("my app", console=quiet_console)
    assert executor.plan(["npx create-vite@latest ."]) == ["npx create-vite@latest 'my app'"]


def test_plan_ignores_dots_inside_arguments(quiet_console):
    executor = CommandExecutor("my-app", console=quiet_console)
    commands = ["npm install lodash.merge"]
    assert executor.plan(commands) == commands
    assert executor.needs_folder(commands)


def test_plan_leaves_commands_alone_in_current_folder(quiet_console):
    executor = CommandExecutor(".", console=quiet_console)
    commands = ["npx create-vite@latest ."]
    assert executor.plan(commands) == commands


def test_needs_folder(quiet_console):
    assert CommandExecutor("my-app", console=quiet_console).needs_folder(["npm install express"])
    assert not CommandExecutor("my-app", console=quiet_console).needs_folder(["npx create-vite@latest ."])
    assert not CommandExecutor(".", console=quiet_console).needs_folder(["npm install express"])


# --- folder handling ---

def test_creates_and_enters_folder_before_first_command(isolated_env, quiet_console, mock_run):
    seen_cwd = []
    mock_run.side_effect = lambda *args, **kwargs: seen_cwd.append(os.getcwd()) or _completed()

    CommandExecutor("my-app", console=quiet_console).run_all(["npm install left-pad"])

    target = isolated_env / "my-app"
    assert target.is_dir()
    assert seen_cwd == [str(target)]


def test_existing_folder_is_reused(isolated_env, quiet_console, mock_run):
    (isolated_env / "my-app").mkdir()

    CommandExecutor("my-app", console=quiet_console).run_all(["npm install left-pad"])

    assert os.getcwd() == str(isolated_env / "my-app")
    mock_run.assert_called_once()


def test_enters_folder_created_by_scaffolder(isolated_env, quiet_console, mock_run):
    seen = []

    def fake_run(argv, **kwargs):
        seen.append((argv, os.getcwd()))
        if "create-vite@latest" in argv:
            os.mkdir("my-app")
        return _completed()

    mock_run.side_effect = fake_run

    CommandExecutor("my-app", console=quiet_console).run_all(
        ["npx create-vite@latest .", "npm install zustand"]
    )

    assert seen[0] == (["/usr/bin/npx", "create-vite@latest", "my-app"], str(isolated_env))
    assert seen[1] == (["/usr/bin/npm", "install", "zustand"], str(isolated_env / "my-app"))


# --- execution ---

def test_single_command_runs_exactly_once(quiet_console, mock_run):
    CommandExecutor(console=quiet_console).run_all(["npm install left-pad"])

    mock_run.assert_called_once()
    assert _argv(mock_run.call_args) == ["/usr/bin/npm", "install", "left-pad"]


def test_failure_stops_remaining_commands(quiet_console, mock_run):
    mock_run.side_effect = [_completed(0), _completed(1), _completed(0)]

    with pytest.raises(CommandExecutionError) as exc_info:
        CommandExecutor(console=quiet_console).run_all(
            ["npm install a", "npm install b", "npm install c"]
        )

    assert mock_run.call_count == 2
    assert exc_info.value.command == "npm install b"
    assert exc_info.value.returncode == 1


def test_package_manager_output_is_streamed(quiet_console, mock_run):
    CommandExecutor(console=quiet_console).run("npx shadcn@latest init")

    assert "capture_output" not in mock_run.call_args.kwargs


def test_other_commands_are_captured_and_printed(quiet_console, mock_run):
    mock_run.return_value = _completed(0, stdout="v20.1.0\n")

    CommandExecutor(console=quiet_console).run("node --version")

    assert mock_run.call_args.kwargs["capture_output"] is True
    assert "v20.1.0" in quiet_console.file.getvalue()


def test_local_binaries_come_first_on_path(isolated_env, quiet_console, mock_run):
    CommandExecutor(console=quiet_console).run("npm install")

    path = mock_run.call_args.kwargs["env"]["PATH"]
    assert path.split(os.pathsep)[0] == os.path.join(str(isolated_env), "node_modules", ".bin")


def test_quoted_arguments_are_kept_together(quiet_console, mock_run):
    CommandExecutor(console=quiet_console).run('git commit -m "initial commit"')

    assert _argv(mock_run.call_args) == ["/usr/bin/git", "commit", "-m", "initial commit"]


def test_cd_changes_directory_without_spawning(isolated_env, quiet_console, mock_run):
    (isolated_env / "sub").mkdir()

    CommandExecutor(console=quiet_console).run_all(["cd sub", "npm install"])

    assert os.getcwd() == str(isolated_env / "sub")
    assert mock_run.call_count == 1


def test_cd_to_missing_directory_fails(quiet_console, mock_run):
    with pytest.raises(CommandExecutionError):
        CommandExecutor(console=quiet_console).run("cd does-not-exist")
    mock_run.assert_not_called()


def test_unknown_program_fails_before_spawning(quiet_console, mock_run, mock_which):
    mock_which.side_effect = lambda name, path=None: None

    with pytest.raises(CommandExecutionError) as exc_info:
        CommandExecutor(console=quiet_console).run("definitely-not-a-program --flag")

    assert exc_info.value.returncode == 127
    mock_run.assert_not_called()


def test_spawn_error_is_reported_as_execution_error(quiet_console, mock_run):
    mock_run.side_effect = PermissionError("denied")

    with pytest.raises(CommandExecutionError):
        CommandExecutor(console=quiet_console).run("npm install")


def test_unbalanced_quotes_fail(quiet_console, mock_run):
    with pytest.raises(CommandExecutionError):
        CommandExecutor(console=quiet_console).run('npm install "left-pad')
    mock_run.assert_not_called()


def test_bare_cd_goes_home(tmp_path, monkeypatch, quiet_console, mock_run):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))

    CommandExecutor(console=quiet_console).run("cd")

    assert os.getcwd() == str(home)
    mock_run.assert_not_called()


def test_tilde_folder_name_is_taken_literally(isolated_env, tmp_path, monkeypatch, quiet_console, mock_run):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    seen_cwd = []
    mock_run.side_effect = lambda *args, **kwargs: seen_cwd.append(os.getcwd()) or _completed()

    CommandExecutor("~", console=quiet_console).run_all(["npm install left-pad"])

    assert (isolated_env / "~").is_dir()
    assert seen_cwd == [str(isolated_env / "~")]


def test_captured_commands_get_no_stdin(quiet_console, mock_run):
    CommandExecutor(console=quiet_console).run("git init")

    assert mock_run.call_args.kwargs["stdin"] is subprocess.DEVNULL


def test_other_package_managers_are_streamed(quiet_console, mock_run):
    CommandExecutor(console=quiet_console).run("yarn create vite my-app")

    assert "capture_output" not in mock_run.call_args.kwargs
    assert "stdin" not in mock_run.call_args.kwargs

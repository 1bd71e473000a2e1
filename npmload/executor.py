"""
Sequential executor for generated install commands
"""
import logging
import os
import re
import shlex
import shutil
import subprocess
from typing import List, Optional

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.spinner import Spinner

from .config import config

logger = logging.getLogger(__name__)

# A standalone "." argument
PROJECT_DIR_ARG = re.compile(r"(?<=\s)\.(?=\s|$)")


class CommandExecutionError(RuntimeError):
    """Raised when a command cannot be spawned or exits non-zero"""

    def __init__(self, command: str, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.command = command
        self.returncode = returncode


class CommandExecutor:
    """Runs a command list one command at a time in the chosen folder"""

    def __init__(self, folder_name: str = ".", console: Optional[Console] = None):
        """
        Initialize command executor

        Args:
            folder_name: Target folder, "." for the current one
            console: Rich console used for progress output
        """
        self.config = config
        self.folder_name = (folder_name or "").strip() or config.current_folder
        self.console = console or Console()

    # ---------- PLANNING ----------

    @property
    def uses_subfolder(self) -> bool:
        return self.folder_name != self.config.current_folder

    def _is_create_command(self, command: str) -> bool:
        return self.config.create_marker in command and PROJECT_DIR_ARG.search(command) is not None

    def plan(self, commands: List[str]) -> List[str]:
        """Point scaffolding commands at the target folder instead of '.'"""
        if not self.uses_subfolder:
            return list(commands)

        return [
            PROJECT_DIR_ARG.sub(lambda _: shlex.quote(self.folder_name), cmd, count=1) if self._is_create_command(cmd) else cmd
            for cmd in commands
        ]

    def needs_folder(self, commands: List[str]) -> bool:
        """True when nothing in the list will create the target folder itself"""
        return self.uses_subfolder and not any(self._is_create_command(cmd) for cmd in commands)

    # ---------- FOLDER HANDLING ----------

    def prepare_folder(self):
        """Create the target folder (if missing) and move into it"""
        folder = self.folder_name
        try:
            os.mkdir(folder)
            self.console.print(f"[{self.config.success_color}]✅ Created folder: {folder}[/]")
            logger.info("Created folder %s", folder)
        except FileExistsError:
            self.console.print(
                f"[{self.config.warning_color}]⚠️  Folder {folder} already exists, continuing...[/]"
            )
        except OSError as e:
            self.console.print(f"[{self.config.error_color}]❌ Failed to create folder: {folder}[/]")
            raise CommandExecutionError(f"mkdir {folder}", f"Could not create folder {folder}: {e}") from e

        self._change_directory(folder, command=f"cd {folder}")
        self.console.print(f"[{self.config.success_color}]✅ Changed to directory: {folder}[/]")

    def _change_directory(self, target: str, command: str, expand: bool = False):
        path = os.path.expanduser(target) if expand else target
        try:
            os.chdir(path)
        except OSError as e:
            raise CommandExecutionError(command, f"Could not change directory to {target}: {e}") from e
        logger.info("Working directory is now %s", os.getcwd())

    # ---------- EXECUTION ----------

    def run_all(self, commands: List[str]):
        """
        Run every command in order, stopping at the first failure

        Args:
            commands: Command list as produced by the model

        Raises:
            CommandExecutionError: On the first command that fails
        """
        planned = self.plan(commands)

        if self.needs_folder(commands):
            self.prepare_folder()

        total = len(planned)
        for index, (original, command) in enumerate(zip(commands, planned), 1):
            self.run(command, index, total)

            # The scaffolder just created the target folder; work inside it from now on
            if command != original and os.path.isdir(self.folder_name):
                self._change_directory(self.folder_name, command=command)

    def run(self, command: str, index: int = 1, total: int = 1):
        """
        Execute a single command

        Args:
            command: The shell command to execute
            index: Position of the command in the list (1-based)
            total: Number of commands in the list

        Raises:
            CommandExecutionError: If the command cannot run or exits non-zero
        """
        progress = f"[{index}/{total}]"
        label = f"{escape(progress)} {escape(command)}"
        percentage = round(index / total * 100) if total else 100

        try:
            argv = shlex.split(command)
        except ValueError as e:
            raise CommandExecutionError(command, f"Could not parse command: {e}") from e
        if not argv:
            return

        program, args = argv[0], argv[1:]
        logger.info("%s Running: %s", progress, command)

        if program == self.config.change_dir_command:
            self._change_directory(args[0] if args else "~", command=command, expand=True)
            self.console.print(f"[{self.config.success_color}]✅ Done: {label} ({percentage}% done)[/]")
            return

        env = self._command_env()
        executable = shutil.which(program, path=env["PATH"])
        if executable is None:
            self.console.print(f"[{self.config.error_color}]❌ Failed: {label}[/]")
            raise CommandExecutionError(command, f"Command not found: {program}", returncode=127)

        if program in self.config.package_managers:
            returncode = self._run_streamed(command, [executable] + args, env, label)
        else:
            returncode = self._run_captured(command, [executable] + args, env, label)

        if returncode != 0:
            self.console.print(f"[{self.config.error_color}]❌ Failed: {label}[/]")
            logger.error("%s Failed with exit code %s: %s", progress, returncode, command)
            raise CommandExecutionError(
                command, f"Command failed with exit code {returncode}: {command}", returncode=returncode
            )

        self.console.print(f"[{self.config.success_color}]✅ Completed: {label} ({percentage}% done)[/]")
        logger.info("%s Completed: %s", progress, command)

    def _command_env(self) -> dict:
        """Environment with the project's local binaries first on PATH"""
        env = os.environ.copy()
        local_bin = os.path.join(os.getcwd(), "node_modules", ".bin")
        env["PATH"] = os.pathsep.join(p for p in (local_bin, env.get("PATH", "")) if p)
        return env

    def _run_streamed(self, command: str, argv: List[str], env: dict, label: str) -> int:
        """Run a package manager with its output going straight to the terminal"""
        divider = "─" * self.config.divider_width
        self.console.print(f"[{self.config.warning_color}]Executing: {label}[/]")
        self.console.print(f"[dim]{divider}[/dim]")
        try:
            result = subprocess.run(argv, env=env)
        except OSError as e:
            raise CommandExecutionError(command, f"Could not start {argv[0]}: {e}") from e
        self.console.print(f"[dim]{divider}[/dim]")
        return result.returncode

    def _run_captured(self, command: str, argv: List[str], env: dict, label: str) -> int:
        """
        Run any other command under a spinner, then show what it printed

        stdin is closed so a command that asks a question fails instead of
        waiting on a prompt hidden behind the spinner.
        """
        spinner = Spinner("dots", text=f"Running: [{self.config.command_color}]{label}[/]")
        try:
            with Live(spinner, console=self.console, transient=True):
                result = subprocess.run(argv, env=env, stdin=subprocess.DEVNULL, capture_output=True, text=True)
        except OSError as e:
            raise CommandExecutionError(command, f"Could not start {argv[0]}: {e}") from e

        if result.stdout:
            self.console.print(result.stdout.rstrip(), markup=False, highlight=False)
        if result.stderr:
            self.console.print(result.stderr.rstrip(), style=self.config.error_color, markup=False, highlight=False)
        return result.returncode

"""
npmLoad - AI-powered npm installer
Main entry point and interactive CLI
"""
import logging
import os
from typing import List, Optional

import typer
from dotenv import find_dotenv, load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.live import Live
from rich.spinner import Spinner
from rich.markup import escape
from prompt_toolkit import prompt as pt_prompt

from . import __version__
from .config import config
from .credentials import CredentialStore
from .executor import CommandExecutor, CommandExecutionError
from .llm_handler import LLMHandler, CommandGenerationError, validate_api_key

# Create Typer app
app = typer.Typer(help="npmLoad - describe what you want to build, get it installed")

# Create Rich console for beautiful output
console = Console()

logger = logging.getLogger(__name__)


# ---------- LOGGING ----------

def setup_logging():
    """Send log records to ~/.npmload/npmload.log; the terminal belongs to rich"""
    if not config.enable_logging:
        return

    os.makedirs(os.path.dirname(config.log_path), exist_ok=True)
    logging.basicConfig(
        filename=config.log_path,
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# ---------- UI HELPERS ----------

def print_welcome():
    welcome_text = (
        "[white]Welcome to the [/white]"
        "[bold bright_yellow]npmLoad [/bold bright_yellow]"
        "[white]AI-powered npm installer[/white]"
    )
    console.print()
    console.print(Panel(welcome_text, border_style="yellow", expand=False))
    console.print()


def print_commands(commands: List[str]):
    console.print(f"\n[{config.warning_color}]Commands to run:[/]\n")
    for i, cmd in enumerate(commands, 1):
        console.print(f"{i}. [{config.success_color}]{escape(cmd)}[/]")
    console.print()


# ---------- CREDENTIALS ----------

def validate_with_spinner(api_key: str) -> bool:
    with Live(Spinner("dots", text="🔑 Validating API key...", style="cyan"), console=console, transient=True):
        valid = validate_api_key(api_key)

    if valid:
        console.print(f"[{config.success_color}]✅ API key is valid![/]")
    else:
        console.print(f"[{config.error_color}]❌ Invalid API key![/]")
    return valid


def env_api_key() -> Optional[str]:
    for name in config.api_key_env_vars:
        value = os.environ.get(name)
        if value:
            logger.info("Using API key from $%s", name)
            return value
    return None


def get_valid_api_key(store: Optional[CredentialStore] = None) -> str:
    """
    Find a working API key: environment first, then the stored key,
    then ask the user until a valid one is entered.

    Only a key typed in by the user is saved.
    """
    store = store or CredentialStore()

    api_key = env_api_key()
    if api_key and validate_with_spinner(api_key):
        return api_key

    api_key = store.load()
    if api_key:
        logger.info("Using stored API key from %s", store.path)
        if validate_with_spinner(api_key):
            return api_key

    console.print(f"\n[{config.warning_color}]🔑 Gemini API key required for npmLoad to work.[/]")
    console.print(f"[dim]Get your free API key from: {config.api_key_url}[/dim]")

    while True:
        api_key = pt_prompt("Enter your Gemini API key: ", is_password=True).strip()

        if validate_with_spinner(api_key):
            store.save(api_key)
            console.print(f"[{config.success_color}]✅ API key saved globally! You won't need to enter it again.[/]")
            return api_key

        logger.info("Rejected interactively entered API key")
        console.print(f"[{config.error_color}]❌ Invalid API key. Please try again.[/]")


# ---------- SESSION ----------

def run_session(folder: Optional[str], intent: Optional[str], assume_yes: bool):
    print_welcome()

    # Validate API key first before anything else
    api_key = get_valid_api_key()
    console.print(f"\n[{config.success_color}]🚀 Ready to install packages![/]\n")

    if folder is None:
        folder = Prompt.ask("Enter folder name (or '.' for current folder)", default=config.current_folder)
    folder = folder.strip() or config.current_folder

    if intent is None:
        intent = pt_prompt("What do you want to install? (e.g., nextjs mongodb shadcn): ")
    intent = intent.strip()
    if not intent:
        raise CommandGenerationError("Nothing to install: please describe what you need.")

    llm = LLMHandler(api_key)
    with Live(Spinner("dots", text="🔍 Asking Gemini for install commands...", style="cyan"), console=console, transient=True):
        commands = llm.generate_commands(intent, folder)
    console.print(f"[{config.success_color}]✅ Got commands from Gemini![/]")

    if not commands:
        console.print(f"[{config.warning_color}]Gemini did not suggest any commands.[/]")
        return

    print_commands(commands)

    if not assume_yes and not Confirm.ask("Proceed with installation?", default=True):
        console.print("[dim]Cancelled.[/dim]")
        logger.info("User cancelled before execution")
        raise typer.Exit(0)

    executor = CommandExecutor(folder, console=console)
    executor.run_all(commands)

    console.print(f"\n[bold bright_green]🎉 All installations completed successfully![/]\n")


# ---------- CLI COMMANDS ----------

@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    folder: Optional[str] = typer.Option(None, "--folder", "-f", help="Target folder ('.' for the current one)"),
    prompt: Optional[str] = typer.Option(None, "--prompt", "-p", help="What to install, in plain English"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Run the commands without asking"),
):
    """Describe what you want to install and let npmLoad run the commands"""
    load_dotenv(find_dotenv(usecwd=True))
    setup_logging()

    if ctx.invoked_subcommand is not None:
        return

    try:
        run_session(folder, prompt, yes)
    except (CommandGenerationError, CommandExecutionError) as e:
        logger.error("%s", e)
        console.print(f"[{config.error_color}]{escape(str(e))}[/]")
        raise typer.Exit(1)
    except (typer.Exit, typer.Abort):
        raise
    except Exception as e:
        logger.exception("Unexpected error")
        console.print(f"[{config.error_color}]Unexpected error occurred.[/]")
        console.print(f"[{config.error_color}]{escape(str(e))}[/]")
        raise typer.Exit(1)


@app.command()
def version():
    """Show version information"""
    console.print(f"[cyan]npmLoad v{__version__}[/cyan]")
    console.print(f"Model: {config.model_name}")


@app.command()
def logout():
    """Forget the stored Gemini API key"""
    if CredentialStore().clear():
        console.print(f"[{config.success_color}]Stored API key removed.[/]")
    else:
        console.print("[dim]No stored API key found.[/dim]")


if __name__ == "__main__":
    app()

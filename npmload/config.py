"""
Configuration settings for npmLoad
"""
import os
from pydantic import BaseModel, ConfigDict
from typing import List, Set

class Config(BaseModel):
    """Application configuration"""

    model_config = ConfigDict(frozen=False)

    # =========================
    # LLM Settings
    # =========================
    gemini_model: str = "gemini-2.5-flash"
    # Overrides gemini_model when set
    model_env_var: str = "NPMLOAD_MODEL"
    validation_prompt: str = "test"

    # Checked in order, before any stored key
    api_key_env_vars: List[str] = ["GEMINI_API_KEY", "GOOGLE_API_KEY"]
    api_key_url: str = "https://aistudio.google.com/app/apikey"

    # =========================
    # Credential Storage
    # =========================
    config_dir: str = "~/.npmload"
    config_file: str = "config.json"

    # =========================
    # Execution
    # =========================

    # Output of these is streamed straight to the terminal
    package_managers: Set[str] = {"npm", "npx", "pnpm", "yarn", "bun"}

    # Scaffolding commands that take the target folder as their last argument
    create_marker: str = "create-"
    current_folder: str = "."
    change_dir_command: str = "cd"

    # UI
    divider_width: int = 50
    command_color: str = "cyan"
    warning_color: str = "yellow"
    error_color: str = "red"
    success_color: str = "green"

    # Logging
    log_file: str = "npmload.log"
    log_level: str = "INFO"
    enable_logging: bool = True

    @property
    def model_name(self) -> str:
        return os.environ.get(self.model_env_var) or self.gemini_model

    @property
    def config_path(self) -> str:
        return os.path.join(os.path.expanduser(self.config_dir), self.config_file)

    @property
    def log_path(self) -> str:
        return os.path.join(os.path.expanduser(self.config_dir), self.log_file)


# Global config instance
config = Config()

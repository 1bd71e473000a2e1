"""
LLM handler for natural language to install command translation
"""
import json
import logging
from typing import List, Optional

from google import genai

from .config import config

logger = logging.getLogger(__name__)


class CommandGenerationError(ValueError):
    """Raised when the model response cannot be turned into a command list"""


PROMPT_TEMPLATE = """
You are an expert installation assistant for Node.js developers. Your only job is to read the user's request and answer with a pure, raw JSON array of the exact shell commands to run. Do not include explanations, markdown, or any text outside the JSON array.

Put the commands in the correct logical order and use the most appropriate installer (npm, npx, or a framework-specific CLI). Append "@latest" to initialization commands. Handle both direct requests (e.g. "install express") and use-case descriptions (e.g. "build a SaaS dashboard").

Always recommend popular, actively maintained, free open-source packages. When an AI library is needed, suggest "@google/generative-ai" for the free-tier Gemini API instead of paid alternatives.

For web applications, UIs or dashboards, default to a Next.js project created with "npx create-next-app@latest . --yes --use-npm" (--yes skips the prompts, --use-npm keeps installation on npm). For backend-only API servers, suggest an Express setup. Depending on the use case, include common libraries: "mongoose" or "@prisma/client" for databases, "next-auth" for authentication, "tailwindcss" and "shadcn" for styling, "zustand" for state management. If the user asks for a single package by name, do not create a Next.js app first; give only what was asked for.

IMPORTANT: Always use "npx shadcn@latest" for shadcn/ui commands, never the deprecated "npx shadcn-ui@latest".

Correct spelling mistakes in package names and replace deprecated packages with their modern, popular alternatives.

Always use "." as the project directory in scaffolding commands. {folder_context}

Example 1:
User Prompt: install nextjs monogdb shadcn
Output: ["npx create-next-app@latest . --yes --use-npm", "npm install mongoose", "npx shadcn@latest init"]

Example 2:
User Prompt: I want to build an AI chat dashboard with authentication
Output: ["npx create-next-app@latest . --yes --use-npm", "npm install @google/generative-ai next-auth mongoose axios dotenv zustand", "npx shadcn@latest init"]

Example 3:
User Prompt: install shadcn and its button
Output: ["npx shadcn@latest init", "npx shadcn@latest add button"]

User prompt: "{intent}"
"""


def parse_command_list(text: str) -> List[str]:
    """
    Extract the command list from a raw model response

    The response may carry stray text around the array, so everything
    between the first '[' and the last ']' is parsed.

    Args:
        text: The model response

    Returns:
        The commands, in order

    Raises:
        CommandGenerationError: If no JSON array can be recovered
    """
    text = (text or "").strip()

    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end < start:
        raise CommandGenerationError(f"Gemini response did not contain valid JSON:\n{text}")

    try:
        commands = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise CommandGenerationError(f"Gemini response did not contain valid JSON:\n{text}") from e

    if not isinstance(commands, list):
        raise CommandGenerationError("Parsed response is not an array.")

    return [str(cmd).strip() for cmd in commands if str(cmd).strip()]


class LLMHandler:
    """Handles communication with Gemini for command generation"""

    def __init__(self, api_key: str, model: Optional[str] = None):
        self.config = config
        self.model = model or config.model_name
        self.client = genai.Client(api_key=api_key)

    def _generate(self, contents: str) -> str:
        response = self.client.models.generate_content(
            model=self.model,
            contents=contents,
        )
        return (response.text or "").strip()

    def validate(self) -> bool:
        """Send a trivial probe request; any failure means the key is unusable"""
        try:
            self._generate(self.config.validation_prompt)
        except Exception as e:
            logger.info("API key validation failed: %s", e)
            return False
        return True

    def build_prompt(self, intent: str, folder_name: str = ".") -> str:
        if folder_name and folder_name != self.config.current_folder:
            folder_context = (
                f'The project will live in a folder named "{folder_name}"; '
                "the installer redirects scaffolding commands there and runs the rest inside it."
            )
        else:
            folder_context = "The project lives in the current folder."
        return PROMPT_TEMPLATE.format(folder_context=folder_context, intent=intent)

    def generate_commands(self, intent: str, folder_name: str = ".") -> List[str]:
        """
        Ask Gemini for the install commands matching the user's intent

        Args:
            intent: Free-text description of what to install
            folder_name: Target folder chosen by the user

        Returns:
            Ordered list of shell commands

        Raises:
            CommandGenerationError: If the response holds no JSON array
        """
        response_text = self._generate(self.build_prompt(intent, folder_name))
        logger.info("Model response: %s", response_text)

        commands = parse_command_list(response_text)
        logger.info("Generated %d command(s): %s", len(commands), commands)
        return commands


def validate_api_key(api_key: str) -> bool:
    """Check whether an API key can be used against the configured model"""
    if not api_key:
        return False
    try:
        handler = LLMHandler(api_key)
    except Exception as e:
        logger.info("Could not create Gemini client: %s", e)
        return False
    return handler.validate()

"""Named starter prompts served over ``prompts/list`` and ``prompts/get``."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

TASK_ARGUMENT = "task"


class UnknownPromptError(LookupError):
    """Raised when a prompt name is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown prompt: {name}")
        self.name = name


@dataclass(slots=True, frozen=True)
class PromptArgument:
    name: str
    description: str
    required: bool = False


@dataclass(slots=True, frozen=True)
class Prompt:
    """A starter prompt and the instruction text it opens a chat with."""

    name: str
    title: str
    description: str
    text: str
    arguments: tuple[PromptArgument, ...] = ()

    def describe(self) -> dict[str, object]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "arguments": [
                {
                    "name": argument.name,
                    "description": argument.description,
                    "required": argument.required,
                }
                for argument in self.arguments
            ],
        }


_TASK = PromptArgument(
    name=TASK_ARGUMENT,
    description="Your initial task or question about the codebase",
)

_DESKTOP_TEXT = (
    "Use the Context Coder MCP to edit files. Remember that partial edits are not allowed, "
    "always write out the edited files in full through the MCP. You MUST call the "
    "get_codebase_size and get_codebase MCP tools at the start of every new chat. Do not "
    "call read_file, as you already have the codebase via get_codebase - use this reference "
    "instead. ONLY call read_file if you can't find the file in your context. Do not create "
    "any artifacts unless the user asks for it, just call the write_file tool directly with "
    "the updated code. If you get cut off when writing code and the user asks you to "
    "continue, continue from the last successfully written file to not omit anything."
)

_CODE_TEXT = (
    "You have access to both Claude Code's built-in file tools and the Context Coder MCP for "
    "enhanced codebase analysis. Follow this workflow:\n"
    "\n"
    "1. ALWAYS start every new chat by calling get_codebase_size and get_codebase MCP tools "
    "to ingest and understand the full project context\n"
    "2. Use Context Coder's codebase analysis as your primary reference - avoid reading files "
    "since you already have the complete codebase, only read file if you are missing "
    "something or if the user specifically requests it.\n"
    "3. Remember: Context Coder gives you full codebase context, Claude Code gives you "
    "precise editing control - use both strategically"
)

PROMPTS: tuple[Prompt, ...] = (
    Prompt(
        name="context-coder-claude-desktop",
        title="Context Coder: Claude Desktop Setup",
        description=(
            "Default starting prompt for using Context Coder with Claude Desktop. This prompt "
            "configures Claude to use the Context Coder MCP tools properly and establishes "
            "the workflow."
        ),
        text=_DESKTOP_TEXT,
        arguments=(_TASK,),
    ),
    Prompt(
        name="context-coder-claude-code",
        title="Context Coder: Claude Code Setup",
        description=(
            "Default starting prompt for using Context Coder with Claude Code. This prompt "
            "explains how to use both Claude Code's built-in tools and Context Coder together."
        ),
        text=_CODE_TEXT,
        arguments=(_TASK,),
    ),
)

_PROMPTS_BY_NAME = {prompt.name: prompt for prompt in PROMPTS}


def _user_message(text: str) -> dict[str, object]:
    return {"role": "user", "content": {"type": "text", "text": text}}


def list_prompts() -> list[dict[str, object]]:
    return [prompt.describe() for prompt in PROMPTS]


def get_prompt(name: str, arguments: Mapping[str, object] | None = None) -> dict[str, object]:
    """Return the prompt's messages; a non-empty task is appended as a second user message."""
    prompt = _PROMPTS_BY_NAME.get(name)
    if prompt is None:
        raise UnknownPromptError(name)
    messages = [_user_message(prompt.text)]
    task = (arguments or {}).get(TASK_ARGUMENT)
    if task is not None and not isinstance(task, str):
        raise ValueError(f"Prompt argument '{TASK_ARGUMENT}' must be a string.")
    if task:
        messages.append(_user_message(task))
    return {"description": prompt.description, "messages": messages}

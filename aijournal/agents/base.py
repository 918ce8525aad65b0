"""Base utilities for AI agents.

This module provides common utilities for creating and running the
model-backed import and analysis agents using the OpenAI Agents SDK.
"""

import json
import os
import re
from typing import Any, Optional

# Disable tracing to avoid noisy 503 errors from telemetry
os.environ.setdefault("OPENAI_AGENTS_DISABLE_TRACING", "1")

from agents import Agent, Runner, set_default_openai_key


# Default model to use for agents
DEFAULT_MODEL = "gpt-5.2"

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def get_model(override: Optional[str] = None) -> str:
    """Get the model to use for agents.

    Uses the explicit override, then the OPENAI_MODEL environment
    variable, then the default.

    Returns:
        Model name string.
    """
    return override or os.environ.get("OPENAI_MODEL", DEFAULT_MODEL)


def configure_api_key(api_key: Optional[str]) -> None:
    """Register the OpenAI API key with the SDK if one is given."""
    if api_key:
        set_default_openai_key(api_key)


def create_agent(
    name: str,
    instructions: str,
    model: Optional[str] = None,
) -> Agent:
    """Create an AI agent with the specified configuration.

    Args:
        name: Name of the agent.
        instructions: System instructions for the agent.
        model: Optional model override. Uses default if not specified.

    Returns:
        Configured Agent instance.
    """
    return Agent(
        name=name,
        instructions=instructions,
        tools=[],
        model=get_model(model),
    )


def _get_model_info(model: str) -> tuple[str, str]:
    """Get model display name and reasoning level.

    Args:
        model: Model name string.

    Returns:
        Tuple of (display_name, reasoning_level).
    """
    o_series = {
        "o1": ("o1", "high"),
        "o1-mini": ("o1-mini", "medium"),
        "o3": ("o3", "very high"),
        "o3-mini": ("o3-mini", "medium"),
        "o4-mini": ("o4-mini", "medium"),
    }

    if model in o_series:
        return o_series[model]

    if model.startswith("gpt-5"):
        return (model, "medium")

    if model.startswith("gpt-4"):
        return (model, "standard")

    if model.startswith("gpt-"):
        return (model, "basic")

    return (model, "unknown")


def _log_agent_call(agent: Agent) -> None:
    """Log agent call info to terminal.

    Args:
        agent: The agent being called.
    """
    from rich.console import Console

    console = Console(stderr=True)
    display_name, reasoning = _get_model_info(str(agent.model))

    console.print(
        f"[dim]🤖 Agent: {agent.name} | Model: {display_name} | Reasoning: {reasoning}[/dim]"
    )


def run_agent_sync(
    agent: Agent,
    message: str,
    context: Optional[dict[str, Any]] = None,
) -> str:
    """Run an agent synchronously and return the response.

    Args:
        agent: The agent to run.
        message: User message to send to the agent.
        context: Optional context dictionary to pass to the agent.

    Returns:
        Agent's response as a string.
    """
    _log_agent_call(agent)
    result = Runner.run_sync(agent, message, context=context)
    return str(result.final_output)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding Markdown code fence from a model response."""
    stripped = text.strip()
    match = _FENCE_PATTERN.match(stripped)
    return match.group(1) if match else stripped


def to_prompt_json(value: Any) -> str:
    """Serialize raw values for a prompt; non-JSON scalars become strings."""
    return json.dumps(value, default=str, ensure_ascii=False)

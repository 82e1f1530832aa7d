from __future__ import annotations

from typing import Iterable


class ChatAgentError(Exception):
    """Base error for the chat agent and its tools."""


class LLMNotConfiguredError(ChatAgentError):
    def __init__(self, message: str = "OpenAI API key not configured"):
        super().__init__(message)


class PortfolioDataRequiredError(ChatAgentError):
    def __init__(self, message: str = "Current portfolio data is required for chat responses"):
        super().__init__(message)


class LLMResponseError(ChatAgentError):
    """The model reply could not be parsed as a JSON object."""


class ScenarioIdRequiredError(ChatAgentError):
    pass


class ToolInputError(ChatAgentError):
    def __init__(self, tool_name: str, fields: Iterable[str], detail: str):
        self.tool_name = tool_name
        self.fields = list(fields)
        super().__init__(f"Invalid arguments for {tool_name}: {detail}")


class UnknownToolError(ChatAgentError):
    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool {tool_name} not found")


class DuplicateToolError(ChatAgentError):
    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool {tool_name} is already registered")


class ToolNotInitializedError(ChatAgentError):
    def __init__(self, message: str = "Tool client not initialized"):
        super().__init__(message)


class ToolCallError(ChatAgentError):
    """A tool call came back as an error envelope."""

    def __init__(self, tool_name: str, message: str):
        self.tool_name = tool_name
        super().__init__(message)

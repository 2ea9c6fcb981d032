"""toolloop: tool-calling orchestration for chat-completion APIs.

Declare tools once, let the model call them, and feed the results back
until it produces a final answer.
"""

from toolloop._version import __version__

# Exceptions
from toolloop.exceptions import (
    ArgumentParseError,
    DriverCancelledError,
    DuplicateToolError,
    FatalToolError,
    HandlerError,
    InvalidConfigurationError,
    MalformedResponseError,
    ProtocolViolationError,
    ToolLoopError,
    ToolLoopLimitExceededError,
    UnknownToolError,
)

# Messages and conversations
from toolloop.protocols import Message, TokenCounter, TokenUsage
from toolloop.models.conversation import Conversation

# Tools
from toolloop.toolkit import (
    RegisteredTool,
    ToolCallRequest,
    ToolCallResult,
    ToolDeclaration,
    ToolDispatcher,
    ToolRegistry,
)

# LLM requests, responses, transport
from toolloop.llm import (
    ChatRequest,
    FinalAnswer,
    OpenAIClient,
    RequestBuilder,
    ResponseInterpreter,
    ToolCalls,
    ToolChoice,
    Transport,
)

# Driver
from toolloop.driver import (
    ConversationDriver,
    DriverConfig,
    DriverResult,
    DriverState,
    RoundResult,
)

__all__ = [
    "__version__",
    # Driver
    "ConversationDriver",
    "DriverConfig",
    "DriverResult",
    "DriverState",
    "RoundResult",
    # Conversation
    "Conversation",
    "Message",
    "TokenUsage",
    "TokenCounter",
    # Tools
    "ToolRegistry",
    "ToolDispatcher",
    "ToolDeclaration",
    "RegisteredTool",
    "ToolCallRequest",
    "ToolCallResult",
    # LLM
    "RequestBuilder",
    "ChatRequest",
    "ToolChoice",
    "ResponseInterpreter",
    "FinalAnswer",
    "ToolCalls",
    "OpenAIClient",
    "Transport",
    # Exceptions
    "ToolLoopError",
    "InvalidConfigurationError",
    "MalformedResponseError",
    "ProtocolViolationError",
    "DuplicateToolError",
    "UnknownToolError",
    "ArgumentParseError",
    "HandlerError",
    "FatalToolError",
    "ToolLoopLimitExceededError",
    "DriverCancelledError",
]

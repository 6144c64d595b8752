"""
Location: python/thred_sdk/__init__.py

Summary:
    Main package initialization for thred-sdk. Exports all public classes
    and functions for convenient importing.

Usage:
    from thred_sdk import ThredClient, AnswerRequest, ThredError

    # Or import specific modules
    from thred_sdk.stream import StreamSplitter, split_stream
    from thred_sdk.targets import MemorySink, MemoryTargetRegistry

Version: 0.1.0
"""

from .client import ThredClient
from .types import (
    AnswerRequest,
    AnswerResponse,
    AnswerMetadata,
    BrandInfo,
    ErrorResponse,
    Message,
    ModelName,
    ThredConfig,
)
from .errors import ErrorKind, ThredError
from .stream import MetadataEvent, StreamSplitter, TextEvent, split_stream
from .targets import MemorySink, MemoryTargetRegistry, TargetSink, Targets

__version__ = "0.1.0"

__all__ = [
    # Main client
    "ThredClient",
    # Types
    "AnswerRequest",
    "AnswerResponse",
    "AnswerMetadata",
    "BrandInfo",
    "ErrorResponse",
    "Message",
    "ModelName",
    "ThredConfig",
    # Errors
    "ErrorKind",
    "ThredError",
    # Streaming
    "StreamSplitter",
    "TextEvent",
    "MetadataEvent",
    "split_stream",
    # Output targets
    "TargetSink",
    "Targets",
    "MemorySink",
    "MemoryTargetRegistry",
]

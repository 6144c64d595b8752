"""
Location: python/thred_sdk/types.py

Summary:
    Pydantic models for the thred-sdk. Defines the request and response
    payloads of the Thred API (AnswerRequest, AnswerResponse,
    AnswerMetadata, BrandInfo), the error body shape, and the client
    configuration (ThredConfig).

Usage:
    These models are imported and used by client.py and errors.py.
    Field names are snake_case in Python and camelCase on the wire;
    every model accepts either form on input.

Example:
    from thred_sdk.types import AnswerRequest, ThredConfig

    config = ThredConfig(api_key="sk_live_...", default_model="gpt-4-turbo")
    request = AnswerRequest(message="What's a good task manager?", max_tokens=256)
    request.to_payload()  # {"message": "...", "maxTokens": 256}
"""

import os
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


ModelName = Literal["gpt-4", "gpt-4-turbo", "gpt-3.5-turbo"]

DEFAULT_BASE_URL = "https://api.thred.dev/v1"
DEFAULT_MODEL: ModelName = "gpt-4"
DEFAULT_TIMEOUT_MS = 30000


class BrandInfo(BaseModel):
    """
    Information about a brand used in enrichment.

    Attributes:
        id: Unique identifier for the brand
        name: Name of the brand
        domain: Domain of the brand's website
    """
    id: str
    name: str
    domain: str


class Message(BaseModel):
    """A previous turn in the conversation."""
    role: Literal["user", "assistant"]
    content: str


class AnswerRequest(BaseModel):
    """
    Request payload for generating an AI response.

    Attributes:
        message: The user's message or question to process
        model: The model to use for generation (client default if unset)
        max_tokens: Maximum number of tokens to generate
        temperature: Sampling temperature
        instructions: Additional instructions for the AI response
        conversation_id: ID to track conversation context
        previous_messages: Previous messages in the conversation
    """
    message: str
    model: Optional[ModelName] = None
    max_tokens: Optional[int] = Field(None, alias="maxTokens")
    temperature: Optional[float] = None
    instructions: Optional[str] = None
    conversation_id: Optional[str] = Field(None, alias="conversationId")
    previous_messages: Optional[list[Message]] = Field(None, alias="previousMessages")

    model_config = {"populate_by_name": True}

    def to_payload(self) -> dict:
        """Serialize to the camelCase JSON body sent to the API."""
        return self.model_dump(by_alias=True, exclude_none=True)


class AnswerMetadata(BaseModel):
    """
    Brand enrichment metadata attached to an answer.

    Attributes:
        brand_used: Brand used in enrichment, None when no brand matched
        link: Affiliate or tracking link for the brand
        code: Tracking code used to register impressions
        similarity_score: Similarity score for brand matching
        trigger_phrases: Trigger phrases configured for the brand
        matched_triggers: Trigger phrases that matched
    """
    brand_used: Optional[BrandInfo] = Field(None, alias="brandUsed")
    link: Optional[str] = None
    code: Optional[str] = None
    similarity_score: Optional[float] = Field(None, alias="similarityScore")
    trigger_phrases: Optional[list[str]] = Field(None, alias="triggerPhrases")
    matched_triggers: Optional[list[str]] = Field(None, alias="matchedTriggers")

    model_config = {"populate_by_name": True, "extra": "allow"}


class AnswerResponse(BaseModel):
    """
    Response from the non-streaming answer endpoint.

    answer() returns the raw JSON body; validate it with
    AnswerResponse.model_validate(body) for typed access.
    """
    response: str
    metadata: AnswerMetadata


class ErrorResponse(BaseModel):
    """
    Error body returned by the API on failure.

    Attributes:
        error: Error type or category
        message: Detailed error message
    """
    error: Optional[str] = None
    message: Optional[str] = None


class ThredConfig(BaseModel):
    """
    Configuration for ThredClient.

    Attributes:
        api_key: API key for bearer authentication
        default_model: Model used when a request does not name one
        timeout: Request timeout in milliseconds
        base_url: API root (trailing slash removed)
    """
    api_key: str = Field(alias="apiKey")
    default_model: ModelName = Field(DEFAULT_MODEL, alias="defaultModel")
    timeout: int = Field(DEFAULT_TIMEOUT_MS, gt=0)
    base_url: str = Field(DEFAULT_BASE_URL, alias="baseUrl")

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("api_key")
    @classmethod
    def _require_api_key(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("API key is required")
        return value

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_env(cls, **overrides) -> "ThredConfig":
        """
        Build a config from THRED_* environment variables.

        Reads THRED_API_KEY, THRED_DEFAULT_MODEL, THRED_TIMEOUT_MS and
        THRED_BASE_URL. Keyword overrides take precedence over the
        environment.

        Raises:
            pydantic.ValidationError: If the resulting config is invalid
        """
        values: dict = {}
        env_map = {
            "api_key": "THRED_API_KEY",
            "default_model": "THRED_DEFAULT_MODEL",
            "timeout": "THRED_TIMEOUT_MS",
            "base_url": "THRED_BASE_URL",
        }
        for field, var in env_map.items():
            if os.environ.get(var):
                values[field] = os.environ[var]
        values.update({k: v for k, v in overrides.items() if v is not None})
        values.setdefault("api_key", "")
        return cls(**values)

"""
Tests for thred_sdk.types module.

Tests Pydantic models for AnswerRequest, AnswerMetadata, AnswerResponse
and ThredConfig. Verifies serialization, alias handling, validation and
environment loading.
"""

import pytest
from pydantic import ValidationError

from thred_sdk.types import (
    AnswerMetadata,
    AnswerRequest,
    AnswerResponse,
    BrandInfo,
    ErrorResponse,
    Message,
    ThredConfig,
)


class TestAnswerRequest:
    """Tests for AnswerRequest model."""

    def test_minimal_payload(self):
        """Test only the message is serialized when nothing else is set."""
        request = AnswerRequest(message="Hello")
        assert request.to_payload() == {"message": "Hello"}

    def test_payload_uses_camel_case(self):
        """Test serialization uses camelCase by alias."""
        request = AnswerRequest(
            message="Hello",
            model="gpt-4-turbo",
            max_tokens=256,
            temperature=0.2,
            instructions="Be brief",
            conversation_id="conv_1",
            previous_messages=[Message(role="user", content="Earlier question")],
        )
        assert request.to_payload() == {
            "message": "Hello",
            "model": "gpt-4-turbo",
            "maxTokens": 256,
            "temperature": 0.2,
            "instructions": "Be brief",
            "conversationId": "conv_1",
            "previousMessages": [{"role": "user", "content": "Earlier question"}],
        }

    def test_camel_case_input(self):
        """Test that camelCase JSON works via alias."""
        request = AnswerRequest.model_validate(
            {"message": "Hi", "maxTokens": 10, "conversationId": "c"}
        )
        assert request.max_tokens == 10
        assert request.conversation_id == "c"

    def test_rejects_unknown_model(self):
        """Test model must be one of the supported names."""
        with pytest.raises(ValidationError):
            AnswerRequest(message="Hi", model="gpt-2")

    def test_rejects_bad_role(self):
        """Test message roles are restricted."""
        with pytest.raises(ValidationError):
            Message(role="system", content="x")

    def test_message_required(self):
        """Test message is a required field."""
        with pytest.raises(ValidationError):
            AnswerRequest.model_validate({})


class TestAnswerMetadata:
    """Tests for AnswerMetadata and AnswerResponse models."""

    def test_parses_full_metadata(self, sample_metadata):
        """Test all wire fields map to snake_case attributes."""
        metadata = AnswerMetadata.model_validate(sample_metadata)
        assert metadata.brand_used == BrandInfo(id="brand_1", name="Acme Tasks", domain="acme.example")
        assert metadata.code == "trk_42"
        assert metadata.similarity_score == 0.87
        assert metadata.matched_triggers == ["task manager"]

    def test_null_brand(self):
        """Test brandUsed may be null."""
        metadata = AnswerMetadata.model_validate({"brandUsed": None})
        assert metadata.brand_used is None
        assert metadata.link is None

    def test_extra_fields_allowed(self):
        """Test unknown metadata fields are kept."""
        metadata = AnswerMetadata.model_validate({"campaign": "spring"})
        assert metadata.model_dump()["campaign"] == "spring"

    def test_answer_response(self, sample_answer):
        """Test a full non-streaming answer body validates."""
        answer = AnswerResponse.model_validate(sample_answer)
        assert answer.response.startswith("Try Acme")
        assert answer.metadata.link == "https://acme.example/?ref=thred"

    def test_error_response(self):
        """Test the error body shape."""
        error = ErrorResponse.model_validate({"error": "invalid_request"})
        assert error.message is None


class TestThredConfig:
    """Tests for ThredConfig model."""

    def test_defaults(self):
        """Test default values."""
        config = ThredConfig(api_key="k")
        assert config.default_model == "gpt-4"
        assert config.timeout == 30000
        assert config.base_url == "https://api.thred.dev/v1"

    def test_camel_case_input(self):
        """Test camelCase construction."""
        config = ThredConfig.model_validate({"apiKey": "k", "defaultModel": "gpt-4-turbo"})
        assert config.default_model == "gpt-4-turbo"

    def test_blank_api_key_rejected(self):
        """Test an empty API key is invalid."""
        with pytest.raises(ValidationError):
            ThredConfig(api_key="  ")

    def test_timeout_must_be_positive(self):
        """Test timeout must be greater than zero."""
        with pytest.raises(ValidationError):
            ThredConfig(api_key="k", timeout=-5)

    def test_frozen(self):
        """Test config cannot be mutated after creation."""
        config = ThredConfig(api_key="k")
        with pytest.raises(ValidationError):
            config.timeout = 10

    def test_from_env(self, monkeypatch):
        """Test loading from THRED_* environment variables."""
        monkeypatch.setenv("THRED_API_KEY", "env_key")
        monkeypatch.setenv("THRED_DEFAULT_MODEL", "gpt-3.5-turbo")
        monkeypatch.setenv("THRED_TIMEOUT_MS", "1500")
        monkeypatch.setenv("THRED_BASE_URL", "http://localhost:9000/v1/")

        config = ThredConfig.from_env()

        assert config.api_key == "env_key"
        assert config.default_model == "gpt-3.5-turbo"
        assert config.timeout == 1500
        assert config.base_url == "http://localhost:9000/v1"

    def test_from_env_overrides(self, monkeypatch):
        """Test keyword overrides beat the environment."""
        monkeypatch.setenv("THRED_API_KEY", "env_key")
        config = ThredConfig.from_env(api_key="explicit", timeout=None)
        assert config.api_key == "explicit"
        assert config.timeout == 30000

    def test_from_env_missing_key(self, monkeypatch):
        """Test a missing THRED_API_KEY is a validation error."""
        monkeypatch.delenv("THRED_API_KEY", raising=False)
        with pytest.raises(ValidationError):
            ThredConfig.from_env()

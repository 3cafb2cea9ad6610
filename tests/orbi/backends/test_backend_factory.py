"""Tests for build_backend_from_env."""

import pytest

from orbi.backends.factory import build_backend_from_env
from orbi.backends.gemini import GeminiBackend
from orbi.backends.openai_chat import OpenAIChatBackend
from orbi.exceptions import BackendConfigError


def test_google_requires_api_key(test_settings):
    test_settings.ai_service = "google"
    test_settings.gemini_api_key = None
    with pytest.raises(BackendConfigError, match="GEMINI_API_KEY"):
        build_backend_from_env(test_settings)


def test_google_backend(test_settings):
    test_settings.ai_service = "google"
    test_settings.gemini_api_key = "key"
    assert isinstance(build_backend_from_env(test_settings), GeminiBackend)


def test_azure_requires_api_key(test_settings):
    test_settings.ai_service = "azure"
    test_settings.azure_openai_api_key = None
    with pytest.raises(BackendConfigError, match="AZURE_OPENAI_API_KEY"):
        build_backend_from_env(test_settings)


def test_azure_backend(test_settings):
    test_settings.ai_service = "Azure"
    test_settings.azure_openai_api_key = "key"
    assert isinstance(build_backend_from_env(test_settings), OpenAIChatBackend)


def test_unknown_service(test_settings):
    test_settings.ai_service = "llama"
    with pytest.raises(BackendConfigError, match="Unknown AI_SERVICE"):
        build_backend_from_env(test_settings)

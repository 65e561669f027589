import types

import pytest

from app.errors import UpstreamUnavailableError
from app.router.engine import build_llm
from app.router.fallback import OfflineModel


def test_offline_model_always_raises():
    model = build_llm("offline")
    assert isinstance(model, OfflineModel)
    with pytest.raises(UpstreamUnavailableError):
        model.generate("anything")


def test_unknown_provider():
    with pytest.raises(RuntimeError):
        build_llm("llama")


def test_gemini_requires_key(monkeypatch):
    from core import config

    monkeypatch.setattr(config, "GEMINI_API_KEY", "")
    with pytest.raises(RuntimeError):
        build_llm("gemini")


def test_openai_model_uses_responses_api(monkeypatch):
    from app.router import openai as openai_router

    calls = {}

    class _Responses:
        def create(self, **kwargs):
            calls.update(kwargs)
            return types.SimpleNamespace(output_text='[{"question": "Q"}]')

    class _Client:
        def __init__(self, api_key):
            calls["api_key"] = api_key
            self.responses = _Responses()

    monkeypatch.setattr(openai_router, "OpenAI", _Client)

    model = openai_router.OpenAIModel(api_key="sk-test", model_name="gpt-test")
    assert model.generate("prompt", temperature=0.3) == '[{"question": "Q"}]'
    assert calls == {"api_key": "sk-test", "model": "gpt-test", "input": "prompt", "temperature": 0.3}


def test_gemini_model_passes_generation_config(monkeypatch):
    from app.router import gemini as gemini_router

    seen = {}

    class _Model:
        def __init__(self, name):
            seen["model"] = name

        def generate_content(self, prompt, generation_config=None):
            seen["config"] = generation_config
            return types.SimpleNamespace(text='{"score": 7}')

    fake_genai = types.SimpleNamespace(configure=lambda api_key: seen.setdefault("key", api_key), GenerativeModel=_Model)
    monkeypatch.setattr(gemini_router, "genai", fake_genai)

    model = gemini_router.GeminiModel(api_key="g-key", model_name="gemini-test")
    assert model.generate("prompt", temperature=0.3) == '{"score": 7}'
    assert seen["key"] == "g-key"
    assert seen["model"] == "gemini-test"
    assert seen["config"]["temperature"] == 0.3

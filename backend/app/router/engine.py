from __future__ import annotations

from typing import Protocol


class LanguageModel(Protocol):
    name: str

    def generate(self, prompt: str, temperature: float = 0.7) -> str:
        ...


def build_llm(provider: str | None = None) -> LanguageModel:
    from core import config

    selected = str(provider or config.LLM_PROVIDER or "offline").strip().lower()
    if selected == "gemini":
        from app.router.gemini import GeminiModel

        return GeminiModel(api_key=config.GEMINI_API_KEY, model_name=config.GEMINI_MODEL)
    if selected == "openai":
        from app.router.openai import OpenAIModel

        return OpenAIModel(api_key=config.OPENAI_API_KEY, model_name=config.MODEL_NAME)
    if selected == "offline":
        from app.router.fallback import OfflineModel

        return OfflineModel()
    raise RuntimeError(f"Unknown LLM_PROVIDER: {selected}")

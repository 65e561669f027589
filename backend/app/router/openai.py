from openai import OpenAI


class OpenAIModel:
    name = "openai"

    def __init__(self, api_key: str, model_name: str = "gpt-4.1-mini"):
        if not api_key:
            raise RuntimeError("LLM_PROVIDER=openai requires OPENAI_API_KEY")
        self._client = OpenAI(api_key=api_key)
        self._model_name = model_name

    def generate(self, prompt: str, temperature: float = 0.7) -> str:
        response = self._client.responses.create(
            model=self._model_name,
            input=prompt,
            temperature=temperature,
        )
        return response.output_text

import google.generativeai as genai


class GeminiModel:
    name = "gemini"

    def __init__(self, api_key: str, model_name: str = "gemini-1.5-flash", max_output_tokens: int = 2048):
        if not api_key:
            raise RuntimeError("LLM_PROVIDER=gemini requires GEMINI_API_KEY")
        genai.configure(api_key=api_key)
        self._model = genai.GenerativeModel(model_name)
        self._max_output_tokens = max_output_tokens

    def generate(self, prompt: str, temperature: float = 0.7) -> str:
        response = self._model.generate_content(
            prompt,
            generation_config={
                "temperature": temperature,
                "max_output_tokens": self._max_output_tokens,
            },
        )
        return response.text

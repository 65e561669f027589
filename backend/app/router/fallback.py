from app.errors import UpstreamUnavailableError


class OfflineModel:
    """
    Stand-in used when no model provider is configured.
    Every call fails, so callers take their bundled fallback path.
    """

    name = "offline"

    def generate(self, prompt: str, temperature: float = 0.7) -> str:
        raise UpstreamUnavailableError("No language model configured")

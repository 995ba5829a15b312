"""
Voice model configuration.

Loads OpenAI Realtime / speech settings from environment variables.
"""
import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class VoiceConfig:
    """OpenAI voice configuration."""

    openai_api_key: str
    realtime_model: str = "gpt-4o-realtime-preview-2024-12-17"
    voice: str = "aria"
    tts_model: str = "gpt-4o-mini-tts"

    # Persona prompt file under bridge/personas/
    persona: str = "default"

    api_base_url: str = "https://api.openai.com/v1"
    realtime_url: str = "wss://api.openai.com/v1/realtime"

    @classmethod
    def from_env(cls) -> "VoiceConfig":
        """Load configuration from environment variables."""
        return cls(
            openai_api_key=os.environ["OPENAI_API_KEY"],
            realtime_model=os.environ.get("OPENAI_REALTIME_MODEL", "gpt-4o-realtime-preview-2024-12-17"),
            voice=os.environ.get("OPENAI_VOICE", "aria"),
            tts_model=os.environ.get("OPENAI_TTS_MODEL", "gpt-4o-mini-tts"),
            persona=os.environ.get("AGENT_PERSONA", "default"),
        )


def get_config() -> VoiceConfig:
    """Get or create global config instance."""
    global _config
    if _config is None:
        _config = VoiceConfig.from_env()
    return _config


# Global config instance (lazy loaded)
_config: Optional[VoiceConfig] = None

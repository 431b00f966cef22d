"""Runtime configuration for term-narrator."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="TERM_NARRATOR_", env_file=".env", extra="ignore")

    app_name: str = "term-narrator"
    log_level: str = "INFO"
    voice_output_enabled: bool = True

    open_marker: str = "«tts»"
    close_marker: str = "«/tts»"
    carry_over_max_chars: int = Field(default=2_000, ge=64)
    spoken_max_entries: int = Field(default=1_000, ge=2)
    min_prose_length: int = 5
    replay_max_chunks: int = Field(default=5_000, ge=1)

    speech_min_chars: int = 3

    tts_backend: str = Field(default="piper", description="Speech backend: piper or pyttsx3.")
    piper_binary: str = "piper"
    piper_model: str | None = Field(default=None, description="Path to a Piper .onnx voice model.")
    pyttsx3_voice_id: str | None = None
    pyttsx3_rate: int | None = None
    pyttsx3_volume: float | None = None
    audio_player: str | None = Field(
        default=None,
        description="Player executable for WAV playback; autodetected when unset.",
    )

    dictation_enabled: bool = False
    dictation_phrase_time_limit: float = 5.0


settings = Settings()

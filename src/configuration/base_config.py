"""
Base settings shared by every configuration class in the engine.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict

class BaseConfig(BaseSettings):
    """
    Reads `.env` plus the process environment; unknown keys are ignored so the
    engine can share an env file with the services that embed it.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='ignore'
    )

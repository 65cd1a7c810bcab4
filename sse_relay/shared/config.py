"""
MODULE OVERVIEW:
This module provides application-wide configuration using Pydantic Settings.
Where it fits: Every layer (registry, broker, routes, CLI) reads its timings and policies from here.

WHAT IS HAPPENING HERE:
We declare the delivery timings and session policies in one place. Instead of hardcoding
"wait 1 second for a full slot" deep inside the broker, we declare it globally here so it
can be tuned from the environment (or a `.env` file) without touching code.
"""
import secrets
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    HOST: str = "0.0.0.0"
    PORT: int = 1370
    LOG_LEVEL: str = "INFO"

    # SSE
    SSE_KEEPALIVE_INTERVAL_S: float = 15.0
    SSE_KEEPALIVE_TEXT: str = "keep-alive-text"

    # Delivery
    # How long a sender may wait for a recipient's single slot to free up.
    SEND_TIMEOUT_S: float = 1.0
    ECHO_TO_SENDER: bool = False
    DEREGISTER_ON_DISCONNECT: bool = True

    # Session identity
    SESSION_ID_BITS: int = Field(32, ge=8, le=64)
    SESSION_BINDING: Literal["path", "cookie"] = "path"
    SESSION_SECRET: str = Field(default_factory=lambda: secrets.token_hex(32))
    SESSION_COOKIE_NAME: str = "sse_relay_session"

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore'

settings = Settings()

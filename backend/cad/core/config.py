from __future__ import annotations

import json
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    env: Literal["dev", "prod"] = "dev"
    project_name: str = "Patrol CAD"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"
    frontend_origins: list[str] = Field(default_factory=list)

    redis_url: str = "redis://redis:6379/0"
    redis_timeout_sec: float = 2.0

    address_search_threshold: float = 0.6
    address_fallback_threshold: float = 0.4
    address_search_limit: int = 8

    geocoder_api_key: str = ""
    geocoder_base_url: str = "https://us1.locationiq.com/v1/search"
    geocoder_region_qualifier: str = "Ontario, Canada"
    geocoder_region_filter: str = "Ontario"
    geocoder_result_limit: int = 5
    geocoder_timeout_sec: float = 6.0
    geocode_cache_ttl_sec: int = 1800

    routing_provider: Literal["osrm", "mock"] = "osrm"
    routing_base_url: str = "https://router.project-osrm.org"
    route_request_timeout_sec: int = 8
    route_retry_attempts: int = 3
    route_retry_backoff_sec: float = 0.5

    position_mode: Literal["live", "fixed"] = "fixed"
    position_source_url: str = ""
    position_poll_interval_sec: float = 5.0
    position_high_accuracy: bool = True
    default_lat: float = 43.0716
    default_lng: float = -79.1010
    auto_center: bool = True
    proximity_advance_meters: float = 30.0

    map_default_zoom: int = 15
    map_command_log_size: int = 200

    speech_enabled: bool = True
    narration_locale: str = "fr-CA"
    speech_rate: int = 160

    @field_validator("address_search_threshold", "address_fallback_threshold")
    @classmethod
    def check_threshold(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("similarity threshold must be between 0 and 1")
        return value

    @field_validator("position_poll_interval_sec")
    @classmethod
    def check_poll_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("position poll interval must be positive")
        return value

    @field_validator("default_lat")
    @classmethod
    def check_default_lat(cls, value: float) -> float:
        if not -90 <= value <= 90:
            raise ValueError("default_lat out of range")
        return value

    @field_validator("default_lng")
    @classmethod
    def check_default_lng(cls, value: float) -> float:
        if not -180 <= value <= 180:
            raise ValueError("default_lng out of range")
        return value

    @field_validator("frontend_origins", mode="before")
    @classmethod
    def parse_origins(cls, value: object) -> list[str]:
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return []
            if text.startswith("["):
                try:
                    value = json.loads(text)
                except json.JSONDecodeError:
                    pass
            if isinstance(value, str):
                value = value.split(",")
        if isinstance(value, list):
            # Browser `Origin` header never includes a trailing slash.
            return [str(item).strip().rstrip("/") for item in value if str(item).strip()]
        return []

    @model_validator(mode="after")
    def apply_defaults(self) -> "Settings":
        # Live mode without a source behaves like the fixed strategy.
        if self.position_mode == "live" and not self.position_source_url.strip():
            self.position_mode = "fixed"
        if self.address_fallback_threshold > self.address_search_threshold:
            self.address_fallback_threshold = self.address_search_threshold
        if not self.frontend_origins and self.env == "dev":
            self.frontend_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
        self.frontend_origins = list(dict.fromkeys(self.frontend_origins))
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

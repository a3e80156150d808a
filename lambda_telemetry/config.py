"""Process-wide configuration for the telemetry layer.

Values are read from the environment once, at first use, and cached for the
lifetime of the process. Call ``get_settings.cache_clear()`` to reload them.
"""

import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field

_TRUTHY = ("1", "true", "yes", "on")


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


class LogSettings(BaseModel):
    """Settings shared by every logger and instrumented client in the process"""
    service_name: str = Field("service", description="Service name stamped on every log event")
    env: str = Field("dev", description="Runtime environment; 'prod' suppresses debug output")
    is_test: bool = Field(False, description="Suppress all event output")
    pool_max_idle: int = Field(25, description="Idle keep-alive connections kept in the shared pool")
    pool_idle_ttl: float = Field(60.0, description="Seconds an idle pooled connection may live")

    @property
    def namespace(self) -> str:
        """CloudWatch namespace used for embedded metrics."""
        return f"{self.service_name}-{self.env}"

    @classmethod
    def from_env(cls) -> "LogSettings":
        return cls(
            service_name=os.environ.get("SERVICE_NAME", "service"),
            env=os.environ.get("SERVICE_ENV", "dev"),
            is_test=env_flag("LOG_IS_TEST"),
            pool_max_idle=int(os.environ.get("HTTP_MAX_IDLE_SOCKETS", 25)),
            pool_idle_ttl=float(os.environ.get("HTTP_IDLE_SOCKET_TTL", 60.0)),
        )


@lru_cache(maxsize=None)
def get_settings() -> LogSettings:
    return LogSettings.from_env()


def resolve_settings(settings: Optional[LogSettings] = None) -> LogSettings:
    return settings if settings is not None else get_settings()

"""Configuration management with environment variable support."""

import os
import secrets
from dataclasses import dataclass, field
from typing import Literal


def _parse_cors_origins() -> list[str]:
    """Parse CORS_ORIGINS environment variable."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    return [o.strip() for o in origins.split(",") if o.strip()]


def _parse_chip_denominations() -> tuple[int, ...]:
    """Parse CHIP_DENOMINATIONS environment variable."""
    raw = os.getenv("CHIP_DENOMINATIONS", "100,500,1000,5000")
    return tuple(int(v) for v in raw.split(",") if v.strip())


@dataclass(frozen=True)
class CORSConfig:
    """CORS configuration."""

    allowed_origins: list[str] = field(default_factory=_parse_cors_origins)
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate limiting configuration."""

    enabled: bool = field(
        default_factory=lambda: os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    )
    requests_per_minute: int = field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_RPM", "120"))
    )


@dataclass(frozen=True)
class SecurityConfig:
    """Security configuration."""

    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY", secrets.token_urlsafe(32))
    )


@dataclass(frozen=True)
class RedisConfig:
    """Redis connection configuration."""

    host: str = field(default_factory=lambda: os.getenv("REDIS_HOST", "localhost"))
    port: int = field(default_factory=lambda: int(os.getenv("REDIS_PORT", "6379")))
    db: int = field(default_factory=lambda: int(os.getenv("REDIS_DB", "0")))
    password: str | None = field(default_factory=lambda: os.getenv("REDIS_PASSWORD"))

    @property
    def url(self) -> str:
        """Build Redis connection URL."""
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


@dataclass(frozen=True)
class AuthConfig:
    """Authentication backend configuration."""

    base_url: str = field(
        default_factory=lambda: os.getenv("AUTH_BASE_URL", "http://localhost:8080")
    )
    timeout: float = field(default_factory=lambda: float(os.getenv("AUTH_TIMEOUT", "5.0")))


@dataclass(frozen=True)
class GameConfig:
    """Default table configuration."""

    starting_chips: int = field(
        default_factory=lambda: int(os.getenv("STARTING_CHIPS", "10000"))
    )
    dealer_chips: int = 999999  # Effectively unlimited house bankroll
    dealer_stands_on: int = 17
    chip_denominations: tuple[int, ...] = field(default_factory=_parse_chip_denominations)
    draw_source: Literal["shoe", "fixed"] = field(
        default_factory=lambda: os.getenv("DRAW_SOURCE", "shoe")  # type: ignore[arg-type]
    )
    num_decks: int = 6
    penetration: float = 0.75
    guest_name: str = "Mystery Player"


@dataclass(frozen=True)
class PacingConfig:
    """Reveal pacing hints for the presentation layer (milliseconds)."""

    card_appended_ms: int = 450
    card_revealed_ms: int = 150
    dealer_reveal_ms: int = 650
    blackjack_glow_ms: int = 2400
    scale: float = field(
        default_factory=lambda: float(os.getenv("REVEAL_DELAY_SCALE", "1.0"))
    )


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    session_ttl: int = 3600  # Session timeout in seconds

    redis: RedisConfig = field(default_factory=RedisConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    game: GameConfig = field(default_factory=GameConfig)
    pacing: PacingConfig = field(default_factory=PacingConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Global configuration instance
config = AppConfig()

"""
HypeMeter — Settings
──────────────────────
All configuration comes from the environment (or a local .env file).
Settings load once at startup; credentials are only checked when a
request actually needs them, so a missing key is a 500 on that request
rather than a crash on boot.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from hype_engine.errors import ConfigError

MENTION_BACKENDS = ("reddit", "gdelt")
QUOTE_SHAPES     = ("rich", "compact")


def _csv(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


@dataclass
class Settings:
    finnhub_api_key:      Optional[str] = None
    reddit_client_id:     Optional[str] = None
    reddit_client_secret: Optional[str] = None
    reddit_user_agent:    str = "HypeMeter/3.2"

    mentions_backend:     str = "reddit"    # "reddit" | "gdelt"
    quotes_shape:         str = "rich"      # "rich"   | "compact"
    cors_origins:         List[str] = field(default_factory=lambda: ["*"])

    max_concurrency:      int = 4
    fetch_timeout:        float = 10.0      # seconds, mention sources
    quote_timeout:        float = 8.0       # seconds, Finnhub
    retry_attempts:       int = 3           # total, including the first
    retry_backoff:        float = 0.3       # seconds, multiplied by attempt
    reddit_pause:         float = 0.5       # seconds between subreddit calls
    max_tickers:          int = 50
    cache_max_entries:    int = 2048
    port:                 int = 8000

    def __post_init__(self):
        if self.mentions_backend not in MENTION_BACKENDS:
            raise ConfigError(
                f"HYPE_MENTIONS_BACKEND must be one of {', '.join(MENTION_BACKENDS)}, "
                f"got {self.mentions_backend!r}"
            )
        if self.quotes_shape not in QUOTE_SHAPES:
            raise ConfigError(
                f"HYPE_QUOTES_SHAPE must be one of {', '.join(QUOTE_SHAPES)}, "
                f"got {self.quotes_shape!r}"
            )
        if self.max_concurrency < 1:
            raise ConfigError("HYPE_MAX_CONCURRENCY must be at least 1")

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        env = os.environ
        return cls(
            finnhub_api_key=env.get("FINNHUB_API_KEY") or None,
            reddit_client_id=(env.get("REDDIT_CLIENT_ID") or "").strip() or None,
            reddit_client_secret=(env.get("REDDIT_CLIENT_SECRET") or "").strip() or None,
            reddit_user_agent=env.get("REDDIT_USER_AGENT", "HypeMeter/3.2"),
            mentions_backend=env.get("HYPE_MENTIONS_BACKEND", "reddit").strip().lower(),
            quotes_shape=env.get("HYPE_QUOTES_SHAPE", "rich").strip().lower(),
            cors_origins=_csv(env.get("HYPE_CORS_ORIGINS", "*")) or ["*"],
            max_concurrency=int(env.get("HYPE_MAX_CONCURRENCY", "4")),
            fetch_timeout=float(env.get("HYPE_FETCH_TIMEOUT", "10")),
            quote_timeout=float(env.get("HYPE_QUOTE_TIMEOUT", "8")),
            retry_attempts=int(env.get("HYPE_RETRY_ATTEMPTS", "3")),
            retry_backoff=float(env.get("HYPE_RETRY_BACKOFF", "0.3")),
            reddit_pause=float(env.get("HYPE_REDDIT_PAUSE", "0.5")),
            max_tickers=int(env.get("HYPE_MAX_TICKERS", "50")),
            cache_max_entries=int(env.get("HYPE_CACHE_MAX_ENTRIES", "2048")),
            port=int(env.get("PORT", "8000")),
        )

    # ── Request-time credential checks ───────────────────────
    def require_finnhub_key(self) -> str:
        if not self.finnhub_api_key:
            raise ConfigError("Finnhub API key not configured")
        return self.finnhub_api_key

    def reddit_credentials(self) -> Optional[tuple]:
        """(client_id, secret) for OAuth, or None for the public search."""
        if self.reddit_client_id and self.reddit_client_secret:
            return (self.reddit_client_id, self.reddit_client_secret)
        if self.reddit_client_id or self.reddit_client_secret:
            raise ConfigError("Reddit OAuth needs both REDDIT_CLIENT_ID and REDDIT_CLIENT_SECRET")
        return None

"""OAuth support for Mercado Livre seller accounts."""

from .client import OAuthClient
from .replay import CodeReplayGuard, replay_guard

__all__ = ["OAuthClient", "CodeReplayGuard", "replay_guard"]

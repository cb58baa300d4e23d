"""
Centralized configuration package for tsretriever.

Provides a single source of truth for environment settings and constants.
"""

from .env import EnvConfig, env

__all__ = [
  "EnvConfig",
  "env",
]

# =============================================================================
# control_room/settings.py
# Configuration for Control Room
# Environment variables, .env files and Streamlit secrets
# =============================================================================
"""
Application settings.

Resolution order for every value:
    1. Process environment (after loading a ``.env`` file with python-dotenv)
    2. ``.streamlit/secrets.toml`` ``[supabase]`` section (url/key only)
    3. Built-in defaults

Expected secrets layout:
    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import streamlit as st
from dotenv import load_dotenv

from control_room.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path("data") / "control_room_offline.db"
DEFAULT_PROBE_INTERVAL = 30.0
DEFAULT_USD_TO_EGP = 50.0
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Settings:
    """Resolved runtime configuration."""
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    db_path: Path = DEFAULT_DB_PATH
    probe_interval: float = DEFAULT_PROBE_INTERVAL
    log_level: str = "INFO"
    currency_rates: Dict[str, float] = field(
        default_factory=lambda: {"EGP": 1.0, "USD": DEFAULT_USD_TO_EGP}
    )

    @property
    def has_remote(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @property
    def supabase_host(self) -> Optional[str]:
        """Host part of the Supabase URL, used by the connectivity probe."""
        if not self.supabase_url:
            return None
        return self.supabase_url.replace("https://", "").replace("http://", "").split("/")[0]


def _secrets_supabase() -> Dict[str, str]:
    """Read the [supabase] section of Streamlit secrets, if any."""
    try:
        if "supabase" in st.secrets:
            return dict(st.secrets["supabase"])
    except Exception as e:
        # No secrets.toml outside a configured Streamlit project
        logger.debug(f"Streamlit secrets unavailable: {e}")
    return {}


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be a number",
            config_key=name,
            expected_type="float",
        )


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build a Settings object from .env, environment and Streamlit secrets.

    Args:
        env_file: Optional explicit path to a .env file

    Raises:
        ConfigurationError: when a numeric setting cannot be parsed
    """
    load_dotenv(env_file)

    secrets = _secrets_supabase()
    url = os.getenv("SUPABASE_URL") or secrets.get("url")
    key = os.getenv("SUPABASE_KEY") or secrets.get("key")

    db_path = Path(os.getenv("CONTROL_ROOM_DB_PATH") or DEFAULT_DB_PATH)
    probe_interval = _float_env("CONTROL_ROOM_PROBE_INTERVAL", DEFAULT_PROBE_INTERVAL)
    usd_rate = _float_env("CONTROL_ROOM_USD_TO_EGP", DEFAULT_USD_TO_EGP)
    if usd_rate <= 0:
        raise ConfigurationError(
            "CONTROL_ROOM_USD_TO_EGP must be positive",
            config_key="CONTROL_ROOM_USD_TO_EGP",
        )

    log_level = (os.getenv("CONTROL_ROOM_LOG_LEVEL") or "INFO").upper()
    if log_level not in LOG_LEVELS:
        raise ConfigurationError(
            f"CONTROL_ROOM_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}",
            config_key="CONTROL_ROOM_LOG_LEVEL",
        )

    settings = Settings(
        supabase_url=url,
        supabase_key=key,
        db_path=db_path,
        probe_interval=probe_interval,
        log_level=log_level,
        currency_rates={"EGP": 1.0, "USD": usd_rate},
    )
    logger.info(
        f"Settings loaded (remote={'yes' if settings.has_remote else 'no'}, "
        f"db={settings.db_path})"
    )
    return settings


def create_supabase_client(settings: Settings):
    """
    Create a Supabase client from resolved settings.

    Raises:
        ConfigurationError: if the URL or key is missing
    """
    if not settings.supabase_url:
        raise ConfigurationError("Supabase URL is not configured", config_key="SUPABASE_URL")
    if not settings.supabase_key:
        raise ConfigurationError("Supabase key is not configured", config_key="SUPABASE_KEY")

    from supabase import create_client

    return create_client(settings.supabase_url, settings.supabase_key)

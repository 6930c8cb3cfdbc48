import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import yaml
from rich.console import Console

from veracode_tools.core.errors import ConfigurationError

console = Console(stderr=True)

CONFIG_DIR = Path(__file__).parent.parent.parent.parent / "config"


@dataclass(frozen=True)
class Credentials:
    api_id: str
    api_key: str

    def __repr__(self) -> str:
        return f"Credentials(api_id={self.api_id!r}, api_key='***')"


def load_config(profile: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> dict:
    """Load tool configuration, optionally overlaying a region profile.

    ``VERACODE_API_BASE_URL`` and ``VERACODE_PLATFORM_URL`` override the
    corresponding ``api`` settings.
    """
    default_path = CONFIG_DIR / "default_config.yaml"
    if not default_path.exists():
        console.print("[yellow]Warning: default_config.yaml not found, using built-in defaults[/]")
        config = _builtin_defaults()
    else:
        with open(default_path, "r") as f:
            config = yaml.safe_load(f) or {}

    if profile:
        profile_path = CONFIG_DIR / "profiles" / f"{profile}.yaml"
        if profile_path.exists():
            with open(profile_path, "r") as f:
                profile_config = yaml.safe_load(f) or {}
            config = _deep_merge(config, profile_config)
        else:
            console.print(f"[yellow]Warning: Profile '{profile}' not found, using defaults[/]")

    return _apply_env_overrides(config, os.environ if env is None else env)


def load_credentials(env: Optional[Mapping[str, str]] = None) -> Credentials:
    """Read API credentials from the environment."""
    env = os.environ if env is None else env
    missing = [name for name in ("VERACODE_API_ID", "VERACODE_API_KEY") if not env.get(name)]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variable(s): {', '.join(missing)}"
        )
    return Credentials(api_id=env["VERACODE_API_ID"], api_key=env["VERACODE_API_KEY"])


def _apply_env_overrides(config: dict, env: Mapping[str, str]) -> dict:
    overrides = {}
    if env.get("VERACODE_API_BASE_URL"):
        overrides["base_url"] = env["VERACODE_API_BASE_URL"]
    if env.get("VERACODE_PLATFORM_URL"):
        overrides["platform_url"] = env["VERACODE_PLATFORM_URL"]
    if overrides:
        config = _deep_merge(config, {"api": overrides})
    return config


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _builtin_defaults() -> dict:
    return {
        "api": {
            "base_url": "https://api.veracode.com/",
            "platform_url": None,
            "timeout": 30,
            "rate_limit": 10,
            "burst": 20,
            "max_concurrent": 5,
            "retries": 2,
            "user_agent": "veracode-agent-tools/0.1",
        },
        "findings": {
            "overview_size": 300,
            "default_size": 300,
            "max_size": 500,
            "compliance_max_pages": 10,
        },
        "sca": {
            "page_size": 500,
            "max_pages": 50,
            "summary_max_pages": 2,
            "portfolio_sample_size": 100,
            "top_n": 10,
            "summary_top_n": 5,
            "high_risk_threshold": 5,
            "recent_days": 30,
        },
        "resolution": {"strict_names": False, "suggestion_limit": 5},
        "logging": {"verbose": False, "file": None},
    }

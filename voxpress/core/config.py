import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from dotenv import load_dotenv
from pydantic import ValidationError

from .errors import ConfigurationError
from .models import ConfigContext, AudioSettings, PathsConfig, LimitsConfig

# Load environment variables from .env file (FFMPEG_BIN, FFPROBE_BIN, ...)
load_dotenv()

DEFAULT_CONFIG_FILENAME = "config.yaml"

def load_yaml(path: Path) -> Dict[str, Any]:
    if path.exists():
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}
    return {}

def _merge_dicts(base: Dict, update: Dict):
    """Recursively merge update dict into base dict."""
    for k, v in update.items():
        if isinstance(v, dict) and k in base and isinstance(base[k], dict):
            _merge_dicts(base[k], v)
        else:
            base[k] = v

def find_config_path(config_path: Optional[str] = None) -> Optional[Path]:
    """Resolve the config file: explicit path, then ./config.yaml, then the user config dir."""
    if config_path:
        return Path(config_path)

    cwd_config = Path(DEFAULT_CONFIG_FILENAME)
    home_config = Path.home() / ".config" / "voxpress" / DEFAULT_CONFIG_FILENAME

    if cwd_config.exists():
        return cwd_config
    if home_config.exists():
        return home_config
    return None

def load_config(config_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> ConfigContext:
    """Load configuration from file, apply overrides and validate it."""
    user_config_path = find_config_path(config_path)
    if config_path and not user_config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    user_config = load_yaml(user_config_path) if user_config_path else {}
    if overrides:
        _merge_dicts(user_config, overrides)

    try:
        return ConfigContext(
            audio=AudioSettings(**user_config.get("audio", {})),
            paths=PathsConfig(**user_config.get("paths", {})),
            limits=LimitsConfig(**user_config.get("limits", {})),
            debug=user_config.get("debug", False),
            output_mode=user_config.get("output_mode", "standard"),
        )
    except ValidationError as e:
        source = user_config_path or "defaults"
        raise ConfigurationError(f"Invalid configuration ({source}): {e}") from e

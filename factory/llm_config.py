import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Any, List, Optional

from django.conf import settings

logger = logging.getLogger(__name__)

_FALLBACK_CONFIG = {"providers": {}, "default_model": "claude_4_sonnet"}


def _config_path() -> Path:
    """Return the absolute path to the model config file."""
    configured = getattr(settings, "LLM_MODELS_CONFIG", "")
    if configured:
        return Path(configured)
    return Path(settings.BASE_DIR) / "config" / "llm_models.json"


@lru_cache(maxsize=1)
def _load_config() -> Dict[str, Any]:
    """Load the shared model config from disk (cached)."""
    path = _config_path()
    try:
        with path.open("r", encoding="utf-8") as fp:
            return json.load(fp)
    except FileNotFoundError:
        logger.error("Model config file not found at %s", path)
        return dict(_FALLBACK_CONFIG)
    except json.JSONDecodeError as exc:
        logger.error("Invalid JSON in model config: %s", exc)
        return dict(_FALLBACK_CONFIG)


def clear_config_cache() -> None:
    """Forget the cached config so the next call re-reads the file."""
    _load_config.cache_clear()


def get_provider_model_mapping(provider_name: str) -> Dict[str, str]:
    """Return {model_key: provider_model_name} for a provider."""
    provider = _load_config().get("providers", {}).get(provider_name, {})
    mapping = {}
    for model in provider.get("models", []):
        provider_model = model.get("provider_model") or model.get("key")
        mapping[model["key"]] = provider_model
    return mapping


def get_model_provider_map() -> Dict[str, str]:
    """Return {model_key: provider_name} for all models."""
    provider_map = {}
    config = _load_config()
    for provider_name, provider in config.get("providers", {}).items():
        for model in provider.get("models", []):
            provider_map[model["key"]] = provider_name
    return provider_map


def get_default_model_key(provider_name: Optional[str] = None) -> Optional[str]:
    """Return the default model key, optionally scoped to a provider."""
    config = _load_config()
    if provider_name:
        provider = config.get("providers", {}).get(provider_name, {})
        return provider.get("default_model") or config.get("default_model")
    return config.get("default_model")


def get_model_metadata(model_key: str) -> Optional[Dict[str, Any]]:
    """Return the metadata dict for a specific model key."""
    config = _load_config()
    for provider in config.get("providers", {}).values():
        for model in provider.get("models", []):
            if model.get("key") == model_key:
                return model
    return None


def get_available_models() -> List[Dict[str, Any]]:
    """Flat list of configured models with their provider name."""
    models = []
    for provider_name, provider in _load_config().get("providers", {}).items():
        for model in provider.get("models", []):
            models.append({
                "value": model["key"],
                "display_name": model.get("label") or model["key"],
                "provider": provider_name,
            })
    return models

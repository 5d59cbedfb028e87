"""Settings, LLM routes and the model registry for the assessment engine."""
from .registry import (
    MODEL_KEYS,
    NEXT_STEP_KEY,
    SELECTOR_KEY,
    TAGS_KEY,
    bind_model,
    bound_keys,
    get_model,
    is_bound,
    unbind_model,
)
from .routes import AppConfig, LlmRoute, OrchestratorSettings, load_config, resolve_registry
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "MODEL_KEYS",
    "NEXT_STEP_KEY",
    "OrchestratorSettings",
    "SELECTOR_KEY",
    "Settings",
    "TAGS_KEY",
    "bind_model",
    "bound_keys",
    "get_model",
    "is_bound",
    "load_config",
    "resolve_registry",
    "settings",
    "unbind_model",
]

"""Registry of the language-model callables the engine consults.

Callers look a model up per call, so tests and the server can rebind at any
time. An unbound key raises ``KeyError``; every caller treats that as the
signal to use its deterministic fallback.
"""
from typing import Any, Callable, Dict, List

SELECTOR_KEY = "models.question_selector"
NEXT_STEP_KEY = "models.next_step"
TAGS_KEY = "models.tag_extractor"
MODEL_KEYS = (SELECTOR_KEY, NEXT_STEP_KEY, TAGS_KEY)

_BOUND: Dict[str, Callable[..., Any]] = {}


def bind_model(key: str, fn: Callable[..., Any]) -> None:
    _BOUND[key] = fn


def unbind_model(key: str) -> None:
    _BOUND.pop(key, None)


def is_bound(key: str) -> bool:
    return key in _BOUND


def bound_keys() -> List[str]:
    return [key for key in MODEL_KEYS if key in _BOUND]


def get_model(key: str) -> Callable[..., Any]:
    """Return the callable bound to ``key``.

    Raises:
        KeyError: when nothing is bound.
    """

    try:
        return _BOUND[key]
    except KeyError:
        raise KeyError(f"no model bound for '{key}'") from None

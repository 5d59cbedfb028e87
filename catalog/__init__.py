"""Question catalog: definitions, tagged answers and the bundled question sets."""
from .answers import (
    Answer,
    ChoiceAnswer,
    MultiChoiceAnswer,
    ScaleAnswer,
    TextAnswer,
    answer_payload,
    answer_text,
    answer_values,
    coerce_answer,
)
from .deep_bank import BANK_VERSION, DEEP_BANK, FIRST_QUESTION_ID
from .models import QuestionDefinition, QuestionOption, QuestionVariant, safe_extract
from .pool import POOL_VERSION, QUESTION_POOL
from .providers import Catalog, CatalogError, QuestionProvider, StaticProvider


def default_catalog(providers=()) -> Catalog:
    """Catalog for the quick assessment mode."""
    return Catalog(QUESTION_POOL, providers, version=POOL_VERSION)


def deep_catalog(providers=()) -> Catalog:
    """Catalog for the deep interview mode."""
    return Catalog(DEEP_BANK, providers, version=BANK_VERSION)


__all__ = [
    "Answer",
    "Catalog",
    "CatalogError",
    "ChoiceAnswer",
    "FIRST_QUESTION_ID",
    "MultiChoiceAnswer",
    "QuestionDefinition",
    "QuestionOption",
    "QuestionProvider",
    "QuestionVariant",
    "ScaleAnswer",
    "StaticProvider",
    "TextAnswer",
    "answer_payload",
    "answer_text",
    "answer_values",
    "coerce_answer",
    "deep_catalog",
    "default_catalog",
    "safe_extract",
]

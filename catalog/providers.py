from __future__ import annotations  # Read-only catalog assembled from question providers

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Protocol, Sequence, Tuple

from .models import QuestionDefinition


logger = logging.getLogger(__name__)


class QuestionProvider(Protocol):  # Supplies extra question definitions at construction time
    def questions(self) -> Sequence[QuestionDefinition]: ...


class StaticProvider:  # Provider backed by a fixed tuple of definitions
    def __init__(self, questions: Iterable[QuestionDefinition], *, name: str = "static") -> None:
        self.name = name
        self._questions = tuple(questions)

    def questions(self) -> Sequence[QuestionDefinition]:
        return self._questions


class CatalogError(ValueError):  # Raised when providers disagree on question ids
    pass


class Catalog:
    """Immutable lookup over the base questions plus any additional providers."""

    def __init__(
        self,
        questions: Iterable[QuestionDefinition],
        providers: Sequence[QuestionProvider] = (),
        *,
        version: str = "",
    ) -> None:
        ordered: List[QuestionDefinition] = list(questions)
        for provider in providers:
            ordered.extend(provider.questions())
        index: Dict[str, QuestionDefinition] = {}
        for item in ordered:
            if item.id in index:
                raise CatalogError(f"duplicate question id '{item.id}'")
            index[item.id] = item
        self.version = version
        self._ordered: Tuple[QuestionDefinition, ...] = tuple(ordered)
        self._index = index
        logger.info("catalog loaded version=%s questions=%d providers=%d", version or "-", len(ordered), len(providers))

    def __iter__(self) -> Iterator[QuestionDefinition]:
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._index

    def get(self, question_id: str) -> Optional[QuestionDefinition]:
        return self._index.get(question_id)

    def in_block(self, block: str) -> List[QuestionDefinition]:
        return [item for item in self._ordered if item.block == block]

    def in_category(self, category: str) -> List[QuestionDefinition]:
        return [item for item in self._ordered if item.category == category]


__all__ = ["Catalog", "CatalogError", "QuestionProvider", "StaticProvider"]

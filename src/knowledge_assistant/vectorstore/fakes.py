"""Deterministic in-process stand-ins for the embedding and vector services.

Used by the tests and by the offline mode of the console entry point.
"""

import hashlib
import math
import struct
from typing import List, Optional, Sequence

from knowledge_assistant.rag.models import RetrievedMatch
from knowledge_assistant.vectorstore.base import (
    Embedder,
    VectorIndexClient,
    validate_query_text,
    validate_search_args,
)

# Excerpts from the stroke guideline corpus, highest score first
DEMO_MATCHES = (
    RetrievedMatch(
        id="doc1-chunk1",
        score=0.95,
        source_name="stroke_treatment_guidelines.pdf",
        text=(
            "Acute ischemic stroke treatment involves rapid assessment and intervention. "
            "Time-sensitive protocols include CT imaging, blood work, and potential "
            "thrombolytic therapy within the critical time window."
        ),
    ),
    RetrievedMatch(
        id="doc2-chunk3",
        score=0.88,
        source_name="rehabilitation_protocols.pdf",
        text=(
            "Post-stroke rehabilitation should begin as early as possible, typically within "
            "24-48 hours of stroke onset. Early mobilization and multidisciplinary care "
            "significantly improve patient outcomes."
        ),
    ),
    RetrievedMatch(
        id="doc3-chunk7",
        score=0.82,
        source_name="stroke_prevention_study.pdf",
        text=(
            "Primary stroke prevention focuses on managing modifiable risk factors including "
            "hypertension, diabetes, smoking cessation, and maintaining healthy cholesterol levels."
        ),
    ),
)


class StaticEmbedder(Embedder):
    """Hash-based embedder: the vector depends only on the text."""

    def __init__(self, dimension: int = 384):
        if dimension < 1:
            raise ValueError("dimension must be positive")
        self._dimension = dimension
        self.calls = 0

    @property
    def dimension(self) -> int:
        return self._dimension

    async def embed(self, text: str) -> List[float]:
        validate_query_text(text)
        self.calls += 1

        values = []
        counter = 0
        while len(values) < self._dimension:
            digest = hashlib.sha256(f"{counter}:{text}".encode("utf-8")).digest()
            for (word,) in struct.iter_unpack(">I", digest):
                values.append(word / 0xFFFFFFFF * 2.0 - 1.0)
            counter += 1

        vector = values[:self._dimension]
        norm = math.sqrt(sum(v * v for v in vector)) or 1.0
        return [v / norm for v in vector]


class StaticIndexClient(VectorIndexClient):
    """Returns a fixed match list, truncated to top_k."""

    def __init__(self, matches: Optional[Sequence[RetrievedMatch]] = None):
        self.matches = tuple(DEMO_MATCHES if matches is None else matches)
        self.queries = []

    async def search(
        self,
        query_vector: List[float],
        index_name: str,
        top_k: int
    ) -> List[RetrievedMatch]:
        validate_search_args(index_name, top_k)
        self.queries.append((list(query_vector), index_name, top_k))
        return list(self.matches[:top_k])

"""Text embedding service backed by fastembed (ONNX).

One EmbeddingService is built per process and handed to the pipeline and the
ranker. The model is loaded lazily on first use under a double-checked lock,
and every inference call is serialized because the ONNX session is not
assumed to be safe for concurrent callers.
"""

from __future__ import annotations

import os
import threading
import time
from collections.abc import Sequence
from enum import Enum
from typing import Any

import numpy as np
import structlog

from codesearch.core.errors import EmbeddingError

log = structlog.get_logger()

DEFAULT_BATCH_SIZE = 32


class ModelType(Enum):
    """Supported embedding models: (fastembed name, dimension, document prefix, query prefix)."""

    MINILM = ("sentence-transformers/all-MiniLM-L6-v2", 384, "", "")
    NOMIC = ("nomic-ai/nomic-embed-text-v1.5", 768, "search_document: ", "search_query: ")

    def __init__(self, model_name: str, dimension: int, document_prefix: str, query_prefix: str) -> None:
        self.model_name = model_name
        self.dimension = dimension
        self.document_prefix = document_prefix
        self.query_prefix = query_prefix

    @property
    def short_name(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, name: str | None) -> ModelType:
        """Resolve a config/CLI name; anything unrecognized falls back to MINILM."""
        if not name:
            return cls.MINILM
        key = name.strip().lower()
        for model in cls:
            if key in (model.short_name, model.model_name.lower(), model.model_name.split("/")[-1].lower()):
                return model
        return cls.MINILM


def _detect_providers() -> list[str]:
    """Detect available ONNX Runtime execution providers."""
    try:
        import onnxruntime as ort  # type: ignore[import-not-found]

        available = set(ort.get_available_providers())
    except Exception:
        return []

    providers: list[str] = []
    if "CUDAExecutionProvider" in available:
        providers.append("CUDAExecutionProvider")
    providers.append("CPUExecutionProvider")
    return providers


def _normalize(matrix: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    norms = np.maximum(norms, 1e-10)
    return (matrix / norms).astype(np.float32)


class EmbeddingService:
    """Maps text to fixed-length, L2-normalized float32 vectors."""

    def __init__(
        self,
        model_type: ModelType = ModelType.MINILM,
        *,
        auto_download: bool = True,
        cache_dir: str | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self.model_type = model_type
        self.auto_download = auto_download
        self.cache_dir = cache_dir
        self.batch_size = batch_size

        self._model: Any | None = None
        self._load_error: EmbeddingError | None = None
        self._load_lock = threading.Lock()
        self._infer_lock = threading.Lock()

    @property
    def dimension(self) -> int:
        return self.model_type.dimension

    def zero_vector(self) -> np.ndarray:
        """Placeholder vector used when the backend is unavailable."""
        return np.zeros(self.dimension, dtype=np.float32)

    def is_available(self) -> bool:
        """Load the model if needed; False instead of raising on load failure."""
        try:
            self._ensure_model()
        except EmbeddingError:
            return False
        return True

    def embed(self, text: str, *, is_query: bool = False) -> np.ndarray:
        """Embed one text.

        Raises:
            EmbeddingError: If the model can't be loaded or inference fails.
        """
        return self.embed_batch([text], batch_size=1, is_query=is_query)[0]

    def embed_batch(
        self,
        texts: Sequence[str],
        batch_size: int | None = None,
        *,
        is_query: bool = False,
    ) -> list[np.ndarray]:
        """Embed many texts, in order, ``batch_size`` per model call.

        Raises:
            EmbeddingError: If the model can't be loaded or inference fails.
        """
        if not texts:
            return []
        model = self._ensure_model()
        prefix = self.model_type.query_prefix if is_query else self.model_type.document_prefix
        inputs = [f"{prefix}{t}" for t in texts] if prefix else list(texts)
        size = batch_size or self.batch_size

        try:
            with self._infer_lock:
                raw = list(model.embed(inputs, batch_size=size))
        except Exception as e:
            raise EmbeddingError.inference(self.model_type.model_name, str(e)) from e

        matrix = np.asarray(raw, dtype=np.float32)
        if matrix.ndim != 2 or matrix.shape != (len(inputs), self.dimension):
            raise EmbeddingError.inference(
                self.model_type.model_name,
                f"expected shape ({len(inputs)}, {self.dimension}), got {matrix.shape}",
            )
        return list(_normalize(matrix))

    def _ensure_model(self) -> Any:
        """Lazy-load the fastembed TextEmbedding model exactly once."""
        model = self._model
        if model is not None:
            return model
        if self._load_error is not None:
            raise self._load_error

        with self._load_lock:
            if self._model is not None:
                return self._model
            if self._load_error is not None:
                raise self._load_error
            try:
                self._model = self._load()
            except EmbeddingError as e:
                self._load_error = e
                raise
            return self._model

    def _load(self) -> Any:
        name = self.model_type.model_name
        try:
            from fastembed import TextEmbedding  # type: ignore[import-not-found]
        except ImportError as e:
            log.warning("embedding.fastembed_not_installed", hint="pip install fastembed")
            raise EmbeddingError.model_load(name, f"fastembed is not installed: {e}") from e

        providers = _detect_providers()
        threads = max(1, (os.cpu_count() or 4) // 2)
        kwargs: dict[str, Any] = {
            "model_name": name,
            "threads": threads,
            "local_files_only": not self.auto_download,
        }
        if self.cache_dir is not None:
            kwargs["cache_dir"] = self.cache_dir
        if providers:
            kwargs["providers"] = providers

        start = time.monotonic()
        try:
            model = TextEmbedding(**kwargs)
        except Exception as e:
            log.warning("embedding.model_load_failed", model=name, error=str(e))
            raise EmbeddingError.model_load(name, str(e)) from e

        log.info(
            "embedding.model_loaded",
            model=name,
            dimension=self.dimension,
            providers=providers or ["CPUExecutionProvider"],
            threads=threads,
            elapsed_s=round(time.monotonic() - start, 2),
        )
        return model

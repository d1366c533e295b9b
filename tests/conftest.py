"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages,
keeps every test away from the user's real config and data directory, and
provides the fixtures shared by the index, search and CLI tests.
"""

import hashlib
import sys
from collections.abc import Callable, Generator, Iterable, Iterator
from pathlib import Path

import numpy as np
import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local codesearch package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of codesearch modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("codesearch"):
        del sys.modules[module_name]

from codesearch.config.models import CodeSearchConfig  # noqa: E402
from codesearch.core.errors import EmbeddingError  # noqa: E402
from codesearch.index.embedding import EmbeddingService, ModelType  # noqa: E402
from codesearch.index.manifest import ManifestStore  # noqa: E402
from codesearch.index.pipeline import IndexingPipeline  # noqa: E402
from codesearch.index.store import ChunkStore  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """No global YAML, no CODESEARCH__ env vars, data under tmp_path."""
    import os

    for key in list(os.environ):
        if key.upper().startswith("CODESEARCH__"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("codesearch.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "no-global-config.yaml")
    monkeypatch.setenv("CODESEARCH__DATABASE__DATA_DIR", str(tmp_path / "data"))
    yield


class FakeTextEmbedding:
    """Stands in for fastembed.TextEmbedding: hashed bag-of-words vectors."""

    def __init__(self, dimension: int = 384) -> None:
        self.dimension = dimension
        self.calls: list[list[str]] = []

    def embed(self, documents: Iterable[str], batch_size: int = 256, **_: object) -> Iterator[np.ndarray]:
        docs = list(documents)
        self.calls.append(docs)
        for doc in docs:
            vec = np.zeros(self.dimension, dtype=np.float32)
            for token in doc.lower().split():
                digest = hashlib.md5(token.encode()).hexdigest()
                vec[int(digest, 16) % self.dimension] += 1.0
            vec[0] += 0.01
            yield vec


def make_embedder(model_type: ModelType = ModelType.MINILM) -> tuple[EmbeddingService, FakeTextEmbedding]:
    service = EmbeddingService(model_type)
    fake = FakeTextEmbedding(model_type.dimension)
    service._model = fake
    return service, fake


@pytest.fixture
def embedder_factory() -> Callable[..., tuple[EmbeddingService, FakeTextEmbedding]]:
    """Builds (service, fake model) pairs for any model type."""
    return make_embedder


@pytest.fixture
def embedder() -> EmbeddingService:
    """Embedding service with a preloaded fake model."""
    service, _ = make_embedder()
    return service


@pytest.fixture
def unavailable_embedder() -> EmbeddingService:
    """Embedding service whose model failed to load."""
    service = EmbeddingService(ModelType.MINILM)
    service._load_error = EmbeddingError.model_load(ModelType.MINILM.model_name, "offline")
    return service


@pytest.fixture
def config() -> CodeSearchConfig:
    return CodeSearchConfig()


@pytest.fixture
def store(tmp_path: Path) -> Generator[ChunkStore, None, None]:
    """Chunk store on a fresh SQLite file with schema."""
    chunk_store = ChunkStore.open(tmp_path / "db" / "index.db")
    yield chunk_store
    chunk_store.close()


@pytest.fixture
def manifests(tmp_path: Path) -> ManifestStore:
    return ManifestStore(tmp_path / "manifests")


@pytest.fixture
def pipeline(
    store: ChunkStore,
    embedder: EmbeddingService,
    manifests: ManifestStore,
    config: CodeSearchConfig,
) -> IndexingPipeline:
    return IndexingPipeline(store, embedder, manifests, config)


@pytest.fixture
def codebase(tmp_path: Path) -> Path:
    """Small source tree with a .gitignore and a git-ignored directory."""
    root = tmp_path / "repo"
    (root / "src").mkdir(parents=True)
    (root / "generated").mkdir()
    (root / ".gitignore").write_text("generated/\n*.log\n")
    (root / "src" / "main.py").write_text(
        "def parse_config(path):\n    return load_yaml(path)\n\n\ndef main():\n    parse_config('app.yaml')\n"
    )
    (root / "src" / "util.rs").write_text("fn tokenize(input: &str) -> Vec<String> {\n    vec![]\n}\n")
    (root / "README.md").write_text("# Demo\n\nA tiny repository for tests.\n")
    (root / "generated" / "out.py").write_text("print('build output')\n")
    (root / "debug.log").write_text("log line\n")
    return root

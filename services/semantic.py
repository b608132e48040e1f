from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Protocol

import numpy as np
from sklearn.feature_extraction.text import HashingVectorizer

from domain.analysis import SemanticAnalysis
from domain.dtos import EncodedImage

class IDescriber(Protocol):
    def describe(self, image: EncodedImage, hints: Mapping[str, Any]) -> SemanticAnalysis:
        ...

class IEmbedder(Protocol):
    def embed(self, text: str) -> List[float]:
        ...

class HintsDescriber(IDescriber):
    """Builds the analysis from caller-supplied hints (caption, sidecar file).

    Stands in for a remote vision model; the image itself is not inspected.
    """

    def describe(self, image: EncodedImage, hints: Mapping[str, Any]) -> SemanticAnalysis:
        return SemanticAnalysis.model_validate(dict(hints))

class HashingEmbedder(IEmbedder):
    """Offline text embedder with a fixed output size."""

    def __init__(self, dim: int = 256) -> None:
        self.dim = dim
        self._vec = HashingVectorizer(
            n_features=dim,
            alternate_sign=False,
            norm=None,
            lowercase=True,
            stop_words="english",
        )

    def embed(self, text: str) -> List[float]:
        x = self._vec.transform([text])
        v = x.toarray().astype(np.float32).reshape(-1)
        n = float(np.linalg.norm(v))
        if n == 0:
            # nothing hashed: callers treat an empty result as "no embedding"
            return []
        return (v / n).tolist()

_CAPTION_KEYS = {
    "title": "title",
    "project": "project",
    "genre": "genre",
    "style": "style",
    "composition": "composition",
    "hook": "hook_type",
    "hook_type": "hook_type",
    "density": "visual_density",
    "tags": "tags",
    "subject": "main_subject",
    "audience": "target_audience",
    "ui": "ui_elements",
}

def parse_caption(text: str | None) -> Dict[str, str]:
    """Read ``key: value`` lines; a line without a key becomes the title."""
    hints: Dict[str, str] = {}
    if not text:
        return hints
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        key, sep, value = line.partition(":")
        field = _CAPTION_KEYS.get(key.strip().lower()) if sep else None
        if field is None:
            hints.setdefault("title", line)
            continue
        hints[field] = value.strip()
    return hints

def load_sidecar(image_path: Path) -> Dict[str, Any]:
    """Hints stored next to an image as ``<stem>.json``, if present."""
    path = image_path.with_suffix(".json")
    if not path.is_file():
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")
    return data

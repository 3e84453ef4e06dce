"""Model providers: load a StructureModel for an entry id.

`LocalModelProvider` reads mmCIF files from a directory.
`CachedModelProvider` wraps any provider and keeps the most recently
requested model only; asking for another entry replaces it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Tuple, Union

from molsnap.data.parsers.mmcif_parser import MMCIFParser
from molsnap.data.parsers.structure import StructureModel
from molsnap.errors import ModelNotFound


logger = logging.getLogger(__name__)


class ModelProvider(ABC):
    """Source of parsed structure models."""

    @abstractmethod
    def get_model(self, entry_id: str) -> StructureModel:
        """Return the model of an entry.

        Raises:
            ModelNotFound: If the entry cannot be found.
        """
        pass


class LocalModelProvider(ModelProvider):
    """Loads models from mmCIF files in a directory.

    For entry `1ABC` the files `1abc.cif`, `1abc.cif.gz`,
    `1abc_updated.cif` and `1abc_updated.cif.gz` are tried in this order.
    """

    SUFFIXES = (".cif", ".cif.gz", "_updated.cif", "_updated.cif.gz")

    def __init__(self, mmcif_dir: Union[str, Path], parser: Optional[MMCIFParser] = None):
        self.mmcif_dir = Path(mmcif_dir)
        self.parser = parser or MMCIFParser()

    def candidate_paths(self, entry_id: str) -> List[Path]:
        name = entry_id.lower()
        return [self.mmcif_dir / f"{name}{suffix}" for suffix in self.SUFFIXES]

    def find_file(self, entry_id: str) -> Path:
        """Path of the first existing file for an entry.

        Raises:
            ModelNotFound: If none of the candidate files exists.
        """
        candidates = self.candidate_paths(entry_id)
        for path in candidates:
            if path.exists():
                return path
        raise ModelNotFound(
            f"No mmCIF file for entry {entry_id} in {self.mmcif_dir}",
            {"entry_id": entry_id, "tried": [str(p) for p in candidates]},
        )

    def get_model(self, entry_id: str) -> StructureModel:
        path = self.find_file(entry_id)
        logger.info("Loading %s from %s", entry_id, path)
        return self.parser.parse(path, entry_id=entry_id.upper())


class CachedModelProvider(ModelProvider):
    """Single-slot cache in front of another provider.

    The same entry id returns the cached model; any other id evicts it.
    """

    def __init__(self, provider: ModelProvider):
        self.provider = provider
        self._slot: Optional[Tuple[str, StructureModel]] = None

    @property
    def cached_entry_id(self) -> Optional[str]:
        return self._slot[0] if self._slot is not None else None

    def get_model(self, entry_id: str) -> StructureModel:
        if self._slot is not None and self._slot[0] == entry_id:
            logger.debug("Model cache hit for %s", entry_id)
            return self._slot[1]
        model = self.provider.get_model(entry_id)
        self._slot = (entry_id, model)
        return model

    def clear(self) -> None:
        self._slot = None

"""Chain discovery by id."""

from __future__ import annotations

import logging
from pathlib import Path

from promptable.models.loaded_chain_file import LoadedChainFile


logger = logging.getLogger(__name__)


class ChainRegistry:
    """
    Finds chain markdown files by file stem across ordered roots.

    Earlier roots shadow later ones, so user chains can override shipped ones.
    """

    def __init__(self, chain_roots: list[Path]) -> None:
        self.chain_roots = chain_roots
        self._loaded: dict[str, LoadedChainFile] = {}
        self._paths: dict[str, Path] | None = None

    def _scan(self) -> dict[str, Path]:
        if self._paths is not None:
            return self._paths
        paths: dict[str, Path] = {}
        for root in self.chain_roots:
            if not root.is_dir():
                continue
            for path in sorted(root.rglob("*.md")):
                chain_id = path.stem
                if chain_id in paths:
                    logger.warning("Chain %s at %s is shadowed by %s", chain_id, path, paths[chain_id])
                    continue
                paths[chain_id] = path
        self._paths = paths
        return paths

    def list_chains(self) -> list[str]:
        return sorted(self._scan())

    def get(self, chain_id: str) -> LoadedChainFile:
        loaded = self._loaded.get(chain_id)
        if loaded is not None:
            return loaded
        path = self._scan().get(chain_id)
        if path is None:
            raise FileNotFoundError(f"Chain not found: {chain_id} (searched: {self.chain_roots})")
        loaded = LoadedChainFile.load(path)
        self._loaded[chain_id] = loaded
        return loaded

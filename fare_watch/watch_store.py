from __future__ import annotations

import logging
import os
import pathlib
import re
import tempfile
from typing import Any, Dict, List

import yaml
from pydantic import ValidationError

from .models import WatchEntry

logger = logging.getLogger(__name__)


class WatchStoreError(RuntimeError):
    """The watch file could not be read or written."""


class _WatchLoader(yaml.SafeLoader):
    """Safe loader that keeps zero-padded numbers such as ``0123`` as text.

    Plain YAML 1.1 reads them as octal, which turns flight 0123 into 83.
    """

    def construct_yaml_int(self, node):
        value = self.construct_scalar(node)
        if re.fullmatch(r"0[0-9_]+", value):
            return value
        return super().construct_yaml_int(node)


_WatchLoader.add_constructor("tag:yaml.org,2002:int", _WatchLoader.construct_yaml_int)


class WatchStore:
    """YAML watch file holding a ``flights`` list of watch entries.

    Top-level keys other than ``flights`` are kept as loaded and written back
    unchanged.
    """

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = pathlib.Path(path)
        self._document: Dict[str, Any] = {}

    def load(self) -> List[WatchEntry]:
        """Read and validate all watch entries."""
        logger.info("Loading watches from %s", self.path)
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                document = yaml.load(fh, Loader=_WatchLoader) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise WatchStoreError(f"Cannot read {self.path}: {exc}") from exc

        if not isinstance(document, dict):
            raise WatchStoreError(f"{self.path}: top level must be a mapping")
        flights = document.get("flights") or []
        if not isinstance(flights, list):
            raise WatchStoreError(f"{self.path}: 'flights' must be a list")

        entries: List[WatchEntry] = []
        for i, raw in enumerate(flights):
            if not isinstance(raw, dict):
                raise WatchStoreError(f"{self.path}: flight #{i} is not a mapping")
            try:
                entries.append(WatchEntry.from_mapping(raw))
            except ValidationError as exc:
                raise WatchStoreError(f"{self.path}: flight #{i}: {exc}") from exc

        self._document = document
        logger.debug("Loaded %d watches", len(entries))
        return entries

    def save(self, entries: List[WatchEntry]) -> None:
        """Write *entries* back, replacing the file atomically."""
        document = dict(self._document)
        document["flights"] = [e.to_mapping() for e in entries]

        directory = self.path.parent
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    yaml.safe_dump(
                        document, fh, sort_keys=False, default_flow_style=False
                    )
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except (OSError, yaml.YAMLError) as exc:
            raise WatchStoreError(f"Cannot write {self.path}: {exc}") from exc

        logger.info("Saved %d watches to %s", len(entries), self.path)


__all__ = ["WatchStore", "WatchStoreError"]

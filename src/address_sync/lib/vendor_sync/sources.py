"""Retirement candidate sources.

The vendor does not publish retirement events directly, so the list of
retired addresses is supplied by a pluggable source: an explicit list
(API request body) or a JSON file (CLI / cron).
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path

from loguru import logger

from address_sync.lib.vendor_sync.types import ChangeDescriptor


class RetirementSource(ABC):
    """Abstract provider of retired address descriptors."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short source name used in logs."""

    @abstractmethod
    def fetch(self) -> list[ChangeDescriptor]:
        """Return the retirement descriptors to process."""


class StaticRetirementSource(RetirementSource):
    """Source backed by an explicit, already-parsed list."""

    def __init__(self, descriptors: list[ChangeDescriptor]) -> None:
        self._descriptors = list(descriptors)

    @property
    def name(self) -> str:
        return "static"

    def fetch(self) -> list[ChangeDescriptor]:
        return list(self._descriptors)


class JsonFileRetirementSource(RetirementSource):
    """Source reading a JSON array of descriptor objects from disk.

    Each element needs ``id``, ``old_address`` and ``new_address``;
    ``region`` (or ``state``) and ``status`` are optional.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    @property
    def name(self) -> str:
        return f"file:{self.path}"

    def fetch(self) -> list[ChangeDescriptor]:
        """Parse the file into descriptors.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the JSON is not an array or an entry is invalid.
        """
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            msg = f"Retired address file must contain a JSON array: {self.path}"
            raise ValueError(msg)

        descriptors: list[ChangeDescriptor] = []
        for i, raw in enumerate(data):
            if not isinstance(raw, dict):
                msg = f"Invalid retired address entry at index {i}: expected an object"
                raise ValueError(msg)
            try:
                descriptors.append(ChangeDescriptor.from_dict(raw))
            except (TypeError, ValueError) as exc:
                msg = f"Invalid retired address entry at index {i}: {exc}"
                raise ValueError(msg) from exc

        logger.info(f"Loaded {len(descriptors)} retired address descriptors from {self.path}")
        return descriptors

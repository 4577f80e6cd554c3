"""
File-backed booking collection.

The whole collection is read and written at once, the same way the booking
site keeps its list in browser local storage.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Sequence

import pendulum

from ..domain.exceptions import StorageError
from ..domain.models import Booking

logger = logging.getLogger(__name__)


def bookings_to_json(bookings: Sequence[Booking]) -> str:
    """Serialize a collection as indented JSON."""
    return json.dumps([b.to_dict() for b in bookings], indent=2, ensure_ascii=False)


def bookings_from_json(text: str) -> List[Booking]:
    """
    Parse a JSON collection.

    Raises:
        StorageError: If the text is not a JSON list of bookings
    """
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise StorageError(f"Invalid JSON: {exc}") from exc

    if not isinstance(data, list):
        raise StorageError("Booking data must be a JSON list.")

    bookings: List[Booking] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise StorageError(f"Booking #{index} is not an object.")
        try:
            bookings.append(Booking.from_dict(item))
        except (KeyError, TypeError, ValueError, ArithmeticError) as exc:
            raise StorageError(f"Booking #{index} is malformed: {exc}") from exc

    return bookings


class JsonBookingStore:
    """Stores bookings in a single JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> List[Booking]:
        """
        Read the collection.

        A missing file is an empty collection. A corrupt file is moved aside
        to ``<name>.corrupt-<timestamp>`` and the collection starts empty, so
        the booking form keeps working and the next save cannot overwrite it.
        """
        if not self.path.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as file_handle:
                text = file_handle.read()
        except OSError as exc:
            raise StorageError(f"Could not read bookings from {self.path}: {exc}") from exc

        if not text.strip():
            return []

        try:
            return bookings_from_json(text)
        except StorageError as exc:
            backup = self._move_aside()
            logger.warning(
                "Ignoring unreadable booking file %s (moved to %s): %s", self.path, backup, exc
            )
            return []

    def _move_aside(self) -> Path:
        stamp = pendulum.now("UTC").format("YYYYMMDD[T]HHmmssSSSSSS")
        backup = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        try:
            self.path.replace(backup)
        except OSError as exc:
            raise StorageError(f"Could not move unreadable {self.path} aside: {exc}") from exc
        return backup

    def save(self, bookings: Sequence[Booking]) -> None:
        """Replace the stored collection."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as file_handle:
                file_handle.write(bookings_to_json(bookings))
            tmp_path.replace(self.path)
        except OSError as exc:
            raise StorageError(f"Could not save bookings to {self.path}: {exc}") from exc

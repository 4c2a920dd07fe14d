"""Album catalog collaborator.

Metadata lookup (title, artist, artwork) lives outside this package. The
core only asks whether an album id refers to something that exists before a
rating or review is written.
"""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable

from jukeboxd.core.exceptions import ItemNotFoundError, ValidationError


@runtime_checkable
class ItemCatalog(Protocol):
    def item_exists(self, item_id: str) -> bool: ...


class StaticItemCatalog:
    """Catalog backed by a fixed set of album ids (tests, CLI, seed scripts)."""

    def __init__(self, item_ids: Iterable[str] = ()):
        self._item_ids = set(item_ids)

    def add(self, item_id: str) -> None:
        self._item_ids.add(item_id)

    def item_exists(self, item_id: str) -> bool:
        return item_id in self._item_ids


def ensure_item_exists(catalog: ItemCatalog | None, item_id: str) -> None:
    """Raise ItemNotFoundError unless the catalog knows ``item_id``.

    With no catalog configured the reference is accepted as-is.
    """
    if not item_id or not item_id.strip():
        raise ValidationError("Album id is required")
    if catalog is not None and not catalog.item_exists(item_id):
        raise ItemNotFoundError()

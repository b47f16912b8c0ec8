"""Ordered, user-editable list of page references."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from pagecraft.exceptions import PageIndexError, PageRefNotFoundError
from pagecraft.logging import get_logger
from pagecraft.typing.models import PageRef

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from pagecraft.registry import SourceRegistry

logger = get_logger(__name__)


class PageSequence:
    """Output page order, edited through append, remove and move.

    Every inserted page gets a fresh `stable_id` that is never handed out
    again, so drag and delete gestures address a page independently of its
    current position.
    """

    def __init__(self, registry: SourceRegistry) -> None:
        self._registry = registry
        self._refs: list[PageRef] = []
        self._issued_ids: set[UUID] = set()

    @property
    def issued_ids_count(self) -> int:
        """Return how many stable ids this sequence has ever issued."""
        return len(self._issued_ids)

    def append_pages(self, source_id: str, indices: Iterable[int] | None = None) -> list[PageRef]:
        """Append one page reference per requested index, in the given order.

        Args:
            source_id (str): Identity of a registered source.
            indices (Iterable[int] | None): 0-based page indices; all pages when omitted.

        Raises:
            PageIndexError: If an index falls outside the source document.

        Returns:
            list[PageRef]: Newly appended references.
        """
        source = self._registry.resolve(source_id)
        requested = list(range(source.page_count)) if indices is None else list(indices)
        for index in requested:
            if not 0 <= index < source.page_count:
                raise PageIndexError(source_id=source_id, index=index, page_count=source.page_count)

        new_refs = [
            PageRef(stable_id=self._new_stable_id(), source_id=source_id, original_index=index)
            for index in requested
        ]
        if new_refs:
            self._registry.acquire(source_id, len(new_refs))
            self._refs.extend(new_refs)

        logger.debug(
            "Pages appended",
            extra={"source_id": source_id, "count": len(new_refs), "length": len(self._refs)},
        )
        return new_refs

    def remove(self, stable_id: UUID) -> PageRef:
        """Remove a page; the last page of a source releases that source.

        Args:
            stable_id (UUID): Page to remove.

        Returns:
            PageRef: The removed reference.
        """
        position = self.index_of(stable_id)
        ref = self._refs.pop(position)
        self._registry.release(ref.source_id)
        logger.debug("Page removed", extra={"stable_id": str(stable_id), "length": len(self._refs)})
        return ref

    def move(self, stable_id: UUID, new_position: int) -> None:
        """Move a page to `new_position`, clamped to the valid range.

        Args:
            stable_id (UUID): Page to move.
            new_position (int): Target index in the resulting sequence.
        """
        current = self.index_of(stable_id)
        target = min(max(new_position, 0), len(self._refs) - 1)
        if target == current:
            return
        ref = self._refs.pop(current)
        self._refs.insert(target, ref)
        logger.debug("Page moved", extra={"stable_id": str(stable_id), "from": current, "to": target})

    def move_before(self, stable_id: UUID, target_id: UUID) -> None:
        """Move a page to the slot currently held by another page.

        This is the drag-end gesture: dropping `stable_id` onto `target_id`.

        Args:
            stable_id (UUID): Dragged page.
            target_id (UUID): Page it was dropped on.
        """
        if stable_id == target_id:
            return
        self.move(stable_id, self.index_of(target_id))

    def index_of(self, stable_id: UUID) -> int:
        """Return the current position of a page.

        Args:
            stable_id (UUID): Page to look up.

        Raises:
            PageRefNotFoundError: If the page is not in the sequence.

        Returns:
            int: 0-based position.
        """
        for position, ref in enumerate(self._refs):
            if ref.stable_id == stable_id:
                return position
        raise PageRefNotFoundError(stable_id=str(stable_id))

    def to_ordered_refs(self) -> list[PageRef]:
        """Return a snapshot of the sequence, detached from later edits."""
        return list(self._refs)

    def clear(self) -> None:
        """Remove every page, releasing all sources."""
        while self._refs:
            ref = self._refs.pop()
            self._registry.release(ref.source_id)

    def _new_stable_id(self) -> UUID:
        stable_id = uuid4()
        while stable_id in self._issued_ids:
            stable_id = uuid4()
        self._issued_ids.add(stable_id)
        return stable_id

    def __len__(self) -> int:
        return len(self._refs)

    def __iter__(self) -> Iterator[PageRef]:
        return iter(list(self._refs))

    def __contains__(self, stable_id: object) -> bool:
        return any(ref.stable_id == stable_id for ref in self._refs)

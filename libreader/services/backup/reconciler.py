"""Shelf-membership reconciliation for documents about to be imported."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from libreader.schemas import DocumentProjection, ShelfProjection


@dataclass
class ReconcileResult:
    """Documents with repaired shelf references."""

    documents: list[DocumentProjection]
    repaired_count: int


def reconcile_shelf_membership(
    documents: Sequence[DocumentProjection],
    shelves: Sequence[ShelfProjection],
    shelf_exists: Callable[[str], bool] = lambda _shelf_id: False,
) -> ReconcileResult:
    """
    Make each document's shelf reference agree with the shelves' member lists.

    Snapshots carry the relationship from both ends and the two can disagree,
    so two passes run in order:

    1. Membership wins: a document listed by a shelf points at that shelf.
    2. Orphan repair: a reference naming neither an imported shelf nor one
       for which ``shelf_exists`` is true is cleared.

    Args:
        documents: Documents about to be inserted
        shelves: Every shelf in the snapshot
        shelf_exists: Lookup for shelves already in the target store

    Returns:
        ReconcileResult with copies of the documents (inputs are not mutated)
        and the number whose shelf reference changed
    """
    claimed: dict[str, str] = {}
    for shelf in shelves:
        for document_id in shelf.document_ids:
            claimed[document_id] = shelf.id

    imported_shelf_ids = {shelf.id for shelf in shelves}
    known: dict[str, bool] = {}

    def is_valid(shelf_id: str) -> bool:
        if shelf_id in imported_shelf_ids:
            return True
        if shelf_id not in known:
            known[shelf_id] = shelf_exists(shelf_id)
        return known[shelf_id]

    result: list[DocumentProjection] = []
    repaired = 0
    for document in documents:
        shelf_id = claimed.get(document.id, document.shelf_id)
        if shelf_id is not None and not is_valid(shelf_id):
            shelf_id = None

        if shelf_id != document.shelf_id:
            document = document.model_copy(update={"shelf_id": shelf_id})
            repaired += 1
        result.append(document)

    return ReconcileResult(documents=result, repaired_count=repaired)

"""Carry previously fetched enrichment across document edits.

Identity is the exact ``prompt_text``: a one-character edit means a new item
with no enrichment. The cache is a persisted ``prompt_text -> Enrichment``
mapping consulted alongside the previous document.
"""

from tripsheet.app.enrichment.targets import iter_enrichable
from tripsheet.app.models.itinerary import EnrichableNode, Enrichment, TripDocument

EnrichmentCache = dict[str, Enrichment]


def build_enrichment_index(doc: TripDocument) -> EnrichmentCache:
    """Map prompt_text to enrichment for every enriched node.

    Document order; with duplicate prompt texts the last one wins.
    """
    index: EnrichmentCache = {}
    for _path, node, _context in iter_enrichable(doc):
        if node.enrichment is not None:
            index[node.prompt_text] = node.enrichment
    return index


def apply_enrichment(node: EnrichableNode, enrichment: Enrichment | None) -> None:
    """Set a node's enrichment and derive its display text."""
    node.enrichment = enrichment
    if enrichment is not None and enrichment.name and not enrichment.needs_details:
        node.display_text = enrichment.name
    else:
        node.display_text = node.prompt_text


def merge_enrichment(
    fresh: TripDocument,
    previous: TripDocument | None,
    cache: EnrichmentCache | None = None,
) -> TripDocument:
    """Reconcile a fresh document against previously known enrichment.

    Args:
        fresh: Newly parsed or edited document
        previous: Last stored document, or None
        cache: Persisted prompt_text -> enrichment mapping

    Returns:
        A new document; ``fresh`` itself when there is nothing to merge from.
        Neither input is mutated.
    """
    if previous is None and not cache:
        return fresh

    lookup: EnrichmentCache = dict(cache or {})
    if previous is not None:
        lookup.update(build_enrichment_index(previous))

    merged = fresh.model_copy(deep=True)
    for _path, node, _context in iter_enrichable(merged):
        found = lookup.get(node.prompt_text)
        apply_enrichment(node, found.model_copy(deep=True) if found is not None else None)
    return merged


def prune_enrichment_cache(cache: EnrichmentCache, doc: TripDocument, max_entries: int) -> int:
    """Trim the cache in place to at most ``max_entries``.

    Oldest entries go first. Entries for text still in ``doc`` are never
    removed, so the cache can stay above the bound while the document needs it.

    Returns:
        Number of entries removed
    """
    excess = len(cache) - max_entries
    if excess <= 0:
        return 0
    in_use = {node.prompt_text for _path, node, _context in iter_enrichable(doc)}
    removable = [text for text in cache if text not in in_use][:excess]
    for text in removable:
        del cache[text]
    return len(removable)

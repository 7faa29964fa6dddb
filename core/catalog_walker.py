"""
Catalog Walker - Enumerates every order id of one kind.

Pages through the listing query 25 ids at a time, newest visual id first, until
the remote reports ``hasNextPage: false``. Newest-first means an interrupted
run has already covered the most recent orders when it resumes.

The walker never trusts ``totalNodes`` for control flow: it is only compared
against the final count and a disagreement is logged as a warning. A page that
cannot be fetched (after the scheduler's retries) raises CatalogPageFailure,
since a catalog with a missing page has gaps nobody can see.
"""

import logging
from typing import Dict, List, Optional

from .exceptions import CatalogPageFailure, ExtractionError
from .graphql_queries import build_listing_query
from .models import OrderKind, OrderRef

logger = logging.getLogger(__name__)

PROGRESS_EVERY_PAGES = 10


class CatalogWalker:
    """Walks a cursor-paginated listing into an ordered list of OrderRefs."""

    def __init__(self, scheduler):
        self.scheduler = scheduler

    def walk(self, kind: OrderKind) -> List[OrderRef]:
        """Return every OrderRef for ``kind`` in listing order (visual id descending).

        Raises:
            CatalogPageFailure: A page failed after retries, or the remote
                reported another page without giving a new cursor.
        """
        query = build_listing_query(kind)
        refs: List[OrderRef] = []
        seen = set()
        cursor: Optional[str] = None
        total_hint: Optional[int] = None
        page = 0

        logger.info("Fetching all %s IDs...", kind.value)

        while True:
            page += 1
            try:
                data = self.scheduler.execute(
                    query, {"cursor": cursor}, description=f"{kind.value} listing page {page}"
                )
            except ExtractionError as e:
                raise CatalogPageFailure(kind, page, e) from e

            connection: Dict = data.get(kind.connection_field) or {}
            for node in connection.get("nodes") or []:
                ref = OrderRef(internal_id=str(node["id"]), visual_id=str(node["visualId"]))
                if ref.visual_id in seen:
                    logger.warning(
                        "Duplicate %s #%s on listing page %d, keeping the first occurrence",
                        kind.value, ref.visual_id, page,
                    )
                    continue
                seen.add(ref.visual_id)
                refs.append(ref)

            if connection.get("totalNodes") is not None:
                total_hint = connection["totalNodes"]

            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break

            next_cursor = page_info.get("endCursor")
            if not next_cursor or next_cursor == cursor:
                raise CatalogPageFailure(
                    kind, page, ValueError("hasNextPage is true but endCursor did not advance")
                )
            cursor = next_cursor

            if page % PROGRESS_EVERY_PAGES == 0:
                logger.info("  Fetched %d %s IDs (page %d)...", len(refs), kind.value, page)

        if total_hint is not None and total_hint != len(refs):
            logger.warning(
                "Listing reported %d total %ss but pagination returned %d",
                total_hint, kind.value, len(refs),
            )

        logger.info("Found %d total %ss", len(refs), kind.value)
        return refs

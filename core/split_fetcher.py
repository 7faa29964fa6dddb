"""
Split Fetcher - Fetches one order as three complexity-bounded sub-queries.

Each sub-query is keyed only by the order's internal id and goes through the
shared RequestScheduler, so pacing holds whether the three run one after
another or concurrently (``parallel=True``).

If any sub-query fails (retries exhausted or a fatal failure), the whole fetch
fails and the other results are dropped. Callers never see fewer than three
sub-documents.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Tuple

from .exceptions import FatalFailure
from .graphql_queries import SPLIT_QUERY_BUILDERS
from .models import OrderKind, OrderRef, SubDocument, SubDocumentSection

logger = logging.getLogger(__name__)

SECTIONS = (
    SubDocumentSection.HEADER,
    SubDocumentSection.LINE_ITEMS,
    SubDocumentSection.FILES_FINANCIAL,
)


class SplitFetcher:
    """Issues the HEADER, LINE_ITEMS and FILES_FINANCIAL queries for one order.

    Attributes:
        scheduler: RequestScheduler shared with the rest of the run.
        parallel: Issue the three sub-queries on a thread pool.
    """

    def __init__(self, scheduler, parallel: bool = False):
        self.scheduler = scheduler
        self.parallel = parallel

    def fetch(self, kind: OrderKind, ref: OrderRef) -> Tuple[SubDocument, SubDocument, SubDocument]:
        """Fetch all three sub-documents for ``ref``.

        Returns:
            (header, line_items, files_financial)

        Raises:
            TransientFailure: A sub-query still failed after retries.
            FatalFailure: A sub-query failed non-retriably, or the order was not found.
        """
        if not self.parallel:
            return tuple(self.fetch_section(kind, ref, section) for section in SECTIONS)

        with ThreadPoolExecutor(max_workers=len(SECTIONS), thread_name_prefix="subquery") as pool:
            futures = [pool.submit(self.fetch_section, kind, ref, section) for section in SECTIONS]
            # result() re-raises the first failure in section order; the pool
            # still waits for the others before the with-block exits.
            return tuple(future.result() for future in futures)

    def fetch_section(self, kind: OrderKind, ref: OrderRef, section: SubDocumentSection) -> SubDocument:
        query = SPLIT_QUERY_BUILDERS[section](kind)
        description = f"{kind.value} #{ref.visual_id} {section.value}"
        data = self.scheduler.execute(query, {"id": ref.internal_id}, description=description)

        node = data.get(kind.graphql_field)
        if node is None:
            raise FatalFailure(f"No data returned for {kind.value} #{ref.visual_id} ({section.value})")

        logger.debug("Fetched %s", description)
        return SubDocument(section=section, order_id=str(node.get("id", "")), fields=node)

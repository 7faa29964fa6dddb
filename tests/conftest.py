"""Shared fixtures: a scripted in-process stand-in for the Printavo API."""

import copy
import json
import os

import pytest

from core.exceptions import TransientFailure

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")


def load_fixture(name):
    with open(os.path.join(FIXTURES_DIR, name)) as f:
        return json.load(f)


def _operation(query):
    """Return the operation name of a query, e.g. "GetHeader"."""
    head = query.strip().split("(", 1)[0].split("{", 1)[0]
    return head.replace("query", "", 1).strip()


class FakePrintavo:
    """Answers listing, preflight and split queries from in-memory orders.

    ``orders`` maps kind value ("invoice"/"quote") to a list of
    (internal_id, visual_id) pairs in listing order. ``failures`` maps
    (operation, internal_id) to a list of exceptions raised on successive
    calls before the call succeeds; use ``always_fail`` for permanent failures.
    """

    def __init__(self, orders=None, page_size=25):
        self.orders = orders or {"invoice": [], "quote": []}
        self.page_size = page_size
        self.failures = {}
        self.always_fail = {}
        self.calls = []
        self.order_data = load_fixture("order_parts.json")

    def fail(self, operation, internal_id, *exceptions):
        self.failures[(operation, internal_id)] = list(exceptions)

    def fail_always(self, operation, internal_id, exception):
        self.always_fail[(operation, internal_id)] = exception

    def count(self, operation, internal_id=None):
        return sum(
            1 for op, variables in self.calls
            if op == operation and (internal_id is None or variables.get("id") == internal_id)
        )

    def execute_graphql(self, query, variables=None):
        variables = variables or {}
        operation = _operation(query)
        self.calls.append((operation, dict(variables)))

        key = (operation, variables.get("id"))
        if key in self.always_fail:
            raise self.always_fail[key]
        pending = self.failures.get(key)
        if pending:
            raise pending.pop(0)

        if operation == "Preflight":
            return {
                "invoices": {"totalNodes": len(self.orders["invoice"])},
                "quotes": {"totalNodes": len(self.orders["quote"])},
            }
        if operation.startswith("List"):
            return self._list_page(operation, variables.get("cursor"))
        return self._order_part(operation, query, variables["id"])

    def _list_page(self, operation, cursor):
        connection = operation[len("List"):].lower()
        kind = connection[:-1]
        entries = self.orders[kind]
        start = int(cursor) if cursor else 0
        page = entries[start:start + self.page_size]
        end = start + len(page)
        return {
            connection: {
                "nodes": [{"id": i, "visualId": v} for i, v in page],
                "pageInfo": {"hasNextPage": end < len(entries), "endCursor": str(end) if page else None},
                "totalNodes": len(entries),
            }
        }

    def _order_part(self, operation, query, internal_id):
        kind = "invoice" if "invoice(id:" in query else "quote"
        visual_id = next(
            (v for i, v in self.orders[kind] if i == internal_id), None
        )
        if visual_id is None:
            return {kind: None}
        part = copy.deepcopy(self.order_data[operation])
        part["id"] = internal_id
        if operation == "GetHeader":
            part["visualId"] = visual_id
        return {kind: part}


@pytest.fixture
def fake_api():
    return FakePrintavo(
        orders={
            "invoice": [("inv-104", "104"), ("inv-103", "103"), ("inv-102", "102")],
            "quote": [("q-7", "7"), ("q-6", "6")],
        }
    )


@pytest.fixture
def transient():
    return TransientFailure("HTTP 503: Service Unavailable")

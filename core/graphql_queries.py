"""
GraphQL Query Definitions - Listing, preflight, and the three split queries.

Printavo rejects any query whose computed complexity exceeds 25,000. A single
query for a full order (header + nested line items + mockups + files +
financials) goes over that limit for large orders, so each order is fetched as
three queries, each with fixed page sizes at every nesting level:

  HEADER           scalar fields and single-object relations only
  LINE_ITEMS       lineItemGroups(10) -> imprints(10) -> mockups(5)
                                      -> lineItems(15) -> mockups(5)
  FILES_FINANCIAL  productionFiles(50), fees/expenses/tasks/transactions(30)

Every split query selects ``id`` at the top level; OrderMerger uses it to check
that all three responses belong to the same order.

The order type (``invoice`` or ``quote``) is the root field name, so the split
queries are built per OrderKind by the build_* functions.
"""

from .models import OrderKind, SubDocumentSection

LISTING_PAGE_SIZE = 25

PREFLIGHT_QUERY = """
query Preflight {
  invoices(first: 1) { totalNodes }
  quotes(first: 1) { totalNodes }
}
"""


def build_listing_query(kind: OrderKind) -> str:
    """Cursor-paginated id listing, newest visual id first."""
    name = kind.connection_field
    return f"""
query List{name.capitalize()}($cursor: String) {{
  {name}(first: {LISTING_PAGE_SIZE}, after: $cursor, sortOn: VISUAL_ID, sortDescending: true) {{
    nodes {{ id visualId }}
    pageInfo {{ hasNextPage endCursor }}
    totalNodes
  }}
}}
"""


def build_header_query(kind: OrderKind) -> str:
    return f"""
query GetHeader($id: ID!) {{
  {kind.graphql_field}(id: $id) {{
    id visualId nickname
    total subtotal totalUntaxed
    discount discountAsPercentage discountAmount
    salesTax salesTaxAmount
    amountPaid amountOutstanding paidInFull totalQuantity
    productionNote customerNote
    createdAt customerDueAt paymentDueAt invoiceAt dueAt startAt
    publicUrl publicPdf publicHash workorderUrl packingSlipUrl url
    visualPoNumber tags
    timestamps {{ createdAt updatedAt }}
    status {{ id name color position type }}
    contact {{
      id fullName firstName lastName email phone fax
      customer {{ id companyName }}
    }}
    owner {{ id email name }}
    billingAddress {{ address1 address2 city state stateIso zipCode country countryIso companyName customerName }}
    shippingAddress {{ address1 address2 city state stateIso zipCode country countryIso companyName customerName }}
    deliveryMethod {{ id name }}
    paymentTerm {{ id name }}
  }}
}}
"""


def build_line_items_query(kind: OrderKind) -> str:
    return f"""
query GetLineItems($id: ID!) {{
  {kind.graphql_field}(id: $id) {{
    id
    lineItemGroups(first: 10) {{
      nodes {{
        id position
        imprints(first: 10) {{
          nodes {{
            id details
            typeOfWork {{ id name }}
            mockups(first: 5) {{
              nodes {{ id fullImageUrl thumbnailUrl mimeType }}
            }}
          }}
        }}
        lineItems(first: 15) {{
          nodes {{
            id description color itemNumber
            category {{ id name }}
            position price items taxed markupPercentage productStatus
            product {{ id description itemNumber brand color }}
            sizes {{ size count }}
            mockups(first: 5) {{
              nodes {{ id fullImageUrl thumbnailUrl mimeType }}
            }}
          }}
        }}
      }}
    }}
  }}
}}
"""


def build_files_financial_query(kind: OrderKind) -> str:
    return f"""
query GetFilesFinancial($id: ID!) {{
  {kind.graphql_field}(id: $id) {{
    id
    productionFiles(first: 50) {{
      nodes {{ id fileUrl name mimeType }}
    }}
    fees(first: 30) {{
      nodes {{ id description amount quantity unitPrice unitPriceAsPercentage taxable }}
    }}
    expenses(first: 30) {{
      nodes {{ id name amount transactionAt userGenerated }}
    }}
    tasks(first: 30) {{
      nodes {{ id name dueAt completed completedAt }}
    }}
    transactions(first: 30) {{
      nodes {{
        ... on Payment {{ id amount transactionDate category processing source description }}
        ... on Refund {{ id amount transactionDate category }}
      }}
    }}
  }}
}}
"""


SPLIT_QUERY_BUILDERS = {
    SubDocumentSection.HEADER: build_header_query,
    SubDocumentSection.LINE_ITEMS: build_line_items_query,
    SubDocumentSection.FILES_FINANCIAL: build_files_financial_query,
}

"""GraphQL documents sent to the Monarch API.

Each constant pairs with an operation name in :mod:`monarch_review.client`.
Field selections cover what :mod:`monarch_review.models` reads; the server
rejects unknown fields, so keep these in sync with its schema.
"""

from __future__ import annotations

TRANSACTION_FIELDS = """
fragment ReviewTransactionFields on Transaction {
  id
  amount
  pending
  date
  originalDate
  hideFromReports
  plaidName
  notes
  isRecurring
  reviewStatus
  needsReview
  dataProviderDescription
  isSplitTransaction
  account {
    id
    displayName
    __typename
  }
  category {
    id
    name
    icon
    group {
      id
      type
      __typename
    }
    __typename
  }
  merchant {
    id
    name
    transactionsCount
    __typename
  }
  tags {
    id
    name
    color
    order
    __typename
  }
  __typename
}
"""

PAYLOAD_ERROR_FIELDS = """
fragment PayloadErrorFields on PayloadError {
  fieldErrors {
    field
    messages
    __typename
  }
  message
  code
  __typename
}
"""

LOGIN_PATH = "auth/login/"
GRAPHQL_PATH = "graphql"

GET_TRANSACTION_OP = "GetTransactionDrawer"
GET_TRANSACTION = (
    """
query GetTransactionDrawer($id: UUID!, $redirectPosted: Boolean) {
  getTransaction(id: $id, redirectPosted: $redirectPosted) {
    ...ReviewTransactionFields
    reviewedAt
    __typename
  }
}
"""
    + TRANSACTION_FIELDS
)

SEARCH_TRANSACTIONS_OP = "Web_GetTransactionsList"
SEARCH_TRANSACTIONS = (
    """
query Web_GetTransactionsList(
  $offset: Int, $limit: Int, $filters: TransactionFilterInput, $orderBy: TransactionOrdering
) {
  allTransactions(filters: $filters) {
    totalCount
    results(offset: $offset, limit: $limit, orderBy: $orderBy) {
      ...ReviewTransactionFields
      __typename
    }
    __typename
  }
}
"""
    + TRANSACTION_FIELDS
)

GET_CATEGORIES_OP = "GetCategories"
GET_CATEGORIES = """
query GetCategories {
  categories {
    id
    order
    name
    icon
    systemCategory
    isSystemCategory
    isDisabled
    group {
      id
      name
      type
      __typename
    }
    __typename
  }
}
"""

GET_TAGS_OP = "GetHouseholdTransactionTags"
GET_TAGS = """
query GetHouseholdTransactionTags(
  $search: String, $limit: Int, $bulkParams: BulkTransactionDataParams,
  $includeTransactionCount: Boolean = false
) {
  householdTransactionTags(search: $search, limit: $limit, bulkParams: $bulkParams) {
    id
    name
    color
    order
    transactionCount @include(if: $includeTransactionCount)
    __typename
  }
}
"""

UPDATE_TRANSACTION_OP = "Web_TransactionDrawerUpdateTransaction"
UPDATE_TRANSACTION = (
    """
mutation Web_TransactionDrawerUpdateTransaction($input: UpdateTransactionMutationInput!) {
  updateTransaction(input: $input) {
    transaction {
      ...ReviewTransactionFields
      __typename
    }
    errors {
      ...PayloadErrorFields
      __typename
    }
    __typename
  }
}
"""
    + TRANSACTION_FIELDS
    + PAYLOAD_ERROR_FIELDS
)

SET_TRANSACTION_TAGS_OP = "Web_SetTransactionTags"
SET_TRANSACTION_TAGS = (
    """
mutation Web_SetTransactionTags($input: SetTransactionTagsInput!) {
  setTransactionTags(input: $input) {
    errors {
      ...PayloadErrorFields
      __typename
    }
    transaction {
      id
      tags {
        id
        __typename
      }
      __typename
    }
    __typename
  }
}
"""
    + PAYLOAD_ERROR_FIELDS
)

BULK_UPDATE_TRANSACTIONS_OP = "Common_BulkUpdateTransactionsMutation"
BULK_UPDATE_TRANSACTIONS = """
mutation Common_BulkUpdateTransactionsMutation(
  $selectedTransactionIds: [ID!], $excludedTransactionIds: [ID!], $allSelected: Boolean!,
  $expectedAffectedTransactionCount: Int!, $updates: TransactionUpdateParams!,
  $filters: TransactionFilterInput
) {
  bulkUpdateTransactions(
    selectedTransactionIds: $selectedTransactionIds
    excludedTransactionIds: $excludedTransactionIds
    updates: $updates
    allSelected: $allSelected
    expectedAffectedTransactionCount: $expectedAffectedTransactionCount
    filters: $filters
  ) {
    success
    affectedCount
    errors {
      message
      __typename
    }
    __typename
  }
}
"""

FIND_MERCHANTS_OP = "Web_GetMerchantSelectHouseholdMerchants"
FIND_MERCHANTS = """
query Web_GetMerchantSelectHouseholdMerchants(
  $offset: Int!, $limit: Int!, $orderBy: MerchantOrdering, $search: String
) {
  merchants(
    offset: $offset
    limit: $limit
    orderBy: $orderBy
    search: $search
    includeMerchantsWithoutTransactions: false
  ) {
    id
    name
    logoUrl
    transactionCount
    __typename
  }
}
"""

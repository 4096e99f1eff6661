"""
OpenAPI schema customizations for drf-spectacular.

Tag naming follows the pattern: [App Name] - [Group Name]
Examples:
- Auth (JWT token endpoints)
- Ledger - Bookings
- Ledger - Payables
"""

# Natural language summaries for simplejwt endpoints
# Maps operation_id to (summary, description)
TOKEN_ENDPOINT_SUMMARIES = {
    "auth_token_create": (
        "Obtain token pair",
        "Authenticate with email and password to receive JWT access and refresh tokens.",
    ),
    "auth_token_refresh_create": (
        "Refresh access token",
        "Exchange a refresh token for a new access token. The old refresh token is blacklisted.",
    ),
    "auth_token_verify_create": (
        "Verify token",
        "Check that a token is valid and not expired.",
    ),
}

TAG_DESCRIPTIONS = [
    {
        "name": "Auth",
        "description": "JWT authentication for agents and staff.",
    },
    {
        "name": "Ledger - Bookings",
        "description": "Booking creation, date changes, voiding, write-offs and ledger figures.",
    },
    {
        "name": "Ledger - Instalments",
        "description": "Instalment payments and overdue instalment reporting.",
    },
    {
        "name": "Ledger - Credit Notes",
        "description": "Store credit issued from cancellations and its availability.",
    },
    {
        "name": "Ledger - Cancellations",
        "description": "Cancellation outcomes, cash refunds and credit-to-refund conversion.",
    },
    {
        "name": "Ledger - Payables",
        "description": "Customer and supplier payables and their settlement.",
    },
    {
        "name": "Ledger - Amendments",
        "description": "Manual balance corrections and their reversal.",
    },
    {
        "name": "Ledger - Commissions",
        "description": "Agent commission entries and monthly summaries.",
    },
]


def group_api_endpoints(result, generator, request, public):
    """
    Postprocessing hook to group API endpoints by function.

    Ledger endpoints set their tags via tags= in @extend_schema. This hook
    tags the simplejwt token endpoints, which are not decorated, and adds
    natural language summaries and tag descriptions.
    """
    paths = result.get("paths", {})

    for path, methods in paths.items():
        for method, operation in methods.items():
            if not isinstance(operation, dict):
                continue

            operation_id = operation.get("operationId", "")

            if operation_id in TOKEN_ENDPOINT_SUMMARIES:
                summary, description = TOKEN_ENDPOINT_SUMMARIES[operation_id]
                operation["summary"] = summary
                operation["description"] = description

            if operation_id.startswith("auth_"):
                operation["tags"] = ["Auth"]

    result["tags"] = TAG_DESCRIPTIONS

    return result

"""Record models and their wire/insert representations."""

from account_import.models.records import Account, Customer, CustomerAccountLink
from account_import.models.requests import (
    AccountRequest,
    CustomerAccountLinkRequest,
    CustomerRequest,
    to_account_request,
    to_customer_request,
    to_link_request,
)

__all__ = [
    "Account",
    "AccountRequest",
    "Customer",
    "CustomerAccountLink",
    "CustomerAccountLinkRequest",
    "CustomerRequest",
    "to_account_request",
    "to_customer_request",
    "to_link_request",
]

"""Bulk import of customers, accounts and their links from spreadsheets."""

__version__ = "0.1.0"

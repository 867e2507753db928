"""Storage, schema and access checks for a library application: books, loans, users and mail."""

__version__ = "0.1.0"
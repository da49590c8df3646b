"""Shared primitives: content identifiers, path keys, records and errors."""

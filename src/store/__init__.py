"""Table storage layer.

This module holds the schema registry, row store, query engine, and
persistence gateway that together make up the table store.
"""

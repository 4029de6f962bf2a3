"""Repository layer: generic table access helpers (SQLite).

Keep functions thin and focused; SQL text is produced only by query_builder.
"""
from __future__ import annotations

"""
Shared to-do list - a convergent multi-author to-do list engine.

Independent authors issue commands tagged with a logical timestamp and an
author id. Every entry keeps an append-only ledger of field updates, and
the visible list is recomputed from those ledgers on demand, so it
converges to the same state whatever order commands arrive in.

Architecture:
    ┌─────────────┐     ┌──────────────┐     ┌─────────────────┐
    │   Caller    │────▶│   Command    │────▶│ CommandApplier  │
    │             │     │   Journal    │     │                 │
    └─────────────┘     └──────────────┘     └────────┬────────┘
                                                      │
                                                      ▼
                        ┌─────────────────────────────────────────┐
                        │             ToDoListStore               │
                        │   entry id -> EntryLedger, banned set   │
                        └─────────────────────────────────────────┘
                                             │
                                             ▼
                                   snapshot(banned) per ledger
                                             │
                                             ▼
                                   visible Entry collection

Invariants:
    - Ledgers are append-only; the visible list is a derived view
    - Each field resolves by timestamp with a deterministic tie-break
    - Banning hides an author's updates without deleting them
    - No command fails on an unknown entry id

How to change safely:
    - Tie-break changes alter the converged view of existing histories
    - New command ops must be added to the reorder table

Version: see _version.py.
"""

from ._version import __version__

__all__ = ["__version__"]

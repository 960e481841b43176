"""
Shared to-do list test suite.

This package contains:
- unit/: Unit tests (ledger, merge rules, store, commands, journal, config)
- integration/: Journal -> applier -> store flows, convergence, replay tool
"""

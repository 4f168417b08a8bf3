"""Cache store implementations.

Provides the lock-file backed store, an in-memory store and the
process-wide handle to the active store.
Bounded Context: Cache Management
"""

"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the replay ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. dispute_lifecycle.py - Balance transitions agree with a reference model
2. determinism.py - Identical inputs produce identical output
3. locking.py - Exclusive access to accounts and stored records
4. concurrency.py - Concurrent workers lose no updates

These tests use hypothesis for property-based testing.
"""

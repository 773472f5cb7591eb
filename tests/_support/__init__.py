"""
Test support utilities for lambda-adapter tests.

Helpers that are not fixtures but are shared across test modules.
"""

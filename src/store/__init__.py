"""Relational storage layer.

This package declares destination table shapes and persists rows
inside chunk-scoped transactions.
"""

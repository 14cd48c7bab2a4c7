"""Streaming ingestion pipelines.

This package turns compressed telemetry streams into typed rows,
chunk by chunk, for the store layer.
"""

"""
Core Infrastructure for tts-batch.

This package provides foundational components:
    - config.py: Configuration loading and validation
    - errors.py: Coded exception hierarchy
    - logging/: Structured logging with numeric levels
    - metrics.py: Prometheus metrics collection
"""

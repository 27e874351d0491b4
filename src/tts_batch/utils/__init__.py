"""
Utility Modules for tts-batch.

    - timeit.py: Performance measurement utilities
"""

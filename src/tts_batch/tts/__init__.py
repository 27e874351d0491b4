"""
Synthesis Pipeline Components.

This package provides the chunked synthesis pipeline:
    - chunker.py: Text splitting into request-sized chunks
    - client.py: SynthesisClient interface and client factory
    - google_client.py: Google Cloud Text-to-Speech client
    - cancellation.py: Caller-controlled cancellation token
    - orchestrator.py: Concurrent, fail-fast, order-preserving synthesis
    - assembler.py: Audio concatenation and per-chunk writing
"""

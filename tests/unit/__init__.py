"""Unit tests for individual components in isolation.

Coverage:
    - models/: record validation and serialization
    - parsing/: PDF encoding and preview handles
    - session/: stream accumulation and session transitions
    - storage/: key-value store and persistence gateway
    - agent/: configuration, output parsing and Agno wiring

Uses fakes and mocks for the LLM provider.
"""

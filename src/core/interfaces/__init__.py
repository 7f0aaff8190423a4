"""Core interfaces.

Why:
- Defines the structural contracts (Protocol) that concrete adapters implement.
- The pipeline depends on these abstractions, which keeps it testable with fakes.
"""

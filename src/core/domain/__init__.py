"""Domain models and enums.

Why:
- Pure, strict data structures (Pydantic v2) shared by services, adapters and CLI.
- The domain knows nothing about subprocesses, Docker, or the terminal.
"""

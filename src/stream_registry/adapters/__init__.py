"""Adapters: Storage Port implementations for the stream registry.

Contains:
- memory.py        - InMemoryRepository, dict-backed and insertion ordered
- repositories.py  - SqlAlchemyRepository over the metadata database
- database.py      - engine/session lifecycle and the EntityRecord mapping
"""

__all__: list[str] = []

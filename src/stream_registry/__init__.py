"""Stream registry governance engine.

Tracks streaming-topology metadata (domains, schemas, streams, zones,
infrastructure, producers, consumers, processes and their bindings) and
enforces the entity lifecycle and referential integrity between them.
"""

__version__ = "0.1.0"

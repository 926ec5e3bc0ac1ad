"""
LegalEye Link Store

Persistence for requirement identifications and their link graph:

  - LinkStore: abstract interface used by the pipeline and the API
  - InMemoryLinkStore: dictionary-backed store for tests and local runs
  - Neo4jLinkStore: MERGE-backed store with composite uniqueness constraints
"""

from .link_store import LinkStore
from .memory_store import InMemoryLinkStore
from .neo4j_store import Neo4jLinkStore

__all__ = ["InMemoryLinkStore", "LinkStore", "Neo4jLinkStore"]

"""
Configuration package for the LegalEye identification service.

This package contains centralized configuration modules for:
  - Neo4j database connection settings
  - Worker, notification and SMTP settings

All modules should import configuration from here to ensure consistency.
"""

from .neo4j_config import get_neo4j_driver, verify_connection
from .worker_config import WorkerConfig

__all__ = ["WorkerConfig", "get_neo4j_driver", "verify_connection"]

"""
Neo4j Connection Configuration

This is the SINGLE source of truth for Neo4j connection settings.

The link store talks to Neo4j through the async driver created here; no
other module creates drivers.

Usage:
    from config.neo4j_config import get_neo4j_driver

    driver = get_neo4j_driver()
    records, summary, keys = await driver.execute_query("MATCH (n) RETURN count(n)")
    await driver.close()
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from neo4j import AsyncDriver, AsyncGraphDatabase

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# ============================================================================
# Connection Settings (from environment variables with defaults)
# ============================================================================

NEO4J_URI = os.getenv("NEO4J_URI", "neo4j://localhost:7687")
NEO4J_USER = os.getenv("NEO4J_USER", "neo4j")
NEO4J_PASSWORD = os.getenv("NEO4J_PASSWORD", "password")


# ============================================================================
# Driver Creation
# ============================================================================

def get_neo4j_driver(
    uri: Optional[str] = None,
    user: Optional[str] = None,
    password: Optional[str] = None,
) -> AsyncDriver:
    """
    Create and return an async Neo4j driver instance.

    Args:
        uri: Bolt/neo4j URI (defaults to NEO4J_URI)
        user: Username (defaults to NEO4J_USER)
        password: Password (defaults to NEO4J_PASSWORD)

    Returns:
        AsyncDriver connected to the configured database
    """
    return AsyncGraphDatabase.driver(
        uri or NEO4J_URI,
        auth=(user or NEO4J_USER, password or NEO4J_PASSWORD),
    )


async def verify_connection(driver: AsyncDriver) -> bool:
    """
    Verify that we can connect to Neo4j.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        await driver.verify_connectivity()
    except Exception as e:
        logger.error(f"Neo4j connection failed: {e}")
        return False
    return True

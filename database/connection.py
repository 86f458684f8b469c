import json
import logging
from pathlib import Path
from typing import Optional

import asyncpg

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("schema.sql")
COMMAND_TIMEOUT_S = 30.0


async def _init_connection(conn: asyncpg.Connection) -> None:
    # Decode jsonb (boundaries, centre lines) to Python lists on read.
    await conn.set_type_codec(
        "jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
    )


class DatabasePool:
    """Owns the asyncpg pool shared by the repositories.

    Created once by the API lifespan; ``initialize`` is idempotent.
    """

    def __init__(self):
        self._pool: Optional[asyncpg.Pool] = None

    async def initialize(
        self,
        dsn: Optional[str] = None,
        *,
        min_size: int = 2,
        max_size: int = 10,
        command_timeout: float = COMMAND_TIMEOUT_S,
    ) -> None:
        if self._pool is not None:
            return
        self._pool = await asyncpg.create_pool(
            dsn=dsn,
            min_size=min_size,
            max_size=max_size,
            command_timeout=command_timeout,
            init=_init_connection,
        )
        logger.info("Opened asyncpg pool (min=%s, max=%s)", min_size, max_size)

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        logger.info("Closed asyncpg pool")

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("DatabasePool.initialize() has not been awaited")
        return self._pool

    async def apply_schema(self, schema_path: Path = SCHEMA_PATH) -> None:
        """Run the idempotent DDL script (CREATE ... IF NOT EXISTS)."""
        async with self.pool.acquire() as conn:
            await conn.execute(schema_path.read_text(encoding="utf-8"))
        logger.info("Applied %s", schema_path.name)

    async def health_check(self) -> bool:
        """True when a pooled connection answers ``SELECT 1``."""
        if self._pool is None:
            return False
        try:
            async with self._pool.acquire() as conn:
                return await conn.fetchval("SELECT 1") == 1
        except (asyncpg.PostgresError, OSError) as exc:
            logger.warning("Database health check failed: %s", exc)
            return False

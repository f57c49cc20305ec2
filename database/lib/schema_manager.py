"""Database schema management module.

This module handles database schema versioning and migrations.

Schema files live in database/schema/vN.py and each exposes a `schema` dict:
- version: int matching the file name
- tables: full table definitions for a fresh install at that version
- migrations: SQL statements that bring version N-1 up to N
"""
import importlib
import logging
from pathlib import Path
from typing import Dict, Any, List

from ..exceptions import DatabaseSchemaError

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).resolve().parent.parent / 'schema'
SCHEMA_PACKAGE = 'database.schema'

class SchemaManager:
    """Manages database schema versioning and migrations."""

    def __init__(self, pool, schema_dir: Path = SCHEMA_DIR) -> None:
        """Initialize schema manager.

        Args:
            pool: Database connection pool
            schema_dir: Directory containing schema version files
        """
        self.pool = pool
        self._schema_dir = Path(schema_dir)
        self.current_version = 0

    async def initialize(self) -> None:
        """Bring the database up to the latest schema version.

        Raises:
            DatabaseSchemaError: If no valid schema files exist or a migration fails
        """
        schemas = self.load_schemas()
        if not schemas:
            raise DatabaseSchemaError("No valid schema files found in schema directory")

        try:
            async with self.pool.acquire() as conn:
                await conn.execute('''
                    CREATE TABLE IF NOT EXISTS schema_version (
                        version INT8 PRIMARY KEY,
                        applied_at TIMESTAMPTZ NOT NULL DEFAULT now()
                    )
                ''')
                self.current_version = await conn.fetchval(
                    'SELECT COALESCE(MAX(version), 0) FROM schema_version'
                )

                latest = max(schemas)
                if self.current_version >= latest:
                    logger.info(f"Schema is up to date (v{self.current_version})")
                    return

                logger.info(f"Updating schema from version {self.current_version} to {latest}")
                async with conn.transaction():
                    if self.current_version == 0:
                        await self._create_fresh_schema(conn, schemas[latest])
                    else:
                        for version in range(self.current_version + 1, latest + 1):
                            if version in schemas:
                                await self._apply_migrations(conn, schemas[version])

        except DatabaseSchemaError:
            raise
        except Exception as e:
            logger.error(f"Schema initialization failed: {e}")
            raise DatabaseSchemaError(f"Failed to initialize schema: {e}")

    def load_schemas(self) -> Dict[int, Dict[str, Any]]:
        """Load all schema version files.

        Returns:
            Dict mapping version numbers to schema definitions, sorted by version

        Raises:
            DatabaseSchemaError: If a schema file is malformed
        """
        schemas = {}

        for file in self._schema_dir.glob('v*.py'):
            try:
                version = int(file.stem[1:])
            except ValueError:
                logger.warning(f"Invalid schema filename: {file}")
                continue

            module = importlib.import_module(f"{SCHEMA_PACKAGE}.{file.stem}")
            schema = getattr(module, 'schema', None)
            if schema is None:
                raise DatabaseSchemaError(f"Schema file {file} missing 'schema' definition")
            if schema['version'] != version:
                raise DatabaseSchemaError(
                    f"Schema version mismatch in {file}: "
                    f"Expected v{version}, got v{schema['version']}"
                )
            schemas[version] = schema

        return dict(sorted(schemas.items()))

    async def _create_fresh_schema(self, conn, schema: Dict[str, Any]) -> None:
        """Create every table of the latest schema on an empty database."""
        for table in schema.get('tables', []):
            await conn.execute(self.create_table_sql(table))
            logger.info(f"Created table {table['name']}")
            for statement in self.index_sql(table):
                await conn.execute(statement)

        await conn.execute(
            'INSERT INTO schema_version (version) VALUES ($1)',
            schema['version']
        )
        logger.info(f"Created fresh schema version {schema['version']}")

    async def _apply_migrations(self, conn, schema: Dict[str, Any]) -> None:
        """Apply the migrations of a single version and record it."""
        for statement in schema.get('migrations', []):
            await conn.execute(statement)

        await conn.execute(
            'INSERT INTO schema_version (version) VALUES ($1)',
            schema['version']
        )
        logger.info(f"Successfully migrated to version {schema['version']}")

    @staticmethod
    def create_table_sql(table: Dict[str, Any]) -> str:
        """Render CREATE TABLE for a table definition."""
        columns: List[str] = []
        constraints: List[str] = []

        for col in table['columns']:
            col_def = f"{col['name']} {col['type']}"
            if col.get('primary_key'):
                constraints.append(f"PRIMARY KEY ({col['name']})")
            elif col.get('unique'):
                constraints.append(f"UNIQUE ({col['name']})")
            if 'default' in col:
                col_def += f" DEFAULT {col['default']}"
            if col.get('nullable') is False:
                col_def += " NOT NULL"
            columns.append(col_def)

        if isinstance(table.get('primary_key'), list):
            constraints.append(f"PRIMARY KEY ({', '.join(table['primary_key'])})")

        for fk in table.get('foreign_keys', []):
            constraints.append(
                f"FOREIGN KEY ({', '.join(fk['columns'])}) REFERENCES {fk['references']}"
            )

        return f"CREATE TABLE IF NOT EXISTS {table['name']} ({', '.join(columns + constraints)})"

    @staticmethod
    def index_sql(table: Dict[str, Any]) -> List[str]:
        """Render CREATE INDEX statements for a table definition."""
        statements = []
        for idx in table.get('indexes', []):
            unique = 'UNIQUE ' if idx.get('unique') else ''
            statements.append(
                f"CREATE {unique}INDEX IF NOT EXISTS {idx['name']} "
                f"ON {table['name']} ({', '.join(idx['columns'])})"
            )
        return statements

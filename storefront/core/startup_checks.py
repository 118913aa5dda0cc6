from __future__ import annotations

import logging
from pathlib import Path

from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy.engine import Engine

from storefront.core.config import DATABASE_URL, IS_PROD, IS_TEST

logger = logging.getLogger(__name__)
MIGRATIONS_PREFIX = "[MIGRATIONS]"


class SchemaNotReadyError(RuntimeError):
    """The database cannot serve this build of the storefront."""


def validate_database_environment() -> None:
    if IS_PROD and DATABASE_URL.startswith("sqlite"):
        logger.critical("%s refusing SQLite database in production", MIGRATIONS_PREFIX)
        raise SchemaNotReadyError("A production deployment needs a server database, not SQLite")


def script_heads(alembic_ini: Path) -> set[str]:
    """Revisions at the tip of the migration scripts shipped with this build."""
    config = Config(str(alembic_ini))
    config.set_main_option("script_location", str(alembic_ini.parent / "alembic"))
    return set(ScriptDirectory.from_config(config).get_heads())


def database_heads(engine: Engine) -> set[str]:
    with engine.connect() as connection:
        return set(MigrationContext.configure(connection).get_current_heads())


def ensure_migrations_applied(*, engine: Engine, alembic_config_path: Path) -> None:
    """Stop startup while the database lags behind the shipped migrations.

    SQLite databases are built from the models at startup and tests build
    their own schema, so neither is checked.
    """
    if IS_TEST or DATABASE_URL.startswith("sqlite"):
        logger.info("%s check skipped for %s", MIGRATIONS_PREFIX, engine.dialect.name)
        return
    if not alembic_config_path.is_file():
        logger.critical("%s no alembic.ini at %s", MIGRATIONS_PREFIX, alembic_config_path)
        raise SchemaNotReadyError(f"Alembic config missing: {alembic_config_path}")

    wanted = script_heads(alembic_config_path)
    applied = database_heads(engine)
    if not applied:
        logger.critical("%s database was never migrated", MIGRATIONS_PREFIX)
        raise SchemaNotReadyError("Run `alembic upgrade head` before starting the API")
    if applied != wanted:
        logger.critical(
            "%s database at %s, scripts at %s",
            MIGRATIONS_PREFIX,
            ",".join(sorted(applied)),
            ",".join(sorted(wanted)),
        )
        raise SchemaNotReadyError("Database schema is not at the latest revision")

    logger.info("%s schema at head %s", MIGRATIONS_PREFIX, ",".join(sorted(applied)))

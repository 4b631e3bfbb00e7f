from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from docreview.core.config import get_settings
from docreview.db.base import Base
import docreview.db.models  # noqa: F401  registers tables on Base.metadata

config = context.config
# A URL passed programmatically wins over DATABASE_URL
config.set_main_option(
    "sqlalchemy.url",
    config.attributes.get("database_url") or get_settings().database_url,
)

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

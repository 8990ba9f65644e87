from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from atehna_oms.config.settings import AtehnaConfigs
from atehna_oms.connections.database import Base, normalize_database_url
import atehna_oms.models  # noqa: F401  (registers every table on Base.metadata)

config = context.config

# DATABASE_URL always wins over alembic.ini
config.set_main_option("sqlalchemy.url", normalize_database_url(AtehnaConfigs().DATABASE_URL))

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit SQL without a database connection."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

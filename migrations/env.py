from logging.config import fileConfig
from sqlalchemy import create_engine
from alembic import context

from cnc_api.config import Config
from cnc_api.extensions import db
import cnc_api.models  # noqa: F401

config = context.config


if config.config_file_name is not None:
    fileConfig(config.config_file_name)


target_metadata = db.metadata

def get_database_url():
    """Uses the same DATABASE_URL resolution as the application."""
    return Config.SQLALCHEMY_DATABASE_URI

def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=get_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    connectable = create_engine(get_database_url())

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

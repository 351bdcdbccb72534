"""Alembic environment — migrates DATABASE_URL against jobcrm's model metadata."""
from logging.config import fileConfig

from alembic import context

from jobcrm.config import DATABASE_URL
from jobcrm.database import Base, build_engine
import jobcrm.models.user  # noqa: F401
import jobcrm.models.job_source  # noqa: F401
import jobcrm.models.job_posting  # noqa: F401
import jobcrm.models.job_match  # noqa: F401
import jobcrm.models.task  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(url=DATABASE_URL, target_metadata=target_metadata, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = build_engine(DATABASE_URL)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

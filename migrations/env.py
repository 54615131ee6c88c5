"""Alembic environment for the stock opname tables.

The URL comes from ``sqlalchemy.url`` when it is a literal URL. ``env://NAME``
reads the environment variable ``NAME`` (``DB_URL`` in ``alembic.ini``) and
falls back to the application's ``Config`` default, so migrations and
``create_app`` target the same database.
"""

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from config import Config
from opnameapp import models  # noqa: F401 - registers the tables on the metadata
from opnameapp.extensions import db

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# master_product, count_location and stock_count
target_metadata = db.Model.metadata


def _database_url() -> str:
    url = config.get_main_option("sqlalchemy.url") or "env://DB_URL"
    if not url.startswith("env://"):
        return url
    env_key = url.split("env://", 1)[1] or "DB_URL"
    return os.getenv(env_key) or Config.SQLALCHEMY_DATABASE_URI


def run_migrations_offline() -> None:
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = _database_url()

    connectable = engine_from_config(
        section,
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

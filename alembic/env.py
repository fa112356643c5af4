# alembic/env.py
# Миграции схемы челленджей. URL берётся из src.config (DATABASE_URL / .env),
# sqlalchemy.url в alembic.ini не используется.

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from src.config import DATABASE_URL
# src.db импортирует все модели, так что metadata полная
from src.db import Base

alembic_cfg = context.config
if alembic_cfg.config_file_name is not None:
    fileConfig(alembic_cfg.config_file_name)

COMPARE = dict(
    target_metadata=Base.metadata,
    compare_type=True,
    compare_server_default=True,
    # SQLite не умеет ALTER COLUMN; batch-режим пересоздаёт таблицу
    render_as_batch=DATABASE_URL.startswith("sqlite"),
)


def run_offline() -> None:
    context.configure(url=DATABASE_URL, literal_binds=True, **COMPARE)
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    engine = create_engine(DATABASE_URL, poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, **COMPARE)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()

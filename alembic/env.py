"""Alembic environment configuration."""
from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

import ekko.models  # noqa: F401  enregistre les tables
from ekko.config import get_settings
from ekko.models.base import Base

# ---- Charger la config Alembic
config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)


def get_url() -> str:
    # 1) priorité à la variable d'env
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url
    # 2) url explicitement posée sur la config (tests)
    configured = config.get_main_option("sqlalchemy.url")
    if configured:
        return configured
    # 3) fallback aux settings
    return get_settings().database_url


# --- Cible de métadonnées pour l'autogénération
target_metadata = Base.metadata


def _configure_common_kwargs() -> dict:
    """Options communes à offline/online (sans literal_binds)."""
    return dict(
        target_metadata=target_metadata,
        render_as_batch=True,        # crucial pour SQLite (ALTER TABLE)
        compare_type=True,           # détecter changements de type
        compare_server_default=True, # détecter defaults côté serveur
    )


def run_migrations_offline() -> None:
    url = get_url()
    context.configure(
        url=url,
        **_configure_common_kwargs(),
        literal_binds=True,          # <= UNIQUEMENT offline
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    configuration = config.get_section(config.config_ini_section, {}) or {}
    configuration["sqlalchemy.url"] = get_url()

    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            **_configure_common_kwargs(),   # <= PAS de literal_binds ici
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

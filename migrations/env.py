import sys
from pathlib import Path
from alembic import context
from sqlalchemy import create_engine, pool
from logging.config import fileConfig

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.db import Base, DatabaseSettings
import core.models  # noqa: F401  registers children, parent_preferences, videos

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# Same DATABASE_URL (env or .env) the API and jobs use
DATABASE_URL = DatabaseSettings().database_url

# SQLite cannot ALTER constraints in place
RENDER_AS_BATCH = DATABASE_URL.startswith("sqlite")

def run_migrations_offline():
    """Emit SQL for the children/preferences/videos schema without a connection"""
    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=RENDER_AS_BATCH,
    )
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online():
    connectable = create_engine(DATABASE_URL, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=RENDER_AS_BATCH,
        )
        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

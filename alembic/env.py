from logging.config import fileConfig

from alembic import context

from shifteaze import models  # noqa: F401
from shifteaze.db import Base, build_engine, get_database_url

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def run_migrations() -> None:
    url = get_database_url()
    if context.is_offline_mode():
        context.configure(url=url, target_metadata=Base.metadata, literal_binds=True)
        with context.begin_transaction():
            context.run_migrations()
        return
    connectable = build_engine(url)
    try:
        with connectable.connect() as connection:
            context.configure(connection=connection, target_metadata=Base.metadata)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        connectable.dispose()


run_migrations()

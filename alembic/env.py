from logging.config import fileConfig

from alembic import context
from dotenv import load_dotenv

# .env must be loaded before jobportal.core.config builds its settings
load_dotenv()

from jobportal.core.config import settings  # noqa: E402
from jobportal.db.base import Base  # noqa: E402
from jobportal.db.session import make_engine  # noqa: E402
import jobportal.models.registry  # noqa: E402,F401  (registers every table)

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata
db_url = config.get_main_option("sqlalchemy.url") or settings.DATABASE_URL

# SQLite cannot ALTER most columns in place; batch mode recreates the table
BATCH = db_url.startswith("sqlite")


def run_migrations_offline():
    context.configure(
        url=db_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=BATCH,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    engine = make_engine(db_url)
    try:
        with engine.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                compare_type=True,
                render_as_batch=BATCH,
            )
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

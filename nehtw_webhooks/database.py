"""Async SQLAlchemy engine & session — supports SQLite and PostgreSQL."""

from sqlalchemy import event
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from nehtw_webhooks.config import get_settings

settings = get_settings()

# SQLite needs connect_args for async; PostgreSQL uses pool_size
if settings.is_sqlite:
    engine = create_async_engine(
        settings.database_url,
        echo=settings.debug,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_size=10,
    )

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


@event.listens_for(Base, "init", propagate=True)
def _apply_defaults(target, args, kwargs):
    """Apply scalar and callable Column defaults right after __init__."""
    mapper = sa_inspect(type(target))
    for col_attr in mapper.column_attrs:
        key = col_attr.key
        if key in kwargs or getattr(target, key, None) is not None:
            continue
        default = col_attr.columns[0].default
        if default is None:
            continue
        if default.is_callable:
            setattr(target, key, default.arg(None))
        elif default.is_scalar:
            setattr(target, key, default.arg)


async def init_models():
    """Create tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    async with async_session() as session:
        yield session

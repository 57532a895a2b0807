from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from settings import DATABASE_URL, SQL_ECHO
from app_logger import get_logger
import models  # noqa: F401  (registers the tables on SQLModel.metadata)

log = get_logger("database")

# 1. Create the Async Engine
engine = create_async_engine(DATABASE_URL, echo=SQL_ECHO, future=True)

# 2. One session factory for requests and tests alike
async_session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db():
    async with engine.begin() as conn:
        # This creates the tables if they don't exist
        await conn.run_sync(SQLModel.metadata.create_all)
    log.info("Database tables ready on %s", engine.url.render_as_string(hide_password=True))


async def get_session() -> AsyncSession:
    async with async_session() as session:
        yield session


async def drop_db():
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    log.warning("Dropped all tables on %s", engine.url.render_as_string(hide_password=True))

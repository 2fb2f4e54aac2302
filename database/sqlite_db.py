"""
Configuração do banco SQLite
"""

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker

from config.settings import get_settings
from database.models import Base


settings = get_settings()


def async_database_url(database_url: str) -> str:
    """Usar o driver aiosqlite para URLs sqlite"""
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return database_url


async_engine = create_async_engine(
    async_database_url(settings.usage_database_url),
    echo=settings.debug
)

AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def init_database(engine: AsyncEngine = async_engine):
    """Inicializar banco de dados"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

# wholesale_orders/utils/database.py

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base
from sqlalchemy.future import select
from sqlalchemy.pool import NullPool
from wholesale_orders.config import settings
from wholesale_orders.utils.security import hash_password

# ────────────── Base for models ──────────────
Base = declarative_base()

# ────────────── Database URL ──────────────
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# ────────────── Async engine ──────────────
engine_options = {}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    # aiosqlite connections are not shared between event loops
    engine_options["poolclass"] = NullPool

engine = create_async_engine(
    SQLALCHEMY_DATABASE_URL,
    echo=settings.LOG_PRINT_DB.lower() in ("1", "true", "yes"),
    **engine_options
)

# ────────────── Async session ──────────────
# expire_on_commit stays off: services return ORM objects after commit
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# ────────────── Database init ──────────────
async def init_db(bind=None, session_factory=None):
    """
    Creates all tables (if missing) and makes sure a super admin exists.
        - The admin login and password come from settings (ADMIN_LOGIN / ADMIN_PASSWORD)
        - The password is stored hashed
    """
    # models must be imported so their tables are registered on Base.metadata
    from wholesale_orders.models import order, installment, status_log, user  # noqa: F401
    from wholesale_orders.models.enums import UserRole
    from wholesale_orders.models.user import User

    bind = bind or engine
    session_factory = session_factory or AsyncSessionLocal

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        result = await session.execute(select(User).where(User.role == UserRole.SUPER_ADMIN))
        if result.scalars().first() is None:
            admin_user = User(
                name="Administrator",
                login=settings.ADMIN_LOGIN,
                password=hash_password(settings.ADMIN_PASSWORD),
                role=UserRole.SUPER_ADMIN,
            )
            session.add(admin_user)
            await session.commit()

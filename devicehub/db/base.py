from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from devicehub.core.config import DATABASE_URL

# echo=False 可避免印出 SQL 指令，設為 True 可用於除錯
engine = create_async_engine(DATABASE_URL, echo=False, future=True)

# expire_on_commit=False 可讓你在 commit 後仍能存取 session 中的物件
async_session_maker = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

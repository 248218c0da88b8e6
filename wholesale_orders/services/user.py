# wholesale_orders/services/user.py

from sqlalchemy.future import select
from fastapi import Request

from wholesale_orders.models.user import User as UserModel


async def read_user_by_login_service(login: str, request: Request) -> UserModel | None:
    """
    User by login, or None.
    """
    db = request.state.db

    result = await db.execute(select(UserModel).where(UserModel.login == login))
    return result.scalar_one_or_none()

from fastapi import Depends
from stocktrack.core.exceptions import AuthorizationError
from stocktrack.utils.get_user import get_current_user
from stocktrack.models.users.user_models import User


def require_role(roles: list[str], message: str = "Permission denied"):
    async def role_checker(user: User = Depends(get_current_user)):
        if user.role.lower() not in [r.lower() for r in roles]:
            raise AuthorizationError(message)
        return user
    return role_checker


require_admin = require_role(["admin"], "Admin access required")
require_manager_or_admin = require_role(
    ["admin", "manager"], "Manager or admin access required"
)

from fastapi import Depends

from .dependencies import get_current_user
from .error_handlers import ForbiddenError


def _role_required(required_role: str):
    def check_role(user=Depends(get_current_user)):
        if user.get("role") != required_role:
            raise ForbiddenError(f"{required_role.capitalize()} access only")
        return user
    return check_role


admin_only = _role_required("admin")

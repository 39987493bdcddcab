from fastapi import APIRouter, Depends

from ..application.services.user_service import UserService
from ..dependencies import Identity, get_current_identity, get_user_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/")
def list_users(user_service: UserService = Depends(get_user_service)):
    return user_service.list_users()


@router.get("/admin/all")
def list_users_admin(identity: Identity = Depends(get_current_identity),
                     user_service: UserService = Depends(get_user_service)):
    users = user_service.list_users_for_admin()
    return {"success": True, "count": len(users), "users": users}

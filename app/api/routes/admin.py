"""Admin back-office routes."""

from fastapi import APIRouter

from app.api.deps import AdminUser, Config, DB
from app.schemas.admin import ApiConfigUpdate, UpdateRoleRequest
from app.services.admin_service import AdminService
from app.utils.envelopes import api_success

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats", response_model=dict)
async def get_stats(admin: AdminUser, db: DB):
    stats = await AdminService.get_stats(db)
    return api_success(stats.model_dump(by_alias=True))


@router.get("/users", response_model=dict)
async def list_users(admin: AdminUser, db: DB):
    users = await AdminService.list_users(db)
    return api_success([user.model_dump() for user in users])


@router.get("/videos", response_model=dict)
async def list_videos(admin: AdminUser, db: DB):
    videos = await AdminService.list_videos(db)
    return api_success([video.to_api() for video in videos])


@router.put("/users/{user_id}/role", response_model=dict)
async def update_role(user_id: str, payload: UpdateRoleRequest, admin: AdminUser, db: DB):
    user = await AdminService.update_role(db, admin, user_id, payload.role)
    return api_success(user.model_dump())


@router.post("/users/{user_id}/ban", response_model=dict)
async def ban_user(user_id: str, admin: AdminUser, db: DB):
    user = await AdminService.ban_user(db, admin, user_id)
    return api_success(user.model_dump())


@router.get("/api-configs", response_model=dict)
async def list_api_configs(admin: AdminUser, db: DB, provider: Config):
    """Administrable backend settings. Secret values are masked."""
    entries = await provider.describe(db)
    return api_success([entry.model_dump(by_alias=True) for entry in entries])


@router.get("/api-configs/{name}", response_model=dict)
async def get_api_config(name: str, admin: AdminUser, db: DB, provider: Config):
    entries = await provider.describe(db, name)
    return api_success(entries[0].model_dump(by_alias=True))


@router.put("/api-configs", response_model=dict)
async def update_api_config(payload: ApiConfigUpdate, admin: AdminUser, db: DB, provider: Config):
    entry = await provider.update(db, payload.name, payload.value, updated_by=admin.id)
    return api_success(entry.model_dump(by_alias=True))

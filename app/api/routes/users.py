from fastapi import APIRouter, File, UploadFile

from app.api.deps import AppSettings, CurrentUser, DB, Ctx
from app.schemas.users import ProfileUpdate
from app.services.profile_service import ProfileService, to_profile_response
from app.utils.envelopes import api_success

router = APIRouter(tags=["users"])


@router.get("/users/me", response_model=dict)
async def get_current_user_endpoint(current_user: CurrentUser):
	return api_success(to_profile_response(current_user).model_dump())


@router.patch("/users/me", response_model=dict)
async def update_current_user_endpoint(
	payload: ProfileUpdate,
	current_user: CurrentUser,
	db: DB,
):
	profile = await ProfileService.update_profile(db, current_user, payload)
	return api_success(to_profile_response(profile).model_dump())


@router.post("/users/me/avatar", response_model=dict)
async def upload_avatar_endpoint(
	current_user: CurrentUser,
	db: DB,
	context: Ctx,
	settings: AppSettings,
	file: UploadFile = File(...),
):
	data = await file.read()
	profile = await ProfileService.upload_avatar(
		db,
		current_user,
		context.storage,
		settings,
		filename=file.filename or "avatar.jpg",
		content_type=file.content_type,
		data=data,
	)
	return api_success(to_profile_response(profile).model_dump())

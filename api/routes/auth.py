# api/routes/auth.py

from fastapi import APIRouter, Depends, Response, status

from magpie.auth.context import AuthenticatedUser, UserContext
from magpie.services import AuthService
from api.dependencies import get_auth_service, get_user_context, require_user
from api.schemas.common import ErrorResponse
from api.schemas.user import (
    ContextUser, LoginRequest, LoginResponse, ProfileUpdate, UserSchema, ValidateResponse
)

router = APIRouter(prefix="/auth", tags=["auth"], responses={401: {"model": ErrorResponse}})


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """Exchange an identity token for a profile; creates the user on first login."""
    result = await service.login(payload.id_token)
    return LoginResponse(user=UserSchema.model_validate(result.user), token=result.token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout():
    # Tokens are held by the client; there is no server session to end
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/validate", response_model=ValidateResponse)
def validate(context: UserContext = Depends(get_user_context)):
    if not context.is_authenticated:
        return ValidateResponse(authenticated=False)
    return ValidateResponse(
        authenticated=True,
        user=ContextUser(id=context.id, email=context.email, name=context.name),
    )


@router.get("/profile", response_model=UserSchema)
def get_profile(
    user: AuthenticatedUser = Depends(require_user),
    service: AuthService = Depends(get_auth_service),
):
    return UserSchema.model_validate(service.get_profile(user.id))


@router.put("/profile", response_model=UserSchema)
def update_profile(
    payload: ProfileUpdate,
    user: AuthenticatedUser = Depends(require_user),
    service: AuthService = Depends(get_auth_service),
):
    updated = service.update_profile(
        user.id,
        name=payload.name,
        profile_picture_url=payload.profile_picture_url,
        preferences=payload.preferences,
    )
    return UserSchema.model_validate(updated)


@router.delete("/profile", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    user: AuthenticatedUser = Depends(require_user),
    service: AuthService = Depends(get_auth_service),
):
    service.delete_account(user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

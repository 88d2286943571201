from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.security import Identity, create_access_token
from backend.app.db.session import get_session
from backend.app.routers.deps import get_identity
from backend.app.routers.schemas import AuthOut, LoginIn, ProfileUpdateIn, RegisterIn, UserOut
from backend.app.services import users as users_service


router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(user) -> AuthOut:
    token = create_access_token(users_service.identity_of(user))
    return AuthOut(user=UserOut.model_validate(user), token=token)


@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterIn,
    session: AsyncSession = Depends(get_session),
) -> AuthOut:
    user = await users_service.register_user(
        session,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
        role=payload.role,
    )
    return _auth_response(user)


@router.post("/login", response_model=AuthOut)
async def login(
    payload: LoginIn,
    session: AsyncSession = Depends(get_session),
) -> AuthOut:
    user = await users_service.authenticate(session, email=payload.email, password=payload.password)
    return _auth_response(user)


@router.get("/me", response_model=UserOut)
async def me(
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
) -> UserOut:
    user = await users_service.get_user(session, identity.user_id)
    return UserOut.model_validate(user)


@router.put("/me", response_model=UserOut)
async def update_me(
    payload: ProfileUpdateIn,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
) -> UserOut:
    changes = payload.model_dump(exclude_unset=True)
    # first/last name are required columns; an explicit null leaves them alone
    for field in ("first_name", "last_name"):
        if changes.get(field, "") is None:
            del changes[field]
    user = await users_service.update_profile(session, identity.user_id, changes)
    return UserOut.model_validate(user)

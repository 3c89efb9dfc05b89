"""FastAPI endpoints for the Identity domain."""

from fastapi import APIRouter, HTTPException
from protean.utils.globals import current_domain

from identity.api.schemas import RegisterUserRequest, UserIdResponse, UserResponse
from identity.user.registration import EmailAlreadyRegistered, RegisterUser
from identity.user.user import User

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", status_code=201, response_model=UserIdResponse)
async def register_user(body: RegisterUserRequest) -> UserIdResponse:
    command = RegisterUser(email=body.email, name=body.name)
    try:
        result = current_domain.process(command, asynchronous=False)
    except EmailAlreadyRegistered as exc:
        raise HTTPException(status_code=409, detail="A user with this email already exists") from exc
    return UserIdResponse(user_id=result)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str) -> UserResponse:
    user = current_domain.repository_for(User).get(user_id)
    return UserResponse(
        id=str(user.id),
        email=user.email,
        name=user.name,
        role=user.role,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )

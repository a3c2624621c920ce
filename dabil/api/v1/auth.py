from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from dabil.database import get_db
from dabil.schemas.user import UserCreate, UserLogin, UserUpdate, UserResponse, ChangePassword
from dabil.schemas.common import ResponseModel
from dabil.services import auth_service
from dabil.models.user import User
from dabil.api.deps import get_current_user

router = APIRouter()


@router.post("/signup", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
@router.post("/register", response_model=ResponseModel, status_code=status.HTTP_201_CREATED, include_in_schema=False)
def signup(user_data: UserCreate, db: Session = Depends(get_db)):
    """Register a customer; a wallet and loyalty account are opened with it"""
    user = auth_service.register_user(db, user_data)
    tokens = auth_service.create_tokens(user)

    return ResponseModel(
        success=True,
        data={
            "user": UserResponse.from_user(user).model_dump(mode="json"),
            "token": tokens["token"],
        },
        message="Registration successful"
    )


@router.post("/login", response_model=ResponseModel)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    user = auth_service.authenticate_user(db, email=credentials.email, password=credentials.password)
    tokens = auth_service.create_tokens(user)

    return ResponseModel(
        success=True,
        data={
            "user": UserResponse.from_user(user).model_dump(mode="json"),
            "token": tokens["token"],
        },
        message="Login successful"
    )


@router.get("/profile", response_model=ResponseModel)
def get_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return ResponseModel(
        success=True,
        data=auth_service.get_profile(db, current_user),
        message="Profile fetched successfully"
    )


@router.put("/profile", response_model=ResponseModel)
def update_profile(
    payload: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    user = auth_service.update_profile(db, current_user, name=payload.name, email=payload.email)
    return ResponseModel(
        success=True,
        data=UserResponse.from_user(user).model_dump(mode="json"),
        message="Profile updated successfully"
    )


@router.post("/change-password", response_model=ResponseModel)
def change_password(
    payload: ChangePassword,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    auth_service.change_password(db, current_user, payload.current_password, payload.new_password)
    return ResponseModel(success=True, message="Password changed successfully")

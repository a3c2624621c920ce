"""
Staff Authentication Endpoints
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from dabil.database import get_db
from dabil.api.deps import get_current_staff, require_admin
from dabil.models.user import User
from dabil.models.restaurant import RestaurantStaff
from dabil.schemas.common import ResponseModel
from dabil.schemas.staff import StaffLogin, AdminStaffCreate, StaffResponse
from dabil.services import staff_service

router = APIRouter()


@router.post("/login", response_model=ResponseModel)
def staff_login(credentials: StaffLogin, db: Session = Depends(get_db)):
    result = staff_service.authenticate_staff(db, credentials.email, credentials.password)
    return ResponseModel(
        success=True,
        data={
            "staff": StaffResponse.from_staff(result["staff"]).model_dump(mode="json"),
            "token": result["token"],
        },
        message="Login successful"
    )


@router.get("/me", response_model=ResponseModel)
def get_me(staff: RestaurantStaff = Depends(get_current_staff)):
    return ResponseModel(
        success=True,
        data=StaffResponse.from_staff(staff).model_dump(mode="json"),
        message="Staff profile fetched"
    )


@router.post("", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
def create_staff(
    payload: AdminStaffCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Admin creates a staff account for any restaurant"""
    staff = staff_service.create_staff(
        db,
        restaurant_id=payload.restaurant_id,
        email=payload.email,
        name=payload.name,
        role=payload.role,
        password=payload.password,
    )
    return ResponseModel(
        success=True,
        data=StaffResponse.from_staff(staff).model_dump(mode="json"),
        message="Staff account created"
    )

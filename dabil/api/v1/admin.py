"""
Admin Endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from dabil.database import get_db
from dabil.api.deps import require_admin, get_ledger_repository
from dabil.models.user import User
from dabil.repositories.ledger import LedgerRepository
from dabil.schemas.common import ResponseModel
from dabil.services import stats_service, wallet_service

router = APIRouter()


@router.get("/stats", response_model=ResponseModel)
def get_platform_stats(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return ResponseModel(
        success=True,
        data=stats_service.admin_stats(db),
        message="Platform stats fetched successfully"
    )


@router.get("/wallets/{user_id}/reconcile", response_model=ResponseModel)
def reconcile_wallet(
    user_id: str,
    admin: User = Depends(require_admin),
    repo: LedgerRepository = Depends(get_ledger_repository)
):
    """Stored balance against the balance implied by completed ledger entries"""
    report = wallet_service.reconcile_wallet(repo, user_id)
    return ResponseModel(
        success=True,
        data=report,
        message="Wallet is consistent" if report["consistent"] else "Wallet balance differs from ledger"
    )

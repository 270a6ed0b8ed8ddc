# ceksenet/routers/dashboard_router.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ceksenet.schemas.dashboard_schema import DashboardOut
from ceksenet.services.dashboard import build_dashboard
from ceksenet.utils.clock import get_clock
from ceksenet.utils.database import get_db

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("", response_model=DashboardOut)
def get_dashboard(db: Session = Depends(get_db), clock=Depends(get_clock)):
    return build_dashboard(db, clock.today())

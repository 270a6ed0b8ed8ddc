# ceksenet/routers/cron_router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ceksenet.routers.deps import require_cron_secret
from ceksenet.services.hatirlatma import HATIRLATMA_GUN, send_daily_report, send_due_reminders
from ceksenet.services.notifications import NotificationDispatcher, get_notifier
from ceksenet.utils.clock import get_clock
from ceksenet.utils.database import get_db

router = APIRouter(
    prefix="/cron",
    tags=["Cron"],
    dependencies=[Depends(require_cron_secret)],
)


# schedulers call with either verb
@router.api_route("/hatirlatma", methods=["GET", "POST"])
def due_reminders(
    gun: int = Query(HATIRLATMA_GUN, ge=1, le=30),
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
    clock=Depends(get_clock),
):
    return send_due_reminders(db, notifier, clock.today(), gun=gun)


@router.api_route("/gunluk-rapor", methods=["GET", "POST"])
def daily_report(
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
    clock=Depends(get_clock),
):
    return send_daily_report(db, notifier, clock.today())

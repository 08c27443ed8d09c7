"""
Dashboard endpoints: headline metrics, collection chart and advisor text
"""

from fastapi import APIRouter, Depends

from .auth import GoCashSystem, get_system, require_view
from ..currency import format_currency
from ..models import User
from ..portfolio import recent_daily_totals
from ..rbac import View


router = APIRouter()


@router.get("/overview")
async def get_overview(
    user: User = Depends(require_view(View.DASHBOARD)),
    system: GoCashSystem = Depends(get_system)
):
    """Total portfolio, collected today, overdue balance and efficiency"""
    overview = system.overview()
    return {
        **overview.to_dict(),
        "currency": system.currency.code,
        "formatted": {
            "totalPortfolio": format_currency(overview.total_portfolio, system.currency),
            "collectedToday": format_currency(overview.collected_today, system.currency),
            "overdue": format_currency(overview.overdue, system.currency),
        }
    }


@router.get("/chart")
async def get_collection_chart(
    user: User = Depends(require_view(View.DASHBOARD)),
    system: GoCashSystem = Depends(get_system)
):
    """Amount collected per day over the trailing window"""
    totals = recent_daily_totals(
        system.store.payments, system.now().date(), system.config.chart_window_days
    )
    return {
        "days": [
            {"day": total.day.isoformat(), "label": total.label, "total": total.total}
            for total in totals
        ]
    }


# Plain def: the advisor call blocks, so FastAPI runs it in the threadpool
@router.get("/advice")
def get_advice(
    refresh: bool = False,
    user: User = Depends(require_view(View.DASHBOARD)),
    system: GoCashSystem = Depends(get_system)
):
    """Latest advisor text, asking the advisor when nothing is cached"""
    advice = system.latest_advice
    if refresh or advice is None:
        advice = system.refresh_advice()
    return advice.to_dict()

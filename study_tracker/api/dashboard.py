"""Dashboard route: the aggregate view computed from the stored document."""

from fastapi import APIRouter

from study_tracker.api.dependencies import SettingsDep, StoreDep, TodayDep
from study_tracker.schemas.dashboard import DashboardSnapshot
from study_tracker.services.dashboard import build_dashboard

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "",
    response_model=DashboardSnapshot,
    summary="Progress dashboard",
    description=(
        "Overall percent, chapter counts, pace against the configured study"
        " window and the list of chapters not yet started."
    ),
)
def get_dashboard(store: StoreDep, settings: SettingsDep, today: TodayDep) -> DashboardSnapshot:
    document = store.read()
    return build_dashboard(document.subjects, document.config, today, settings)

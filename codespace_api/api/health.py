from datetime import datetime, timezone

from fastapi import APIRouter

from codespace_api.models import HealthRead

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthRead)
def health() -> HealthRead:
    return HealthRead(status="healthy", timestamp=datetime.now(timezone.utc))

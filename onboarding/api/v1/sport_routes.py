from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from onboarding.dependencies import get_operational_db, get_sport_catalog
from onboarding.schemas import SportResponse
from onboarding.services import SportCatalog

router = APIRouter(prefix="/sports", tags=["sports"])


@router.get("", response_model=list[SportResponse])
def list_sports(
    db: Session = Depends(get_operational_db),
    catalog: SportCatalog = Depends(get_sport_catalog),
):
    return [SportResponse(id=sport.id, name=sport.name) for sport in catalog.list_sports(db)]

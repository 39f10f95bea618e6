from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, selectinload

from ..database import get_db
from ..models.import_run import ImportRun
from ..schemas import ImportRunDetailResponse, ImportRunResponse, PollReportResponse
from ..services import mt940_ingestion, van_ingestion
from ..services.ingestion import IngestionPipeline

router = APIRouter()

# Maximum allowed limit for pagination
MAX_LIMIT = 500


def get_mt940_pipeline() -> IngestionPipeline:
    return mt940_ingestion.mt940_pipeline()


def get_van_pipeline() -> IngestionPipeline:
    return van_ingestion.van_pipeline()


# Poll endpoints are sync: discovery sleeps through the stability window
@router.post("/mt940/ingest", response_model=PollReportResponse)
def ingest_mt940(
    pipeline: IngestionPipeline = Depends(get_mt940_pipeline),
    db: Session = Depends(get_db),
):
    """Run one MT940 poll cycle over the inbox"""
    return mt940_ingestion.poll_and_process_inbox(db, pipeline)


@router.post("/van/ingest", response_model=PollReportResponse)
def ingest_van(
    pipeline: IngestionPipeline = Depends(get_van_pipeline),
    db: Session = Depends(get_db),
):
    """Run one VAN poll cycle over the inbox"""
    return van_ingestion.poll_and_process_inbox(db, pipeline)


@router.get("/imports/history", response_model=List[ImportRunResponse])
async def get_import_history(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(50, ge=1, le=MAX_LIMIT, description="Number of records to return"),
    file_type: Optional[str] = Query(None, pattern=r"^(MT940|VAN)$", description="Filter by file type"),
    status: Optional[str] = Query(None, description="Filter by import status"),
    db: Session = Depends(get_db),
):
    """Get import history, newest first"""
    query = db.query(ImportRun)
    if file_type:
        query = query.filter(ImportRun.file_type == file_type)
    if status:
        query = query.filter(ImportRun.status == status.upper())
    return query.order_by(ImportRun.received_at.desc(), ImportRun.id.desc()).offset(skip).limit(limit).all()


@router.get("/imports/history/{import_id}", response_model=ImportRunDetailResponse)
async def get_import_details(import_id: int, db: Session = Depends(get_db)):
    """Get one import run with its errors"""
    run = (
        db.query(ImportRun)
        .options(selectinload(ImportRun.errors))
        .filter(ImportRun.id == import_id)
        .first()
    )
    if not run:
        raise HTTPException(status_code=404, detail="Import not found")
    return run

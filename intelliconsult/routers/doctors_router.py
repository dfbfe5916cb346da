from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from ..core.dependencies import get_doctor_directory_service
from ..application.services.doctor_directory_service import DoctorDirectoryService
from ..schemas.doctors.doctor import DoctorResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/doctors", tags=["Doctors"])


@router.get("", response_model=List[DoctorResponse])
def list_doctors(
    search: Optional[str] = Query(None, description="Name prefix"),
    specialty: Optional[str] = Query(None),
    directory: DoctorDirectoryService = Depends(get_doctor_directory_service),
):
    try:
        return [DoctorResponse.from_dto(d) for d in directory.list_doctors(search, specialty)]
    except Exception as e:
        logger.error(f"Error retrieving doctors: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to retrieve doctors")


@router.get("/{doctor_id}", response_model=DoctorResponse)
def get_doctor(doctor_id: str, directory: DoctorDirectoryService = Depends(get_doctor_directory_service)):
    return DoctorResponse.from_dto(directory.get_doctor(doctor_id))

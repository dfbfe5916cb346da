from typing import List
from fastapi import APIRouter, Depends

from ..core.dependencies import get_current_caller, get_review_service
from ..application.services.access_control import Caller
from ..application.services.review_service import ReviewService
from ..schemas.reviews.review import CreateReviewRequest, ReviewResponse

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])


@router.post("", response_model=ReviewResponse, status_code=201)
def create_review(
    payload: CreateReviewRequest,
    caller: Caller = Depends(get_current_caller),
    service: ReviewService = Depends(get_review_service),
):
    review = service.create(caller, payload.appointment_id, payload.rating, payload.comment)
    return ReviewResponse.from_dto(review)


@router.get("/doctor/{doctor_id}", response_model=List[ReviewResponse])
def doctor_reviews(doctor_id: str, service: ReviewService = Depends(get_review_service)):
    return [ReviewResponse.from_dto(r) for r in service.list_for_doctor(doctor_id)]

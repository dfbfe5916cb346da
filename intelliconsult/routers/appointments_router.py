from typing import List
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
import logging

from ..core.config import settings
from ..core.dependencies import get_current_caller, get_booking_service, get_appointments_service
from ..application.services.access_control import Caller
from ..application.services.booking_service import BookingService
from ..application.services.appointments_service import AppointmentsService
from ..schemas.appointments.appointment import (
    AppointmentActionResponse,
    AppointmentResponse,
    BookAppointmentRequest,
    BookingResponse,
    CreatePaymentOrderRequest,
    PaymentOrderResponse,
    SlotResponse,
    TriageUpdateRequest,
    VerifyPaymentRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/appointments", tags=["Appointments"])


def _to_date(value: str):
    return datetime.strptime(value, "%Y-%m-%d").date()


@router.get("/available-slots/{doctor_id}", response_model=List[SlotResponse])
def available_slots(
    doctor_id: str,
    caller: Caller = Depends(get_current_caller),
    booking: BookingService = Depends(get_booking_service),
):
    try:
        slots = booking.available_slots(doctor_id)
        return [SlotResponse(date=s.slot_date.strftime("%Y-%m-%d"), time=s.slot_time) for s in slots]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error generating slots for doctor {doctor_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to load available slots")


@router.post("/create-payment-order", response_model=PaymentOrderResponse)
def create_payment_order(
    payload: CreatePaymentOrderRequest,
    caller: Caller = Depends(get_current_caller),
    booking: BookingService = Depends(get_booking_service),
):
    order = booking.create_order(caller, payload.doctor_id, _to_date(payload.date), payload.time, payload.intake.model_dump())
    return PaymentOrderResponse(
        order_id=order.order_id,
        amount=order.amount,
        currency=order.currency,
        key_id=settings.RAZORPAY_KEY_ID or None,
    )


@router.post("/verify-payment", response_model=BookingResponse)
def verify_payment(
    payload: VerifyPaymentRequest,
    caller: Caller = Depends(get_current_caller),
    booking: BookingService = Depends(get_booking_service),
):
    appointment, created = booking.verify_payment(
        caller, payload.razorpay_order_id, payload.razorpay_payment_id, payload.razorpay_signature
    )
    message = "Payment verified and appointment booked successfully" if created else "Payment already verified for this appointment"
    return BookingResponse(message=message, created=created, appointment=AppointmentResponse.from_dto(appointment))


@router.post("/book", response_model=AppointmentResponse, status_code=201)
def book_appointment(
    payload: BookAppointmentRequest,
    caller: Caller = Depends(get_current_caller),
    booking: BookingService = Depends(get_booking_service),
):
    try:
        appointment = booking.book_direct(caller, payload.doctor_id, _to_date(payload.date), payload.time, payload.intake.model_dump())
        return AppointmentResponse.from_dto(appointment)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Booking error: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to book appointment")


@router.get("/my-appointments", response_model=List[AppointmentResponse])
def my_appointments(
    caller: Caller = Depends(get_current_caller),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return [AppointmentResponse.from_dto(a) for a in appt_service.list_for_patient(caller)]


@router.get("/doctor", response_model=List[AppointmentResponse])
def doctor_appointments(
    caller: Caller = Depends(get_current_caller),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return [AppointmentResponse.from_dto(a) for a in appt_service.list_for_doctor(caller)]


@router.get("/doctor/queue", response_model=List[AppointmentResponse])
def doctor_queue(
    caller: Caller = Depends(get_current_caller),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return [AppointmentResponse.from_dto(a) for a in appt_service.triage_queue(caller)]


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: str,
    caller: Caller = Depends(get_current_caller),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return AppointmentResponse.from_dto(appt_service.get_for_caller(caller, appointment_id))


@router.put("/{appointment_id}/complete", response_model=AppointmentActionResponse)
def complete_appointment(
    appointment_id: str,
    caller: Caller = Depends(get_current_caller),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        appointment = appt_service.complete(caller, appointment_id)
        return AppointmentActionResponse(
            message="Appointment marked as completed successfully",
            appointment=AppointmentResponse.from_dto(appointment),
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Complete appointment error for {appointment_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to complete appointment")


@router.put("/{appointment_id}/cancel", response_model=AppointmentActionResponse)
def cancel_appointment(
    appointment_id: str,
    caller: Caller = Depends(get_current_caller),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appointment = appt_service.cancel(caller, appointment_id)
    return AppointmentActionResponse(
        message="Appointment cancelled successfully",
        appointment=AppointmentResponse.from_dto(appointment),
    )


@router.put("/{appointment_id}/triage", response_model=AppointmentResponse)
def update_triage(
    appointment_id: str,
    payload: TriageUpdateRequest,
    caller: Caller = Depends(get_current_caller),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appointment = appt_service.annotate_triage(caller, appointment_id, payload.priority, payload.label)
    return AppointmentResponse.from_dto(appointment)

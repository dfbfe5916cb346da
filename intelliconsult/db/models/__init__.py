# Models package (re-export feature modules for stable imports)
from .users.user import User, DoctorProfile
from .health.appointment import Appointment
from .health.medical_record import MedicalRecord
from .health.review import Review
from .health.schedule import BlockedTime
from .billing.payment_order import PaymentOrder

__all__ = [
    "User",
    "DoctorProfile",
    "Appointment",
    "MedicalRecord",
    "Review",
    "BlockedTime",
    "PaymentOrder",
]

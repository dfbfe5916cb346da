from dataclasses import dataclass, field
from typing import Protocol, Optional, List, Dict, Any
from datetime import date


@dataclass
class PrescriptionDocument:
    record_id: str
    patient_name: str
    patient_email: Optional[str]
    doctor_name: str
    doctor_specialization: Optional[str]
    visit_date: Optional[date]
    visit_time: Optional[str]
    diagnosis: str
    notes: str = ""
    prescription: List[Dict[str, Any]] = field(default_factory=list)
    follow_up_required: bool = False
    follow_up_date: Optional[date] = None
    follow_up_notes: str = ""


class DocumentRenderer(Protocol):
    def render_prescription(self, document: PrescriptionDocument) -> bytes:
        ...

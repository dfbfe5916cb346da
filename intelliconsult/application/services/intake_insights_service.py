import json
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..ports.ai_provider import AIProvider
from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto
from .access_control import Caller, ensure_owning_doctor
from ...exceptions import ConsentRequired, ExternalServiceFailure, NotFound
from ...utils import utcnow

logger = logging.getLogger(__name__)

# ESI level -> (colour, default label)
ESI_LEVELS = {
    "P1": ("RED", "Immediate"),
    "P2": ("YELLOW", "Urgent"),
    "P3": ("GREEN", "Minor"),
    "P4": ("BLACK", "Non-Urgent"),
}

ESI_GUIDE = """Emergency Severity Index (ESI) levels:

RED / P1 (Immediate): needs life-saving intervention now. Cardiac or respiratory
arrest, severe breathing difficulty, unresponsive or altered mental state, heavy
bleeding or shock, chest pain with cardiac signs, stroke signs, ongoing seizures.

YELLOW / P2 (Urgent): high risk but not immediately life threatening. High fever
with worrying signs, moderate breathing difficulty, confusion, severe pain,
suspected fracture with deformity, vomiting blood, severe dehydration, chest pain
with stable vitals.

GREEN / P3 (Minor): stable, but several tests or treatments likely. Minor
injuries or cuts, low fever without red flags, chronic conditions without flare-up,
minor infections.

BLACK / P4 (Non-Urgent): a single simple resource at most. Prescription refills,
routine check-ups, no immediate concern."""

TRIAGE_INSTRUCTIONS = """Acting as a triage nurse using the levels above, classify this patient.
Reply with JSON only, in exactly this shape:
{"priority": "RED|YELLOW|GREEN|BLACK", "priorityLevel": "P1|P2|P3|P4", "label": "Immediate|Urgent|Minor|Non-Urgent"}"""

SUMMARY_INSTRUCTIONS = """You are preparing a doctor for an appointment. Write a 2-3 sentence clinical
summary of the intake below: main complaint, timeline, relevant history, and any red flags.
Plain sentences only, no headings or lists.
If the intake is clearly spam, gibberish or not a medical request, reply with a single
sentence saying the intake does not describe a medical concern."""

# Severe symptom checklist entries that get an explicit flag line in the prompt
RED_FLAG_NOTES = {
    "Severe chest pain or pressure": "CRITICAL: severe chest pain reported",
    "Sudden difficulty breathing or shortness of breath": "CRITICAL: respiratory distress reported",
    "Sudden confusion, disorientation, or difficulty speaking": "CRITICAL: neurological symptoms reported",
    "Sudden weakness, numbness, or drooping on one side of your face or body": "CRITICAL: stroke symptoms reported",
    "Sudden, severe headache (worst of your life)": "CRITICAL: severe headache reported",
    "Uncontrolled bleeding": "CRITICAL: uncontrolled bleeding reported",
    "High fever (over 103°F / 39.4°C)": "WARNING: high fever reported",
}


@dataclass(frozen=True)
class TriageAssessment:
    priority: str
    priority_level: str
    label: str


def age_on(birth_date: Optional[str], today: date) -> Optional[int]:
    try:
        born = datetime.strptime(birth_date, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        return None
    return today.year - born.year - ((today.month, today.day) < (born.month, born.day))


def _combined(values: Optional[List[str]], other: Optional[str]) -> List[str]:
    items = [v.strip() for v in values or [] if v and v.strip()]
    if other and other.strip():
        items.append(other.strip())
    return items


def _bullets(items: List[str], empty: str = "None reported") -> str:
    return "\n".join(f"- {item}" for item in items) if items else empty


def _text(value: Any, empty: str = "None") -> str:
    return str(value).strip() if value and str(value).strip() else empty


def format_intake(intake: Dict[str, Any], today: date) -> str:
    severe = _combined(intake.get("severe_symptoms_check"), None)
    flags = [RED_FLAG_NOTES[s] for s in severe if s in RED_FLAG_NOTES]
    age = age_on(intake.get("birth_date"), today)
    sections = [
        ("CHIEF COMPLAINT", _text(intake.get("primary_reason"), "Not specified")),
        ("CURRENT SYMPTOMS", _bullets(_combined(intake.get("symptoms_list"), intake.get("symptoms_other")))),
        ("SYMPTOM ONSET", _text(intake.get("symptoms_begin"), "Unknown")),
        ("SEVERE SYMPTOMS - RED FLAGS", "\n".join([_bullets(severe)] + flags)),
        ("PRE-EXISTING CONDITIONS", _bullets(_combined(
            intake.get("pre_existing_conditions"), intake.get("pre_existing_conditions_other")), "None")),
        ("PAST SURGERIES / HOSPITALIZATIONS", _text(intake.get("past_surgeries"))),
        ("FAMILY HISTORY", _bullets(_combined(intake.get("family_history"), intake.get("family_history_other")), "None")),
        ("CURRENT MEDICATIONS", _text(intake.get("medications"))),
        ("ALLERGIES", _text(intake.get("allergies"))),
        ("DEMOGRAPHICS", f"Age: {age if age is not None else 'Unknown'}\nSex: {_text(intake.get('sex'), 'Unknown')}"),
    ]
    return "\n\n".join(f"{title}:\n{body}" for title, body in sections)


def build_triage_prompt(intake: Dict[str, Any], today: date) -> str:
    return f"{ESI_GUIDE}\n\nPATIENT TRIAGE ASSESSMENT:\n\n{format_intake(intake, today)}\n\n{TRIAGE_INSTRUCTIONS}"


def build_summary_prompt(intake: Dict[str, Any], today: date) -> str:
    return f"{SUMMARY_INSTRUCTIONS}\n\nPATIENT INTAKE:\n\n{format_intake(intake, today)}"


def parse_triage(text: str) -> TriageAssessment:
    """Read the model's JSON reply, tolerating code fences and surrounding prose.

    The level wins over the colour when both are present; a colour alone is
    mapped back to its level. Raises ValueError when neither is usable.
    """
    match = re.search(r"\{.*\}", text or "", re.S)
    if not match:
        raise ValueError("no JSON object in triage reply")
    data = json.loads(match.group(0))
    if not isinstance(data, dict):
        raise ValueError("triage reply is not an object")
    level = str(data.get("priorityLevel") or "").strip().upper()
    if level not in ESI_LEVELS:
        colour = str(data.get("priority") or "").strip().upper()
        level = next((lvl for lvl, (c, _) in ESI_LEVELS.items() if c == colour), "")
    if level not in ESI_LEVELS:
        raise ValueError(f"unknown triage priority in reply: {data}")
    colour, default_label = ESI_LEVELS[level]
    label = str(data.get("label") or "").strip()[:100] or default_label
    return TriageAssessment(priority=colour, priority_level=level, label=label)


@dataclass
class IntakeInsightsService:
    """AI triage and doctor summaries for an appointment's intake.

    Results are stored on the appointment and served from there afterwards, so
    the provider is called at most once per appointment for each kind.
    """
    appointments_repo: AppointmentsRepository
    ai_provider: Optional[AIProvider] = None
    today: Callable[[], date] = field(default=date.today)

    def _appointment_for_doctor(self, caller: Caller, appointment_id: str) -> AppointmentDto:
        appt = self.appointments_repo.get_by_id(appointment_id)
        if not appt:
            raise NotFound("Appointment not found")
        ensure_owning_doctor(caller, appt)
        return appt

    def _provider_for(self, appt: AppointmentDto) -> AIProvider:
        if (appt.intake or {}).get("consent_to_ai") is not True:
            raise ConsentRequired()
        if self.ai_provider is None:
            raise ExternalServiceFailure("AI service is not configured.")
        return self.ai_provider

    def triage(self, caller: Caller, appointment_id: str) -> Tuple[TriageAssessment, bool]:
        """Returns (assessment, cached). A manual annotation counts as cached."""
        appt = self._appointment_for_doctor(caller, appointment_id)
        if appt.triage_priority in ESI_LEVELS:
            colour, default_label = ESI_LEVELS[appt.triage_priority]
            return TriageAssessment(colour, appt.triage_priority, appt.triage_label or default_label), True

        provider = self._provider_for(appt)
        prompt = build_triage_prompt(appt.intake, self.today())
        try:
            assessment = parse_triage(provider.generate_text(prompt, temperature=0.1, json_output=True))
        except ExternalServiceFailure:
            raise
        except Exception as e:
            logger.error(f"AI triage failed for appointment {appointment_id}: {e}")
            raise ExternalServiceFailure("Failed to perform AI triage")

        self.appointments_repo.set_triage(appointment_id, assessment.priority_level, assessment.label)
        logger.info(f"AI triage for appointment {appointment_id}: {assessment.priority_level}")
        return assessment, False

    def summary(self, caller: Caller, appointment_id: str) -> Tuple[str, Optional[datetime], bool]:
        """Returns (summary, generated_at, cached)."""
        appt = self._appointment_for_doctor(caller, appointment_id)
        if appt.doctor_summary:
            return appt.doctor_summary, appt.summary_generated_at, True

        provider = self._provider_for(appt)
        try:
            text = provider.generate_text(build_summary_prompt(appt.intake, self.today()), temperature=0.0)
        except ExternalServiceFailure:
            raise
        except Exception as e:
            logger.error(f"AI summary failed for appointment {appointment_id}: {e}")
            raise ExternalServiceFailure("Failed to generate AI summary")

        text = (text or "").strip()
        if not text:
            # nothing stored; the next request tries again
            raise ExternalServiceFailure("Failed to generate AI summary")
        generated_at = utcnow()
        self.appointments_repo.set_summary(appointment_id, text, generated_at)
        return text, generated_at, False

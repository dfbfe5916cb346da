from typing import Optional, Tuple
from datetime import date
from html import escape


def _wrap(title: str, body: str) -> str:
    return (
        "<div style=\"font-family: Arial, sans-serif; max-width: 600px; margin: auto;\">"
        f"<h2 style=\"color: #2563eb;\">{escape(title)}</h2>"
        f"{body}"
        "<p style=\"color: #6b7280; font-size: 12px;\">IntelliConsult</p>"
        "</div>"
    )


def verification_email(full_name: str, link: str) -> Tuple[str, str]:
    body = (
        f"<p>Hi {escape(full_name)},</p>"
        "<p>Please confirm your email address. The link expires in 10 minutes.</p>"
        f"<p><a href=\"{escape(link)}\">Verify email</a></p>"
    )
    return "Verify your email", _wrap("Verify your email", body)


def password_reset_email(full_name: str, link: str) -> Tuple[str, str]:
    body = (
        f"<p>Hi {escape(full_name)},</p>"
        "<p>We received a request to reset your password. The link expires in 10 minutes.</p>"
        f"<p><a href=\"{escape(link)}\">Reset password</a></p>"
        "<p>If you did not ask for this, you can ignore this email.</p>"
    )
    return "Reset your password", _wrap("Reset your password", body)


def prescription_summary_email(patient_name: str, doctor_name: str, diagnosis: str, medication_count: int,
                               follow_up_date: Optional[date] = None) -> Tuple[str, str]:
    body = (
        f"<p>Hi {escape(patient_name)},</p>"
        f"<p>Dr. {escape(doctor_name)} has issued your consultation summary.</p>"
        f"<p><strong>Diagnosis:</strong> {escape(diagnosis)}</p>"
        f"<p><strong>Medications prescribed:</strong> {medication_count}</p>"
    )
    if follow_up_date:
        body += f"<p><strong>Follow-up:</strong> {follow_up_date.isoformat()}</p>"
    return "Your consultation summary", _wrap("Consultation summary", body)


def follow_up_reminder_email(patient_name: str, doctor_name: str, follow_up_date: date, notes: str = "") -> Tuple[str, str]:
    body = (
        f"<p>Hi {escape(patient_name)},</p>"
        f"<p>Dr. {escape(doctor_name)} has scheduled a follow-up for {follow_up_date.isoformat()}.</p>"
    )
    if notes:
        body += f"<p>{escape(notes)}</p>"
    return "Follow-up reminder", _wrap("Follow-up reminder", body)


def account_status_email(full_name: str, status: str) -> Tuple[str, str]:
    messages = {
        "verified": "Your account has been approved. You can now sign in.",
        "suspended": "Your account has been suspended. Please contact support.",
        "rejected": "Your doctor registration was not approved.",
    }
    body = f"<p>Hi {escape(full_name)},</p><p>{messages.get(status, status)}</p>"
    return f"Account {status}", _wrap("Account update", body)

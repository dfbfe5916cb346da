import smtplib

import pytest

from intelliconsult.exceptions import ExternalServiceFailure
from intelliconsult.infrastructure.email import smtp_sender
from intelliconsult.infrastructure.email.smtp_sender import SmtpEmailSender
from intelliconsult.infrastructure.notifications.email_notifier import EmailNotifier

from conftest import RecordingEmailSender


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.logged_in = None
        self.messages = []
        self.fail = False
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def login(self, user, password):
        self.logged_in = (user, password)

    def send_message(self, msg):
        self.messages.append(msg)


class RefusingSMTP(FakeSMTP):
    def login(self, user, password):
        raise smtplib.SMTPAuthenticationError(535, b"bad credentials")


def make_sender(**overrides):
    kwargs = dict(host="smtp.example.com", port=465, username="apikey", password="secret",
                  from_email="no-reply@example.com", from_name="IntelliConsult")
    kwargs.update(overrides)
    return SmtpEmailSender(**kwargs)


def test_smtp_sender_sends_html(monkeypatch):
    FakeSMTP.instances.clear()
    monkeypatch.setattr(smtp_sender.smtplib, "SMTP_SSL", FakeSMTP)
    make_sender().send("asha@example.com", "Verify your email", "<p>Hello</p>")

    server = FakeSMTP.instances[0]
    assert (server.host, server.port) == ("smtp.example.com", 465)
    assert server.logged_in == ("apikey", "secret")
    msg = server.messages[0]
    assert msg["To"] == "asha@example.com"
    assert msg["Subject"] == "Verify your email"
    assert "IntelliConsult" in msg["From"]
    assert msg.get_body(preferencelist=("html",)).get_content().strip() == "<p>Hello</p>"


def test_smtp_failure_is_external_service_failure(monkeypatch):
    monkeypatch.setattr(smtp_sender.smtplib, "SMTP_SSL", RefusingSMTP)
    with pytest.raises(ExternalServiceFailure):
        make_sender().send("asha@example.com", "Subject", "<p>x</p>")


def test_unconfigured_sender_refuses():
    with pytest.raises(ExternalServiceFailure):
        make_sender(password="").send("asha@example.com", "Subject", "<p>x</p>")


def test_notifier_swallows_delivery_failure():
    EmailNotifier(RecordingEmailSender(fail=True)).notify("asha@example.com", "Subject", "<p>x</p>")


def test_notifier_delivers_inline_without_background_tasks():
    sender = RecordingEmailSender()
    EmailNotifier(sender).notify("asha@example.com", "Subject", "<p>x</p>")
    assert sender.sent == [("asha@example.com", "Subject", "<p>x</p>")]

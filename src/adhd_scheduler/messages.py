"""Summary email composition for the Gmail send API."""

from __future__ import annotations

import base64
from email.header import Header
from email.mime.text import MIMEText

from adhd_scheduler.i18n import translate


def compose_summary(language: str, *, to: str | None = None) -> MIMEText:
    """Build the plain-text confirmation message in *language*.

    When *to* is None the message has no recipient header; Gmail rejects such
    a message, which the gateway reports as a non-fatal mail failure.
    """
    lines = [
        translate("emailGreeting", language),
        "",
        translate("emailBody", language),
        "",
        f"-- {translate('emailSignature', language)}",
    ]
    msg = MIMEText("\r\n".join(lines), "plain", "utf-8")
    msg["Subject"] = Header(translate("emailSubject", language), "utf-8").encode()
    if to:
        msg["To"] = to
    return msg


def encode_raw(message: MIMEText) -> str:
    """Encode *message* as the unpadded base64url ``raw`` field Gmail expects."""
    return base64.urlsafe_b64encode(message.as_bytes()).decode("ascii").rstrip("=")

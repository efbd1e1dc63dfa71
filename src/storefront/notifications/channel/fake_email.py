"""In-memory email sender: keeps every delivered message for inspection."""

from uuid import uuid4

from storefront.notifications.channel.email_port import FAILED, SENT, EmailSender


class FakeEmailSender(EmailSender):
    def __init__(self):
        self.sent_emails: list[dict] = []
        self.configure()

    def configure(self, should_succeed: bool = True, failure_reason: str = "Email delivery failed"):
        """Make subsequent sends succeed or report ``failure_reason``."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def send(self, to, subject, body, html_body=None) -> dict:
        if not self.should_succeed:
            return {"message_id": None, "status": FAILED, "error": self.failure_reason}

        message = {
            "message_id": f"email-{uuid4().hex[:12]}",
            "to": to,
            "subject": subject,
            "body": body,
            "html_body": html_body,
        }
        self.sent_emails.append(message)
        return {"message_id": message["message_id"], "status": SENT}

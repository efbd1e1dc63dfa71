"""Email channel registry.

The fake sender is used unless another adapter is installed with
``set_email_sender`` (e.g. an SMTP or SendGrid adapter in production).
"""

from storefront.notifications.channel.email_port import EmailSender

_email_sender: EmailSender | None = None


def get_email_sender() -> EmailSender:
    global _email_sender
    if _email_sender is None:
        from storefront.notifications.channel.fake_email import FakeEmailSender

        _email_sender = FakeEmailSender()
    return _email_sender


def set_email_sender(sender: EmailSender) -> None:
    global _email_sender
    _email_sender = sender


def reset_email_sender() -> None:
    global _email_sender
    _email_sender = None

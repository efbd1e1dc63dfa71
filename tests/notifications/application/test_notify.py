"""Order notifications are best effort."""

from protean import current_domain

from storefront.notifications.channel import set_email_sender
from storefront.notifications.channel.email_port import EmailSender
from storefront.notifications.notify import ORDER_CONFIRMATION, PAYMENT_FAILURE, SHIPPING_UPDATE, notify
from storefront.ordering.order.order import Order


class ExplodingSender(EmailSender):
    def send(self, to, subject, body, html_body=None):
        raise ConnectionError("SMTP unavailable")


def _order(place_order, create_product, **kwargs):
    result = place_order([{"product_id": create_product(base_price=20.0), "quantity": 1}], **kwargs)
    return current_domain.repository_for(Order).get(result["order_id"])


class TestNotify:
    def test_sends_to_the_customer(self, place_order, create_product, register_customer, outbox):
        register_customer("cust-001", email="jane@example.com")
        order = _order(place_order, create_product, payment_method="cod")
        outbox.sent_emails.clear()

        assert notify(ORDER_CONFIRMATION, order) is True
        email = outbox.sent_emails[0]
        assert email["to"] == "jane@example.com"
        assert order.order_number in email["subject"]
        assert "27.59 USD" in email["body"]

    def test_unknown_customer_is_skipped(self, place_order, create_product, outbox):
        order = _order(place_order, create_product)
        assert notify(SHIPPING_UPDATE, order) is False
        assert outbox.sent_emails == []

    def test_delivery_failure_is_reported_not_raised(self, place_order, create_product, register_customer, outbox):
        register_customer("cust-001")
        order = _order(place_order, create_product)
        outbox.configure(should_succeed=False)

        assert notify(SHIPPING_UPDATE, order) is False

    def test_sender_exception_is_contained(self, place_order, create_product, register_customer):
        register_customer("cust-001")
        order = _order(place_order, create_product)
        set_email_sender(ExplodingSender())

        assert notify(PAYMENT_FAILURE, order) is False

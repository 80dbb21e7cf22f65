import logging
import time
from collections import deque
from typing import Dict

log = logging.getLogger("storefront.notify")


class NotificationError(Exception):
    pass


class MockNotifierAdapter:
    """
    Simple synchronous mock notifier standing in for the mail service.
    Runs after the response is sent, never inside a database transaction.
    """

    def __init__(self, sender: str, delay_ms: int = 0, keep_last: int = 100):
        self.sender = sender
        self.delay = delay_ms / 1000.0
        # most recent messages only; the adapter lives for the whole process
        self.sent = deque(maxlen=keep_last)

    def send_order_confirmation(self, to: str, order_id: int, total_cents: int) -> Dict:
        # simulate latency
        time.sleep(self.delay)
        if not to:
            raise NotificationError(f"No recipient for order {order_id}")
        message = {
            "from": self.sender,
            "to": to,
            "subject": "Order Confirmation - The Uncommon Room",
            "body": (
                f"Your order #UCR-{order_id} has been placed successfully. "
                f"Total Amount: R {total_cents / 100:.2f}"
            ),
        }
        self.sent.append(message)
        log.info(f"order confirmation for order {order_id} sent to {to}")
        return message

    def health_check(self) -> bool:
        return True


def notify_order_placed(notifier: MockNotifierAdapter, to: str, order_id: int, total_cents: int):
    """Fire-and-forget wrapper: a failed notification never affects the order."""
    try:
        notifier.send_order_confirmation(to, order_id, total_cents)
    except Exception:
        log.exception(f"order confirmation for order {order_id} failed")

from storefront.adapters.mock_notifier import MockNotifierAdapter, notify_order_placed


def test_only_recent_confirmations_are_kept():
    notifier = MockNotifierAdapter(sender="shop@example.com", keep_last=2)
    for order_id in (1, 2, 3):
        notifier.send_order_confirmation("ann@example.com", order_id, 12550)

    assert len(notifier.sent) == 2
    assert "#UCR-2 " in notifier.sent[0]["body"]
    assert "#UCR-3 " in notifier.sent[-1]["body"]
    assert "R 125.50" in notifier.sent[-1]["body"]


def test_missing_recipient_is_logged_not_raised():
    notifier = MockNotifierAdapter(sender="shop@example.com")
    notify_order_placed(notifier, "", 9, 100)
    assert len(notifier.sent) == 0

"""Message templates for cancellation notifications, keyed by kind."""

from cancellations.notifier.port import NotificationKind


def _requested(context: dict) -> dict:
    return {
        "subject": f"Cancellation request received for order #{context['order_id']}",
        "body": (
            f"We have received your request to cancel order #{context['order_id']}.\n\n"
            f"Estimated refund: {context['refund_amount']:.2f} "
            f"({context['refund_percentage']:.0f}% of the cancelled value).\n"
            f"We will respond within {context.get('response_time_hours', 48)} hours. "
            "The estimate may change until your request is reviewed."
        ),
    }


def _approved(context: dict) -> dict:
    return {
        "subject": f"Cancellation approved for order #{context['order_id']}",
        "body": (
            f"Your cancellation for order #{context['order_id']} has been approved.\n\n"
            f"Refund amount: {context['refund_amount']:.2f} "
            f"({context['refund_percentage']:.0f}%).\n"
            "The refund will be issued to your original payment method."
        ),
    }


def _rejected(context: dict) -> dict:
    reason = context.get("notes") or "no reason given"
    return {
        "subject": f"Cancellation request declined for order #{context['order_id']}",
        "body": (
            f"We were unable to approve the cancellation of order #{context['order_id']}.\n\n"
            f"Reason: {reason}\n\n"
            "If you have questions, please contact our support team."
        ),
    }


def _processed(context: dict) -> dict:
    return {
        "subject": f"Refund processed - {context['refund_amount']:.2f}",
        "body": (
            f"A refund of {context['refund_amount']:.2f} has been processed "
            f"for order #{context['order_id']}.\n\n"
            f"Reference: {context.get('refund_reference', 'N/A')}\n\n"
            "The refund should appear in your account within 5-10 business days."
        ),
    }


TEMPLATES = {
    NotificationKind.CANCELLATION_REQUESTED: _requested,
    NotificationKind.CANCELLATION_APPROVED: _approved,
    NotificationKind.CANCELLATION_REJECTED: _rejected,
    NotificationKind.REFUND_PROCESSED: _processed,
}


def render(kind: NotificationKind, context: dict) -> dict:
    """Render subject and body for a notification kind."""
    return TEMPLATES[kind](context)

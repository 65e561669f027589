import logging

from app.system_metrics import increment_metric
from core.logger import log_event

logger = logging.getLogger("app.payments.webhooks")

SUBSCRIPTION_EVENTS = {"customer.subscription.updated", "customer.subscription.deleted"}


def _event_object(event: dict) -> dict:
    data = event.get("data") or {}
    obj = data.get("object") if isinstance(data, dict) else None
    return obj if isinstance(obj, dict) else {}


def handle_event(store, event: dict) -> dict:
    """
    Apply a verified processor event to user subscription fields.
    Every branch writes absolute values, so replaying an event is harmless.
    """
    event_type = str(event.get("type") or "")
    event_id = str(event.get("id") or "")
    obj = _event_object(event)

    if event_type == "checkout.session.completed":
        metadata = obj.get("metadata") or {}
        email = str(metadata.get("userEmail") or "").strip().lower()
        if not email:
            logger.warning("checkout.session.completed without userEmail | event_id=%s", event_id)
            return {"received": True, "updated": 0}
        plan = str(metadata.get("plan") or "pro")
        user = store.update_user_by_email(
            email,
            {
                "subscription_status": "active",
                "subscription_plan": plan,
                "stripe_customer_id": obj.get("customer"),
                "subscription_id": obj.get("subscription"),
            },
        )
        increment_metric("webhooks_processed")
        log_event("payments", "checkout_completed", "", event_id=event_id, user_email=email, plan=plan, matched=bool(user))
        return {"received": True, "updated": 1 if user else 0}

    if event_type in SUBSCRIPTION_EVENTS:
        customer_id = str(obj.get("customer") or "")
        status = "active" if obj.get("status") == "active" else "inactive"
        updates = {"subscription_status": status}
        updated = store.update_users_by_customer_id(customer_id, updates)
        increment_metric("webhooks_processed")
        log_event("payments", "subscription_synced", "", event_id=event_id, status=status, updated=updated)
        return {"received": True, "updated": updated}

    logger.info("ignored webhook event | type=%s event_id=%s", event_type, event_id)
    return {"received": True, "ignored": True}

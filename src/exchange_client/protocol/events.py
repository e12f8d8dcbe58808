"""Event names delivered through the dispatcher.

Two families share one namespace:
- Push events: forwarded verbatim from the server
- Lifecycle events: emitted by the client itself about its connection

The dispatcher accepts any string, so servers may push names not listed here.
"""

from __future__ import annotations

from enum import Enum


class PushEvent(str, Enum):
    """Server-initiated notifications."""

    BALANCE_UPDATE = "balance_update"
    TRANSACTION_NOTIFICATION = "transaction_notification"
    LIMIT_ORDER_NOTIFICATION = "limit_order_notification"
    DCA_PLAN_NOTIFICATION = "dca_plan_notification"
    PRICE_UPDATE = "price_update"
    SYSTEM_NOTIFICATION = "system_notification"

    # Admin-only
    USER_CREATED = "user_created"
    USER_DELETED = "user_deleted"
    SETTINGS_UPDATED = "settings_updated"


class LifecycleEvent(str, Enum):
    """Connection lifecycle notifications emitted by the supervisor."""

    CONNECT = "connect"  # First successful open
    RECONNECT = "reconnect"  # Successful open after a failure
    DISCONNECT = "disconnect"  # Established connection dropped
    RECONNECTING = "reconnecting"  # Retry scheduled: {attempt, delay}
    CONNECTION_LOST = "connection_lost"  # Retries exhausted: {reconnect_attempts}
    AUTH_ERROR = "auth_error"  # Retries exhausted on an auth failure: {message}

"""
Notification Service
Writes user notifications to the Supabase `notifications` table, where the
client apps pick them up. Delivery (push/email) happens outside this core.
"""
import logging

from marketplace.core.database import get_supabase

logger = logging.getLogger(__name__)


class NotificationSender:
    """Fire-and-forget notification sender backed by Supabase"""

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def notify(self, user_id: str, title: str, message: str, kind: str, related_type: str = "kyc") -> None:
        """
        Queue a notification for a user

        Raises whatever the Supabase client raises; callers that must not
        fail on notification errors catch and log them.
        """
        self.client.table("notifications").insert({
            "user_id": user_id,
            "title": title,
            "message": message,
            "type": kind,
            "related_type": related_type,
        }).execute()
        logger.debug(f"Notification '{title}' queued for user {user_id}")

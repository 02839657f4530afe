import logging
from coding_jojo_app.users.models.user_models import UserModel
from coding_jojo_app.notifications.models import NotificationModel, NotificationType

logger = logging.getLogger(__name__)


async def send_notification(
    user: UserModel,
    title: str,
    body: str,
    type: NotificationType,
    related_entity_id: str = None
):
    """
    Centralized function to send in-app notifications.
    Currently saves to DB.
    """
    notification = NotificationModel(
        user_id=user.id,
        title=title,
        body=body,
        type=type,
        related_entity_id=related_entity_id
    )
    await notification.insert()
    logger.info(f"Notification '{title}' stored for {user.email}")
    return notification

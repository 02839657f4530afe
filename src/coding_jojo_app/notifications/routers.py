from fastapi import APIRouter, Depends, Query, status
from uuid import UUID
from coding_jojo_app.core.exceptions import NotFound
from coding_jojo_app.users.utils.get_current_user import get_current_user
from coding_jojo_app.users.models.user_models import UserModel
from coding_jojo_app.notifications.models import NotificationModel
from coding_jojo_app.notifications.schemas import NotificationListResponse, NotificationResponse

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/", response_model=NotificationListResponse, status_code=status.HTTP_200_OK)
async def get_my_notifications(
    limit: int = Query(50, ge=1, le=100),
    skip: int = Query(0, ge=0),
    current_user: UserModel = Depends(get_current_user)
):
    """Get list of notifications, newest first."""
    notifications = await NotificationModel.find(
        NotificationModel.user_id == current_user.id
    ).sort("-created_at").skip(skip).limit(limit).to_list()

    unread_count = await NotificationModel.find(
        NotificationModel.user_id == current_user.id, NotificationModel.is_read == False
    ).count()

    return {
        "unread_count": unread_count,
        "notifications": [NotificationResponse.model_validate(n) for n in notifications]
    }


@router.patch("/{notification_id}/read", response_model=NotificationResponse, status_code=status.HTTP_200_OK)
async def mark_notification_read(
    notification_id: UUID,
    current_user: UserModel = Depends(get_current_user)
):
    """Mark a specific notification as read."""
    notification = await NotificationModel.find_one(
        NotificationModel.id == notification_id,
        NotificationModel.user_id == current_user.id
    )
    if not notification:
        raise NotFound("Notification not found")

    notification.is_read = True
    await notification.save()
    return NotificationResponse.model_validate(notification)

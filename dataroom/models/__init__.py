from dataroom.models.dataroom import (  # noqa: F401
    AccessRequest,
    AccessRequestStatus,
    AccessState,
    Document,
    DocumentTier,
    Invite,
    Notification,
    UserProfile,
    UserRole,
)

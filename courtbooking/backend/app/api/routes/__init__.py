from . import (
    auth,
    availability,
    public,
    bookings,
    contacts,
    courts,
    services,
    time_frames,
    tables,
    uploads,
    reports,
    misc,
)

__all__ = [
    "auth",
    "availability",
    "public",
    "bookings",
    "contacts",
    "courts",
    "services",
    "time_frames",
    "tables",
    "uploads",
    "reports",
    "misc",
]

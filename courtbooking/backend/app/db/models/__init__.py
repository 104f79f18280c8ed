from .user import User, UserRole, Contact, STAFF_ROLES
from .court import Court, Service, ServiceKind
from .time_frame import TimeFrame, Shift
from .booking import (
    Booking,
    BookingSlot,
    BookingServiceLine,
    Cancellation,
    BookingKind,
    BookingStatus,
    PaymentMethod,
    ACTIVE_STATUSES,
    can_transition,
)
from .table import DiningTable, TableState, TableReservation, TABLE_STATUS_LABELS
from .audit_log import AuditLog, ActorType

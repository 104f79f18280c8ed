from .court import Court, CourtCreate, CourtUpdate, Service, ServiceCreate, ServiceUpdate
from .time_frame import TimeFrame, TimeFrameCreate, TimeFrameUpdate, Shift, ShiftCreate, ShiftUpdate
from .user import (
    User,
    UserRegister,
    UserLogin,
    TokenResponse,
    Contact,
    ContactCreate,
    ContactUpdate,
)
from .booking import (
    SlotRequest,
    ServiceRequest,
    PriceCalculationRequest,
    PriceCalculation,
    PriceSummary,
    SlotPrice,
    ServicePrice,
    ContactSnapshot,
    BookingCreate,
    BookingCancel,
    BookingUpdate,
    Booking,
    BookingSlot,
    BookingWithSlots,
    BookingCreated,
    BookingDetail,
    ConflictEntry,
    CourtAvailability,
    CourtDaySlots,
    HourSlot,
)
from .table import (
    DiningTable,
    DiningTableCreate,
    TableStatusUpdate,
    TableReservation,
    TableReservationCreate,
    TableReservationCancel,
)

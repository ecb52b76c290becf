from enum import Enum

class BookingStatus(str, Enum):
    PENDING_APPROVAL = "pending_approval"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    DECLINED = "declined"

# Bookings an hours reduction can invalidate
ACTIVE_STATUSES = [BookingStatus.CONFIRMED.value, BookingStatus.PENDING_APPROVAL.value]

# Bookings that no longer occupy their slot
RELEASED_STATUSES = [BookingStatus.CANCELLED.value, BookingStatus.DECLINED.value]

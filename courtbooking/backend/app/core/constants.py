"""Common application-wide constants."""

from datetime import timedelta

# Booking token prefix, followed by 8 timestamp digits and 4 random characters
BOOKING_TOKEN_PREFIX = "PD"
TABLE_TOKEN_PREFIX = "PB"

# Operating-hour grid used when no shift is configured for the day
DEFAULT_OPEN_HOUR = 5
DEFAULT_CLOSE_HOUR = 23

# How often overdue pending bookings are expired
EXPIRY_JOB_INTERVAL = timedelta(minutes=10)

# Upload storage
UPLOAD_SUBDIRS = {"dish": "dishes", "buffet": "buffet"}
UPLOAD_MAX_FILES = 1

# User-facing messages shared between services and routes
MSG_NO_SHIFT = "Không có ca làm việc trong khung giờ này"
MSG_NOT_COVERED = "Khung giờ đặt không nằm hoàn toàn trong giờ hoạt động"
MSG_ALREADY_BOOKED = "Khung giờ đã có người đặt"
MSG_BOOKING_NOT_FOUND = "Không tìm thấy phiếu đặt"
MSG_IMAGE_ONLY = "Chỉ cho phép upload file hình ảnh (jpg, png, gif, webp)"
MSG_FILE_TOO_LARGE = "File quá lớn. Kích thước tối đa là 5MB."
MSG_TOO_MANY_FILES = "Chỉ được upload 1 file."


__all__ = [
    "BOOKING_TOKEN_PREFIX",
    "TABLE_TOKEN_PREFIX",
    "DEFAULT_OPEN_HOUR",
    "DEFAULT_CLOSE_HOUR",
    "EXPIRY_JOB_INTERVAL",
    "UPLOAD_SUBDIRS",
    "UPLOAD_MAX_FILES",
    "MSG_NO_SHIFT",
    "MSG_NOT_COVERED",
    "MSG_ALREADY_BOOKED",
    "MSG_BOOKING_NOT_FOUND",
    "MSG_IMAGE_ONLY",
    "MSG_FILE_TOO_LARGE",
    "MSG_TOO_MANY_FILES",
]

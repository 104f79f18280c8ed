from datetime import date, timedelta
from html import escape
from typing import Mapping, Sequence

MAIN_MENU = "Bạn muốn làm gì?"
API_ERROR = "Không lấy được dữ liệu. Vui lòng thử lại sau."
CHOOSE_DATE = "Chọn ngày sử dụng sân:"
CHOOSE_START = "Chọn giờ bắt đầu:"
CHOOSE_END = "Chọn giờ kết thúc:"
NO_COURTS_AVAILABLE = "Không còn sân trống trong khung giờ này. Hãy chọn khung giờ khác."
CHOOSE_SLOTS = "Chọn sân và khung giờ (bấm lại để bỏ chọn):"
NO_SLOT_SELECTED = "Vui lòng chọn ít nhất một khung giờ"
CHOOSE_SERVICES = "Thêm dịch vụ nếu cần:"
CHOOSE_PAYMENT = "Chọn phương thức thanh toán:"
ASK_CONTACT_NAME = "Vui lòng nhập họ tên người liên hệ."
ASK_CONTACT_PHONE = "Vui lòng nhập số điện thoại liên hệ (10-11 chữ số)."
CONTACT_NAME_INVALID = "Họ tên không được để trống."
CONTACT_PHONE_INVALID = "Số điện thoại không hợp lệ, vui lòng nhập lại."
PRICING_IN_PROGRESS = "Đang tính giá..."
BOOKING_CREATED = "Đặt sân thành công!"
PAYMENT_BACK = "Đã quay lại trang đặt sân, chưa có phiếu nào được tạo."
PAYMENT_EXPIRED = "Đã hết thời gian giữ chỗ. Vui lòng đặt sân lại."
ASK_LOOKUP_TOKEN = "Nhập mã phiếu đặt sân (ví dụ: PD12345678ABCD):"
CANCEL_CONFIRM = "Bạn chắc chắn muốn hủy phiếu đặt này?"
CANCEL_SUCCESS = "Đã hủy phiếu đặt sân."
NO_BOOKINGS = "Bạn chưa có phiếu đặt sân nào."
BOOKINGS_TITLE = "Lịch sử đặt sân:"
LOGIN_REQUIRED = "Vui lòng đăng nhập để xem lịch sử đặt sân."
ASK_USERNAME = "Nhập tên đăng nhập:"
ASK_PASSWORD = "Nhập mật khẩu:"
ASK_FULL_NAME = "Nhập họ tên của bạn:"
LOGIN_SUCCESS = "Đăng nhập thành công."
LOGOUT_SUCCESS = "Bạn đã đăng xuất."
REGISTER_PROMPT = "Chưa có tài khoản? Bấm «Đăng ký»."

STATUS_LABELS = {
    "pending": "Chờ xác nhận",
    "confirmed": "Đã xác nhận",
    "canceled": "Đã hủy",
    "expired": "Hết hạn",
    "received": "Đã nhận",
}
PAYMENT_LABELS = {
    "cash": "Tiền mặt tại sân",
    "bank_transfer": "Chuyển khoản",
}
_WEEKDAYS = ("T2", "T3", "T4", "T5", "T6", "T7", "CN")


def format_money(value: float | int | None) -> str:
    if value is None:
        return ""
    amount = f"{int(round(float(value))):,}".replace(",", ".")
    return f"{amount} đ"


def format_day(value: date) -> str:
    return f"{_WEEKDAYS[value.weekday()]} {value.strftime('%d/%m/%Y')}"


def format_remaining(remaining: timedelta) -> str:
    seconds = max(int(remaining.total_seconds()), 0)
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def status_label(status: str | None) -> str:
    return STATUS_LABELS.get(status or "", status or "")


def error_details(message: str, details: Sequence[str] = ()) -> str:
    if not details:
        return escape(message)
    return "\n".join(f"• {escape(item)}" for item in details)


def availability_summary(day: date, start_time: str, end_time: str, courts: Sequence[Mapping]) -> str:
    lines = [f"<b>{format_day(day)}</b> · {start_time} - {end_time}"]
    for court in courts:
        name = escape(str(court.get("ten_san") or court.get("ma_san") or ""))
        if court.get("is_available"):
            lines.append(f"✅ {name}")
            continue
        reasons = sorted({str(item.get("reason")) for item in court.get("bookings") or [] if item.get("reason")})
        suffix = f" ({escape(', '.join(reasons))})" if reasons else ""
        lines.append(f"❌ {name}{suffix}")
    return "\n".join(lines)


def pricing_summary(pricing: Mapping | None, courts: Mapping[int, str] | None = None) -> str:
    if not pricing:
        return ""
    courts = courts or {}
    lines = ["<b>Chi phí</b>"]
    for slot in pricing.get("slots", []):
        name = escape(courts.get(slot["san_id"], f"Sân {slot['san_id']}"))
        lines.append(f"{name} {slot['start_time']}-{slot['end_time']}: {format_money(slot['price'])}")
    for line in pricing.get("services", []):
        lines.append(f"{escape(line['ten_dv'])} x{line['so_luong']}: {format_money(line['price'])}")
    summary = pricing["summary"]
    lines.append(f"Tiền sân: {format_money(summary['slots_total'])}")
    lines.append(f"Dịch vụ: {format_money(summary['services_total'])}")
    lines.append(f"<b>Tổng cộng: {format_money(summary['grand_total'])}</b>")
    return "\n".join(lines)


def booking_created(ma_pd: str, total: float | None) -> str:
    parts = [
        BOOKING_CREATED,
        f"Mã phiếu: <code>{escape(ma_pd)}</code>",
        f"Tổng tiền: {format_money(total)}" if total is not None else "",
        "Hãy lưu lại mã phiếu để tra cứu hoặc hủy đặt sân.",
    ]
    return "\n".join(part for part in parts if part)


def payment_details(
    total: float | None,
    remaining: timedelta,
    *,
    bank_name: str,
    account_number: str,
    account_holder: str,
) -> str:
    lines = [
        "<b>Thanh toán chuyển khoản</b>",
        f"Số tiền: {format_money(total)}",
        f"Ngân hàng: {escape(bank_name)}",
    ]
    if account_number:
        lines.append(f"Số tài khoản: <code>{escape(account_number)}</code>")
    if account_holder:
        lines.append(f"Chủ tài khoản: {escape(account_holder)}")
    lines.append(f"Thời gian giữ chỗ còn lại: {format_remaining(remaining)}")
    lines.append("Sau khi chuyển khoản, bấm «Tôi đã chuyển khoản» để hoàn tất đặt sân.")
    return "\n".join(lines)


def booking_detail(detail: Mapping) -> str:
    booking = detail.get("booking", {})
    lines = [
        f"Mã phiếu: <code>{escape(str(booking.get('ma_pd', '')))}</code>",
        f"Ngày sử dụng: {booking.get('ngay_su_dung', '')}",
        f"Trạng thái: {status_label(booking.get('status'))}",
    ]
    method = booking.get("payment_method")
    if method:
        lines.append(f"Thanh toán: {PAYMENT_LABELS.get(method, method)}")
    for slot in detail.get("slots", []):
        lines.append(f"Sân {slot['san_id']}: {slot['start_time']} - {slot['end_time']}")
    for line in detail.get("services", []):
        name = (line.get("dv") or {}).get("ten_dv") or f"Dịch vụ {line.get('dich_vu_id')}"
        lines.append(f"{escape(name)} x{line.get('so_luong')}: {format_money(line.get('lineTotal'))}")
    totals = detail.get("totals")
    if totals:
        lines.append(f"<b>Tổng cộng: {format_money(totals.get('tong_tien'))}</b>")
    return "\n".join(lines)


def bookings_list(items: Sequence[Mapping[str, object]]) -> str:
    if not items:
        return NO_BOOKINGS
    lines = [BOOKINGS_TITLE]
    for item in items:
        parts = [
            str(item.get("ma_pd", "")),
            str(item.get("ngay_su_dung", "")),
            status_label(str(item.get("status", ""))),
            format_money(item.get("tong_tien")),  # type: ignore[arg-type]
        ]
        lines.append(" · ".join(part for part in parts if part))
    return "\n".join(lines)


def logged_in_as(name: str) -> str:
    return f"{LOGIN_SUCCESS} Xin chào, {escape(name)}!"

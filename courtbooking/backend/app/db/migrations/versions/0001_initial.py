from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

ENUMS = {
    "userrole": ("customer", "staff", "manager"),
    "servicekind": ("rent", "buy"),
    "bookingstatus": ("pending", "confirmed", "canceled", "received", "expired"),
    "paymentmethod": ("cash", "bank_transfer"),
    "tablestate": ("Trong", "DaDat", "DangSuDung", "Lock"),
    "actortype": ("guest", "customer", "staff", "system"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=200)),
        sa.Column("email", sa.String(length=255)),
        sa.Column("phone", sa.String(length=20)),
        sa.Column("role", _enum("userrole"), server_default="customer"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "customer_contacts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), index=True),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20)),
        sa.Column("email", sa.String(length=255)),
        sa.Column("address", sa.Text()),
        sa.Column("note", sa.Text()),
        sa.Column("is_default", sa.Boolean(), server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "san",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("ma_san", sa.String(length=50), nullable=False, unique=True),
        sa.Column("ten_san", sa.String(length=200), nullable=False),
        sa.Column("suc_chua", sa.Integer(), server_default="4"),
        sa.Column("trang_thai", sa.Boolean(), server_default=sa.true()),
        sa.Column("ghi_chu", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("suc_chua > 0", name="ck_san_suc_chua_positive"),
    )

    op.create_table(
        "dich_vu",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("ma_dv", sa.String(length=50), nullable=False, unique=True),
        sa.Column("ten_dv", sa.String(length=200), nullable=False),
        sa.Column("loai", _enum("servicekind"), server_default="buy"),
        sa.Column("don_gia", sa.Numeric(12, 2), server_default="0"),
        sa.Column("ghi_chu", sa.Text()),
    )

    op.create_table(
        "khung_gio",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("ten_khung_gio", sa.String(length=255), nullable=False),
        sa.Column("ngay_ap_dung", sa.Integer(), index=True),
        sa.Column("start_at", sa.String(length=5)),
        sa.Column("end_at", sa.String(length=5)),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.CheckConstraint("ngay_ap_dung BETWEEN 0 AND 6", name="ck_khung_gio_weekday"),
    )

    op.create_table(
        "ca",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("khung_gio_id", sa.Integer(), sa.ForeignKey("khung_gio.id", ondelete="CASCADE")),
        sa.Column("ten_ca", sa.String(length=255), nullable=False),
        sa.Column("start_at", sa.String(length=5)),
        sa.Column("end_at", sa.String(length=5)),
        sa.Column("gia_theo_gio", sa.Numeric(12, 2)),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.CheckConstraint("gia_theo_gio > 0", name="ck_ca_gia_positive"),
    )

    op.create_table(
        "phieu_dat_san",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("ma_pd", sa.String(length=32), nullable=False, unique=True, index=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), index=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("ngay_su_dung", sa.Date(), index=True),
        sa.Column("status", _enum("bookingstatus"), server_default="pending"),
        sa.Column("payment_method", _enum("paymentmethod")),
        sa.Column("is_paid", sa.Boolean(), server_default=sa.false()),
        sa.Column("note", sa.Text()),
        sa.Column("contact_snapshot", sa.JSON()),
        sa.Column("tien_san", sa.Numeric(12, 2), server_default="0"),
        sa.Column("tien_dich_vu", sa.Numeric(12, 2), server_default="0"),
        sa.Column("tong_tien", sa.Numeric(12, 2), server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "chi_tiet_phieu_san",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("phieu_dat_id", sa.Integer(), sa.ForeignKey("phieu_dat_san.id", ondelete="CASCADE")),
        sa.Column("san_id", sa.Integer(), sa.ForeignKey("san.id", ondelete="RESTRICT"), index=True),
        sa.Column("start_time", sa.String(length=5)),
        sa.Column("end_time", sa.String(length=5)),
        sa.Column("don_gia", sa.Numeric(12, 2), server_default="0"),
        sa.Column("ghi_chu", sa.Text()),
    )

    op.create_table(
        "chi_tiet_phieu_dich_vu",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("phieu_dat_id", sa.Integer(), sa.ForeignKey("phieu_dat_san.id", ondelete="CASCADE")),
        sa.Column("dich_vu_id", sa.Integer(), sa.ForeignKey("dich_vu.id", ondelete="RESTRICT")),
        sa.Column("so_luong", sa.Integer(), server_default="1"),
        sa.Column("don_gia", sa.Numeric(12, 2), server_default="0"),
        sa.Column("ghi_chu", sa.Text()),
    )

    op.create_table(
        "phieu_huy_dat_san",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("phieu_dat_id", sa.Integer(), sa.ForeignKey("phieu_dat_san.id", ondelete="CASCADE")),
        sa.Column("ly_do", sa.Text()),
        sa.Column("nguoi_thuc_hien", sa.String(length=64)),
        sa.Column("tien_hoan", sa.Numeric(12, 2), server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "ban",
        sa.Column("maban", sa.Integer(), primary_key=True),
        sa.Column("tenban", sa.String(length=50), nullable=False),
        sa.Column("soghe", sa.Integer(), nullable=False),
        sa.Column("vitri", sa.String(length=200)),
        sa.Column("trangthai", _enum("tablestate"), server_default="Trong"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("ghichu", sa.Text()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("soghe BETWEEN 1 AND 20", name="ck_ban_soghe_range"),
    )

    op.create_table(
        "phieu_dat_ban",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("maphieu", sa.String(length=32), nullable=False, unique=True, index=True),
        sa.Column("maban", sa.Integer(), sa.ForeignKey("ban.maban", ondelete="RESTRICT")),
        sa.Column("songuoi", sa.Integer()),
        sa.Column("thoigian_dat", sa.DateTime(timezone=True), index=True),
        sa.Column("guest_hoten", sa.String(length=100)),
        sa.Column("guest_sodienthoai", sa.String(length=20)),
        sa.Column("ghichu", sa.Text()),
        sa.Column("status", _enum("bookingstatus"), server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("actor_type", _enum("actortype")),
        sa.Column("actor_id", sa.Integer()),
        sa.Column("action", sa.String(length=255)),
        sa.Column("payload", sa.JSON()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    for table in (
        "audit_logs",
        "phieu_dat_ban",
        "ban",
        "phieu_huy_dat_san",
        "chi_tiet_phieu_dich_vu",
        "chi_tiet_phieu_san",
        "phieu_dat_san",
        "ca",
        "khung_gio",
        "dich_vu",
        "san",
        "customer_contacts",
        "users",
    ):
        op.drop_table(table)
    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)

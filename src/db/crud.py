# src/db/crud.py
from __future__ import annotations

import dataclasses
import json
import re
import secrets
import uuid
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from db import models
from db.database import connect
from db.errors import AuthError
from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _now() -> str:
    return datetime.now().isoformat()


def _parse_dt(val) -> Optional[datetime]:
    if val is None or val == "":
        return None
    if isinstance(val, datetime):
        return val
    return datetime.fromisoformat(val)


def _iso(val) -> Optional[str]:
    if val is None:
        return None
    if isinstance(val, (datetime, date)):
        return val.isoformat()
    return str(val)


def _hash_password(pwd: str) -> str:
    return generate_password_hash(pwd)


def _check_password(pwd: str, stored: str) -> bool:
    # the seeded admin row stores "!", which never matches
    return check_password_hash(stored, pwd)


def _validate_password(pwd: str) -> None:
    if len(pwd or "") < config.MIN_PASSWORD_LENGTH:
        raise AuthError(
            f"Password should be at least {config.MIN_PASSWORD_LENGTH} characters",
            code="weak_password",
        )


def _row_to_user(row) -> models.User:
    return models.User(
        id=row["id"],
        email=row["email"],
        full_name=row["full_name"],
        created_at=_parse_dt(row["created_at"]),
        is_admin=row["id"] == config.ADMIN_ID,
    )


def _row_to_item(row) -> models.Item:
    return models.Item(
        id=int(row["id"]),
        name=row["name"],
        price=int(row["price"]),
        category=row["category"],
        type=row["type"],
        image=row["image"],
        description=row["description"],
        created_at=_parse_dt(row["created_at"]),
    )


def _row_to_profile(row) -> models.Profile:
    return models.Profile(
        id=row["id"],
        full_name=row["full_name"],
        phone=row["phone"],
        address=row["address"],
        created_at=_parse_dt(row["created_at"]),
        updated_at=_parse_dt(row["updated_at"]),
    )


def _row_to_notification(row) -> models.Notification:
    return models.Notification(
        id=row["id"],
        user_id=row["user_id"],
        type=row["type"],
        title=row["title"],
        message=row["message"],
        timestamp=_parse_dt(row["created_at"]),
        read=bool(row["is_read"]),
    )


def _row_to_purchase(row) -> models.Purchase:
    items = tuple(models.PurchaseItem(**entry) for entry in json.loads(row["items"]))
    return models.Purchase(
        id=row["id"],
        user_id=row["user_id"],
        items=items,
        total=int(row["total"]),
        status=row["status"],
        order_date=_parse_dt(row["order_date"]),
        payment_method=row["payment_method"],
        delivery_date=_parse_dt(row["delivery_date"]),
    )


def _row_to_promotion(row) -> models.Promotion:
    return models.Promotion(
        id=int(row["id"]),
        title=row["title"],
        description=row["description"],
        discount=int(row["discount"]),
        start_date=date.fromisoformat(row["start_date"]),
        end_date=date.fromisoformat(row["end_date"]),
        is_active=bool(row["is_active"]),
        target_category=row["target_category"],
        target_type=row["target_type"],
    )


# ---------------------------
# Auth & Registration
# ---------------------------


async def email_registered(email: str) -> bool:
    """True if an account already uses the given email (case-insensitive)."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT 1 FROM users WHERE email = ? LIMIT 1;", (email.strip(),)
        )
        row = await cur.fetchone()
        await cur.close()
        return row is not None


async def sign_up(full_name: str, email: str, pwd: str) -> models.User:
    """
    Create a new account with its profile row and return the User.
    """
    email = (email or "").strip()
    if not _EMAIL_RE.match(email):
        raise AuthError("Invalid email", code="invalid_email")
    _validate_password(pwd)
    if await email_registered(email):
        raise AuthError("User already registered", code="user_exists")

    uid = str(uuid.uuid4())
    now = _now()
    async with connect() as conn:
        await conn.execute(
            "INSERT INTO users(id, email, pwd_hash, full_name, created_at) VALUES (?, ?, ?, ?, ?);",
            (uid, email, _hash_password(pwd), full_name, now),
        )
        await conn.execute(
            "INSERT INTO profiles(id, full_name, phone, address, created_at, updated_at) VALUES (?, ?, NULL, NULL, ?, ?);",
            (uid, full_name, now, now),
        )
        await conn.commit()
    _logger.info(f"Registered account {uid} for {email}")
    return models.User(
        id=uid, email=email, full_name=full_name, created_at=_parse_dt(now)
    )


async def sign_in(email: str, pwd: str) -> models.User:
    """Return the User if email/pwd match; raise AuthError otherwise."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT id, email, pwd_hash, full_name, created_at FROM users WHERE email = ?;",
            ((email or "").strip(),),
        )
        row = await cur.fetchone()
        await cur.close()
    if not row or not _check_password(pwd or "", row["pwd_hash"]):
        raise AuthError("Invalid login credentials", code="invalid_credentials")
    return _row_to_user(row)


async def get_user(user_id: str) -> Optional[models.User]:
    """Return a User object for the given id, or None if not found."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT id, email, full_name, created_at FROM users WHERE id = ?;",
            (user_id,),
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return None
    return _row_to_user(row)


async def update_password(user_id: str, new_pwd: str) -> None:
    _validate_password(new_pwd)
    async with connect() as conn:
        res = await conn.execute(
            "UPDATE users SET pwd_hash = ? WHERE id = ?;",
            (_hash_password(new_pwd), user_id),
        )
        await conn.commit()
    if res.rowcount == 0:
        raise AuthError("User not found", code="user_not_found")


async def request_password_reset(email: str) -> str:
    """
    Issue a one-time reset token for the account registered with email.
    """
    email = (email or "").strip()
    if not _EMAIL_RE.match(email):
        raise AuthError("Invalid email", code="invalid_email")
    async with connect() as conn:
        cur = await conn.execute("SELECT id FROM users WHERE email = ?;", (email,))
        row = await cur.fetchone()
        await cur.close()
        if not row or row["id"] == config.ADMIN_ID:
            raise AuthError("User not found", code="user_not_found")
        token = secrets.token_urlsafe(24)
        await conn.execute(
            "INSERT INTO password_resets(token, user_id, created_at, used) VALUES (?, ?, ?, 0);",
            (token, row["id"], _now()),
        )
        await conn.commit()
    _logger.info(f"Password reset token for {email}: {token}")
    return token


async def reset_password(token: str, new_pwd: str) -> models.User:
    """Consume a reset token and set the new password."""
    _validate_password(new_pwd)
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT user_id FROM password_resets WHERE token = ? AND used = 0;",
            ((token or "").strip(),),
        )
        row = await cur.fetchone()
        await cur.close()
        if not row:
            raise AuthError("Invalid or expired token", code="invalid_token")
        await conn.execute(
            "UPDATE users SET pwd_hash = ? WHERE id = ?;",
            (_hash_password(new_pwd), row["user_id"]),
        )
        await conn.execute(
            "UPDATE password_resets SET used = 1 WHERE token = ?;", (token.strip(),)
        )
        await conn.commit()
    return await get_user(row["user_id"])


# ---------------------------
# Items
# ---------------------------

_ITEM_COLUMNS = "id, name, description, price, category, type, image, created_at"
_ITEM_FIELDS = {"name", "description", "price", "category", "type", "image"}
_ITEM_ORDER = {
    "id": "id ASC",
    "created_at": "created_at DESC, id DESC",
    "name": "name COLLATE NOCASE ASC",
}


async def list_items(order_by: str = "id") -> List[models.Item]:
    """Return every catalog item; order_by is one of id, created_at, name."""
    if order_by not in _ITEM_ORDER:
        raise ValueError(f"Unsupported item ordering: {order_by}")
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_ITEM_COLUMNS} FROM items ORDER BY {_ITEM_ORDER[order_by]};"
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_item(row) for row in rows]


async def get_item(item_id: int) -> Optional[models.Item]:
    """Fetch an item by id."""
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_ITEM_COLUMNS} FROM items WHERE id = ?;", (item_id,)
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return None
    return _row_to_item(row)


async def create_item(
    name: str,
    price: int,
    category: str,
    type: str,
    image: str = "",
    description: Optional[str] = None,
) -> models.Item:
    if price < 0:
        raise ValueError("Price cannot be negative.")
    async with connect() as conn:
        cur = await conn.execute(
            "INSERT INTO items(name, description, price, category, type, image, created_at) VALUES (?, ?, ?, ?, ?, ?, ?);",
            (name, description or None, int(price), category, type, image, _now()),
        )
        item_id = cur.lastrowid
        await cur.close()
        await conn.commit()
    _logger.info(f"Created item {item_id} ({name})")
    return await get_item(item_id)


async def update_item(item_id: int, **fields) -> bool:
    """
    Update the given columns of an item. Return True if a row was updated.
    """
    unknown = set(fields) - _ITEM_FIELDS
    if unknown:
        raise ValueError(f"Unknown item fields: {', '.join(sorted(unknown))}")
    if not fields:
        return False
    if "price" in fields:
        fields["price"] = int(fields["price"])
        if fields["price"] < 0:
            raise ValueError("Price cannot be negative.")
    if "description" in fields:
        fields["description"] = fields["description"] or None
    assignments = ", ".join(f"{col} = ?" for col in fields)
    async with connect() as conn:
        res = await conn.execute(
            f"UPDATE items SET {assignments} WHERE id = ?;",
            (*fields.values(), item_id),
        )
        await conn.commit()
        return res.rowcount > 0


async def delete_item(item_id: int) -> bool:
    async with connect() as conn:
        res = await conn.execute("DELETE FROM items WHERE id = ?;", (item_id,))
        await conn.commit()
        return res.rowcount > 0


# ---------------------------
# Profiles
# ---------------------------


async def get_profile(user_id: str) -> Optional[models.Profile]:
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT id, full_name, phone, address, created_at, updated_at FROM profiles WHERE id = ?;",
            (user_id,),
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return None
    return _row_to_profile(row)


async def upsert_profile(
    user_id: str,
    full_name: Optional[str],
    phone: Optional[str],
    address: Optional[str],
) -> models.Profile:
    """Insert or update the profile row of user_id and return it."""
    now = _now()
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO profiles(id, full_name, phone, address, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                full_name = excluded.full_name,
                phone = excluded.phone,
                address = excluded.address,
                updated_at = excluded.updated_at;
            """,
            (user_id, full_name or None, phone or None, address or None, now, now),
        )
        await conn.execute(
            "UPDATE users SET full_name = ? WHERE id = ?;", (full_name or None, user_id)
        )
        await conn.commit()
    return await get_profile(user_id)


async def list_profiles() -> List[models.Profile]:
    """All profiles, newest first."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, full_name, phone, address, created_at, updated_at
            FROM profiles
            ORDER BY created_at DESC;
            """
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_profile(row) for row in rows]


# ---------------------------
# Notifications
# ---------------------------


async def list_notifications(user_id: str) -> List[models.Notification]:
    """Notifications of a user, newest first."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, user_id, type, title, message, is_read, created_at
            FROM notifications
            WHERE user_id = ?
            ORDER BY created_at DESC, rowid DESC;
            """,
            (user_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_notification(row) for row in rows]


async def add_notification(
    user_id: str, type: str, title: str, message: str
) -> models.Notification:
    if type not in models.NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {type}")
    notification = models.Notification(
        id=str(uuid.uuid4()),
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        timestamp=datetime.now(),
        read=False,
    )
    async with connect() as conn:
        await conn.execute(
            "INSERT INTO notifications(id, user_id, type, title, message, is_read, created_at) VALUES (?, ?, ?, ?, ?, 0, ?);",
            (
                notification.id,
                user_id,
                type,
                title,
                message,
                notification.timestamp.isoformat(),
            ),
        )
        await conn.commit()
    return notification


async def mark_notification_read(notification_id: str) -> bool:
    async with connect() as conn:
        res = await conn.execute(
            "UPDATE notifications SET is_read = 1 WHERE id = ?;", (notification_id,)
        )
        await conn.commit()
        return res.rowcount > 0


async def mark_all_notifications_read(user_id: str) -> int:
    """Mark every unread notification of user_id as read, return how many changed."""
    async with connect() as conn:
        res = await conn.execute(
            "UPDATE notifications SET is_read = 1 WHERE user_id = ? AND is_read = 0;",
            (user_id,),
        )
        await conn.commit()
        return res.rowcount


# ---------------------------
# Purchase history
# ---------------------------


async def list_purchases(user_id: str) -> List[models.Purchase]:
    """Purchases of a user, most recent order first."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, user_id, items, total, status, payment_method, order_date, delivery_date
            FROM purchase_history
            WHERE user_id = ?
            ORDER BY order_date DESC, rowid DESC;
            """,
            (user_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_purchase(row) for row in rows]


async def add_purchase(
    user_id: str,
    items: Sequence[models.PurchaseItem],
    total: int,
    payment_method: str,
    status: str = "pending",
    order_date: Optional[datetime] = None,
    delivery_date: Optional[datetime] = None,
) -> models.Purchase:
    """
    Record a purchase with a JSON snapshot of its lines and return it.
    """
    if status not in models.PURCHASE_STATUSES:
        raise ValueError(f"Unknown purchase status: {status}")
    purchase = models.Purchase(
        id=str(uuid.uuid4()),
        user_id=user_id,
        items=tuple(items),
        total=int(total),
        status=status,
        order_date=order_date or datetime.now(),
        payment_method=payment_method,
        delivery_date=delivery_date,
    )
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO purchase_history(id, user_id, items, total, status, payment_method, order_date, delivery_date)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                purchase.id,
                user_id,
                json.dumps([dataclasses.asdict(i) for i in purchase.items]),
                purchase.total,
                status,
                payment_method,
                _iso(purchase.order_date),
                _iso(delivery_date),
            ),
        )
        await conn.commit()
    _logger.info(f"Recorded purchase {purchase.id} for {user_id} ({purchase.total})")
    return purchase


async def update_purchase_status(purchase_id: str, status: str) -> bool:
    if status not in models.PURCHASE_STATUSES:
        raise ValueError(f"Unknown purchase status: {status}")
    delivery_date = _now() if status == "delivered" else None
    async with connect() as conn:
        res = await conn.execute(
            """
            UPDATE purchase_history
            SET status = ?, delivery_date = COALESCE(?, delivery_date)
            WHERE id = ?;
            """,
            (status, delivery_date, purchase_id),
        )
        await conn.commit()
        return res.rowcount > 0


# ---------------------------
# Promotions
# ---------------------------

_PROMOTION_COLUMNS = (
    "id, title, description, discount, start_date, end_date, is_active, "
    "target_category, target_type"
)
_PROMOTION_FIELDS = {
    "title",
    "description",
    "discount",
    "start_date",
    "end_date",
    "is_active",
    "target_category",
    "target_type",
}


def _check_promotion(discount: Optional[int], start, end) -> None:
    if discount is not None and not 0 <= int(discount) <= 100:
        raise ValueError("Discount must be between 0 and 100 percent.")
    if start is not None and end is not None and end < start:
        raise ValueError("Promotion cannot end before it starts.")


async def list_promotions() -> List[models.Promotion]:
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_PROMOTION_COLUMNS} FROM promotions ORDER BY created_at DESC, id DESC;"
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_promotion(row) for row in rows]


async def list_active_promotions(as_of: Optional[date] = None) -> List[models.Promotion]:
    """Active promotions whose date range contains as_of (today by default)."""
    day = (as_of or date.today()).isoformat()
    async with connect() as conn:
        cur = await conn.execute(
            f"""
            SELECT {_PROMOTION_COLUMNS}
            FROM promotions
            WHERE is_active = 1 AND start_date <= ? AND end_date >= ?
            ORDER BY id;
            """,
            (day, day),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_promotion(row) for row in rows]


async def get_promotion(promotion_id: int) -> Optional[models.Promotion]:
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_PROMOTION_COLUMNS} FROM promotions WHERE id = ?;",
            (promotion_id,),
        )
        row = await cur.fetchone()
        await cur.close()
    return _row_to_promotion(row) if row else None


async def create_promotion(
    title: str,
    description: str,
    discount: int,
    start_date: date,
    end_date: date,
    is_active: bool = True,
    target_category: Optional[str] = None,
    target_type: Optional[str] = None,
) -> models.Promotion:
    _check_promotion(discount, start_date, end_date)
    async with connect() as conn:
        cur = await conn.execute(
            """
            INSERT INTO promotions(title, description, discount, start_date, end_date, is_active, target_category, target_type, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                title,
                description,
                int(discount),
                _iso(start_date),
                _iso(end_date),
                int(bool(is_active)),
                target_category or None,
                target_type or None,
                _now(),
            ),
        )
        promotion_id = cur.lastrowid
        await cur.close()
        await conn.commit()
    return await get_promotion(promotion_id)


async def update_promotion(promotion_id: int, **fields) -> bool:
    unknown = set(fields) - _PROMOTION_FIELDS
    if unknown:
        raise ValueError(f"Unknown promotion fields: {', '.join(sorted(unknown))}")
    if not fields:
        return False
    current = await get_promotion(promotion_id)
    if current is None:
        return False
    _check_promotion(
        fields.get("discount"),
        fields.get("start_date", current.start_date),
        fields.get("end_date", current.end_date),
    )
    values = []
    for col, val in fields.items():
        if col in ("start_date", "end_date"):
            val = _iso(val)
        elif col == "is_active":
            val = int(bool(val))
        elif col in ("target_category", "target_type"):
            val = val or None
        values.append(val)
    assignments = ", ".join(f"{col} = ?" for col in fields)
    async with connect() as conn:
        res = await conn.execute(
            f"UPDATE promotions SET {assignments} WHERE id = ?;",
            (*values, promotion_id),
        )
        await conn.commit()
        return res.rowcount > 0


async def delete_promotion(promotion_id: int) -> bool:
    async with connect() as conn:
        res = await conn.execute(
            "DELETE FROM promotions WHERE id = ?;", (promotion_id,)
        )
        await conn.commit()
        return res.rowcount > 0


# ---------------------------
# Back-office stats
# ---------------------------

STATS_TABLES = ("items", "profiles", "notifications", "purchase_history")


async def table_counts() -> Dict[str, int]:
    """Row count of each table shown on the database overview."""
    counts: Dict[str, int] = {}
    async with connect() as conn:
        for table in STATS_TABLES:
            cur = await conn.execute(f"SELECT COUNT(*) FROM {table};")
            counts[table] = int((await cur.fetchone())[0])
            await cur.close()
    return counts

import os
import sys
import tempfile
import unittest
from datetime import date, datetime

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from db import crud  # noqa: E402
from db import database as db_database  # noqa: E402
from db.errors import AuthError  # noqa: E402
from db.models import PurchaseItem  # noqa: E402


class CrudTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        # Point the DB to a temporary file and force re-initialization
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        db_database.DB_PATH = self.db_path
        db_database._initialized = False

    async def asyncSetUp(self):
        # Touch initialization by opening a connection
        async with db_database.connect() as conn:
            cur = await conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table';"
            )
            await cur.fetchall()
            await cur.close()

    def tearDown(self):
        self.temp_dir.cleanup()

    async def _register(self, name="Charlie", email="charlie@example.com", pwd="secret1"):
        return await crud.sign_up(name, email, pwd)

    # ---------- Auth & registration ----------

    async def test_sign_up_sign_in_and_get_user(self):
        self.assertFalse(await crud.email_registered("charlie@example.com"))
        user = await self._register()
        self.assertTrue(await crud.email_registered("charlie@example.com"))
        self.assertTrue(await crud.email_registered("CHARLIE@example.com"))
        self.assertFalse(user.is_admin)

        signed_in = await crud.sign_in("charlie@example.com", "secret1")
        self.assertEqual(signed_in.id, user.id)
        self.assertEqual(signed_in.full_name, "Charlie")

        with self.assertRaises(AuthError) as ctx:
            await crud.sign_in("charlie@example.com", "wrong-password")
        self.assertEqual(ctx.exception.code, "invalid_credentials")

        with self.assertRaises(AuthError):
            await crud.sign_in("nobody@example.com", "secret1")

        got = await crud.get_user(user.id)
        self.assertEqual(got.email, "charlie@example.com")
        self.assertIsNone(await crud.get_user("missing"))

        # sign up also creates the profile row
        profile = await crud.get_profile(user.id)
        self.assertEqual(profile.full_name, "Charlie")
        self.assertIsNone(profile.phone)

    async def test_sign_up_rejections(self):
        await self._register()
        cases = [
            (("Dup", "charlie@example.com", "secret1"), "user_exists"),
            (("Bad", "not-an-email", "secret1"), "invalid_email"),
            (("Weak", "weak@example.com", "123"), "weak_password"),
        ]
        for args, code in cases:
            with self.assertRaises(AuthError) as ctx:
                await crud.sign_up(*args)
            self.assertEqual(ctx.exception.code, code)

    async def test_admin_row_cannot_sign_in(self):
        admin = await crud.get_user("admin")
        self.assertTrue(admin.is_admin)
        with self.assertRaises(AuthError):
            await crud.sign_in("admin@itemku.com", "admin")

    async def test_password_hashes_are_salted(self):
        first = crud._hash_password("secret1")
        second = crud._hash_password("secret1")
        self.assertTrue(first.startswith(("scrypt:", "pbkdf2:")))
        self.assertNotIn("secret1", first)
        self.assertNotEqual(first, second)
        self.assertTrue(crud._check_password("secret1", first))
        self.assertFalse(crud._check_password("secret2", first))
        self.assertFalse(crud._check_password("secret1", "!"))

    async def test_update_password(self):
        user = await self._register()
        await crud.update_password(user.id, "newsecret")
        await crud.sign_in("charlie@example.com", "newsecret")

        with self.assertRaises(AuthError):
            await crud.update_password(user.id, "short")
        with self.assertRaises(AuthError) as ctx:
            await crud.update_password("missing", "longenough")
        self.assertEqual(ctx.exception.code, "user_not_found")

    async def test_password_reset_flow(self):
        user = await self._register()
        token = await crud.request_password_reset("charlie@example.com")
        self.assertTrue(token)

        reset_user = await crud.reset_password(token, "brandnew")
        self.assertEqual(reset_user.id, user.id)
        await crud.sign_in("charlie@example.com", "brandnew")

        # tokens are single use
        with self.assertRaises(AuthError) as ctx:
            await crud.reset_password(token, "another1")
        self.assertEqual(ctx.exception.code, "invalid_token")

        with self.assertRaises(AuthError) as ctx:
            await crud.request_password_reset("ghost@example.com")
        self.assertEqual(ctx.exception.code, "user_not_found")

        with self.assertRaises(AuthError) as ctx:
            await crud.request_password_reset("admin@itemku.com")
        self.assertEqual(ctx.exception.code, "user_not_found")

        with self.assertRaises(AuthError) as ctx:
            await crud.request_password_reset("nonsense")
        self.assertEqual(ctx.exception.code, "invalid_email")

    # ---------- Items ----------

    async def test_list_and_get_items(self):
        items = await crud.list_items()
        self.assertEqual(len(items), 21)
        self.assertEqual([i.id for i in items], sorted(i.id for i in items))

        by_name = await crud.list_items("name")
        names = [i.name.lower() for i in by_name]
        self.assertEqual(names, sorted(names))

        with self.assertRaises(ValueError):
            await crud.list_items("price; DROP TABLE items")

        potion = await crud.get_item(3)
        self.assertEqual(potion.type, "potion")
        self.assertEqual(potion.price, 150000)
        self.assertIsNone(await crud.get_item(9999))

    async def test_create_update_delete_item(self):
        item = await crud.create_item(
            "Plasma Pistol", 900000, "halo", "weapon", description="Overcharge it."
        )
        self.assertEqual(item.id, 22)
        self.assertEqual(item.description, "Overcharge it.")
        self.assertIsNotNone(item.created_at)

        self.assertTrue(await crud.update_item(item.id, price=850000, description=""))
        updated = await crud.get_item(item.id)
        self.assertEqual(updated.price, 850000)
        self.assertIsNone(updated.description)

        self.assertFalse(await crud.update_item(item.id))
        self.assertFalse(await crud.update_item(9999, name="Ghost"))
        with self.assertRaises(ValueError):
            await crud.update_item(item.id, stock=3)
        with self.assertRaises(ValueError):
            await crud.update_item(item.id, price=-1)
        with self.assertRaises(ValueError):
            await crud.create_item("Free money", -5, "halo", "tool")

        self.assertTrue(await crud.delete_item(item.id))
        self.assertFalse(await crud.delete_item(item.id))
        self.assertIsNone(await crud.get_item(item.id))

    # ---------- Profiles ----------

    async def test_upsert_and_list_profiles(self):
        user = await self._register()
        profile = await crud.upsert_profile(user.id, "Charles", "0812", "Jakarta")
        self.assertEqual(profile.full_name, "Charles")
        self.assertEqual(profile.address, "Jakarta")
        self.assertGreaterEqual(profile.updated_at, profile.created_at)

        # name change is reflected on the account too
        self.assertEqual((await crud.get_user(user.id)).full_name, "Charles")

        cleared = await crud.upsert_profile(user.id, "Charles", "", None)
        self.assertIsNone(cleared.phone)

        other = await self._register("Dana", "dana@example.com")
        profiles = await crud.list_profiles()
        self.assertEqual({p.id for p in profiles}, {user.id, other.id})

    # ---------- Notifications ----------

    async def test_notifications(self):
        user = await self._register()
        self.assertEqual(await crud.list_notifications(user.id), [])

        first = await crud.add_notification(user.id, "info", "Hello", "First")
        second = await crud.add_notification(user.id, "success", "Bought", "Second")
        await crud.add_notification("admin", "info", "Admin", "Not yours")

        listed = await crud.list_notifications(user.id)
        self.assertEqual([n.id for n in listed], [second.id, first.id])
        self.assertFalse(any(n.read for n in listed))

        with self.assertRaises(ValueError):
            await crud.add_notification(user.id, "warning", "Nope", "bad type")

        self.assertTrue(await crud.mark_notification_read(first.id))
        self.assertFalse(await crud.mark_notification_read("missing"))
        self.assertEqual(await crud.mark_all_notifications_read(user.id), 1)
        self.assertEqual(await crud.mark_all_notifications_read(user.id), 0)
        self.assertTrue(all(n.read for n in await crud.list_notifications(user.id)))

        # the admin's notification is untouched
        self.assertFalse((await crud.list_notifications("admin"))[0].read)

    # ---------- Purchase history ----------

    async def test_purchases(self):
        user = await self._register()
        lines = [
            PurchaseItem(id="3", name="Potion of Ultimate Healing", price=150000, quantity=2, image=""),
            PurchaseItem(id="1", name="Daedric Sword", price=2500000, quantity=1, image=""),
        ]
        older = await crud.add_purchase(
            user.id, lines[:1], 375000, "gopay", order_date=datetime(2025, 1, 1, 10, 0)
        )
        newer = await crud.add_purchase(
            user.id, lines, 1862500, "credit-card", order_date=datetime(2025, 2, 1, 10, 0)
        )

        listed = await crud.list_purchases(user.id)
        self.assertEqual([p.id for p in listed], [newer.id, older.id])
        self.assertEqual(listed[0].items, tuple(lines))
        self.assertEqual(listed[0].status, "pending")
        self.assertIsNone(listed[0].delivery_date)

        self.assertTrue(await crud.update_purchase_status(older.id, "delivered"))
        delivered = next(p for p in await crud.list_purchases(user.id) if p.id == older.id)
        self.assertEqual(delivered.status, "delivered")
        self.assertIsNotNone(delivered.delivery_date)

        with self.assertRaises(ValueError):
            await crud.update_purchase_status(older.id, "lost")
        with self.assertRaises(ValueError):
            await crud.add_purchase(user.id, lines, 1, "gopay", status="lost")
        self.assertFalse(await crud.update_purchase_status("missing", "shipped"))

    # ---------- Promotions ----------

    async def test_seeded_promotions(self):
        promotions = await crud.list_promotions()
        self.assertEqual(len(promotions), 6)

        active = await crud.list_active_promotions(date(2025, 6, 1))
        self.assertEqual([p.id for p in active], [1, 2, 3, 4, 6])
        flash = next(p for p in active if p.id == 4)
        self.assertEqual(flash.discount, 50)
        self.assertEqual(flash.target_type, "weapon")

        self.assertEqual(await crud.list_active_promotions(date(2023, 12, 31)), [])

    async def test_create_update_delete_promotion(self):
        promo = await crud.create_promotion(
            "Minecraft Week",
            "Blocks for less",
            15,
            date(2025, 3, 1),
            date(2025, 3, 7),
            target_category="minecraft",
        )
        self.assertEqual(promo.target_category, "minecraft")
        self.assertIsNone(promo.target_type)
        self.assertTrue(promo.is_running(date(2025, 3, 4)))
        self.assertFalse(promo.is_running(date(2025, 3, 8)))

        self.assertTrue(await crud.update_promotion(promo.id, is_active=False, discount=30))
        updated = await crud.get_promotion(promo.id)
        self.assertFalse(updated.is_active)
        self.assertEqual(updated.discount, 30)

        with self.assertRaises(ValueError):
            await crud.update_promotion(promo.id, discount=150)
        with self.assertRaises(ValueError):
            await crud.update_promotion(promo.id, end_date=date(2025, 2, 1))
        with self.assertRaises(ValueError):
            await crud.update_promotion(promo.id, colour="red")
        with self.assertRaises(ValueError):
            await crud.create_promotion("Bad", "", 10, date(2025, 3, 7), date(2025, 3, 1))
        self.assertFalse(await crud.update_promotion(9999, discount=5))

        self.assertTrue(await crud.delete_promotion(promo.id))
        self.assertIsNone(await crud.get_promotion(promo.id))

    # ---------- Stats ----------

    async def test_table_counts(self):
        user = await self._register()
        await crud.add_notification(user.id, "info", "Hi", "there")
        counts = await crud.table_counts()
        self.assertEqual(
            counts,
            {"items": 21, "profiles": 1, "notifications": 1, "purchase_history": 0},
        )

    async def test_schema_is_stamped_and_seeded_once(self):
        async with db_database.connect() as conn:
            cur = await conn.execute("PRAGMA user_version;")
            self.assertEqual((await cur.fetchone())[0], db_database.SCHEMA_VERSION)
            await cur.close()

        # a later process opening the same file must not seed again
        db_database._initialized = False
        self.assertEqual(len(await crud.list_items()), 21)

    async def test_status(self):
        info = await db_database.status()
        self.assertTrue(info["online"])
        self.assertIsNone(info["error"])
        self.assertEqual(info["path"], self.db_path)
        self.assertEqual(info["schema_version"], db_database.SCHEMA_VERSION)
        self.assertGreater(info["size"], 0)

    async def test_newer_schema_is_refused(self):
        async with db_database.connect() as conn:
            await conn.execute(f"PRAGMA user_version = {db_database.SCHEMA_VERSION + 1};")
            await conn.commit()
        db_database._initialized = False
        with self.assertRaises(RuntimeError):
            async with db_database.connect():
                pass


if __name__ == "__main__":
    unittest.main()

import os
import sys
import tempfile
import unittest
from datetime import datetime

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from contexts.auth import (  # noqa: E402
    ADMIN_SESSION_KEY,
    SAVED_ACCOUNTS_KEY,
    USER_SESSION_KEY,
    AuthContext,
)
from contexts.cart import CartContext, cart_key  # noqa: E402
from contexts.preferences import PreferencesContext  # noqa: E402
from db import crud  # noqa: E402
from db import database as db_database  # noqa: E402
from db.errors import AuthError, NotAuthenticatedError  # noqa: E402
from utils import config  # noqa: E402
from utils.state import GlobalState  # noqa: E402
from utils.storage import KeyValueStore  # noqa: E402


class ContextTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        db_database.DB_PATH = os.path.join(self.temp_dir.name, "test.sqlite")
        db_database._initialized = False
        self.store_path = os.path.join(self.temp_dir.name, "store.json")
        self.store = KeyValueStore(self.store_path)

    def tearDown(self):
        self.temp_dir.cleanup()

    def reopen_store(self) -> KeyValueStore:
        return KeyValueStore(self.store_path)


class AuthContextTestCase(ContextTestCase):
    async def test_admin_login_and_restore(self):
        auth = AuthContext(self.store)
        user = await auth.login(config.ADMIN_EMAIL, config.ADMIN_PASSWORD)
        self.assertTrue(user.is_admin)
        self.assertTrue(auth.is_admin)
        self.assertIn(ADMIN_SESSION_KEY, self.reopen_store())

        restored = AuthContext(self.reopen_store())
        self.assertTrue((await restored.restore()).is_admin)

    async def test_admin_login_with_wrong_password_is_rejected(self):
        auth = AuthContext(self.store)
        with self.assertRaises(AuthError) as ctx:
            await auth.login(config.ADMIN_EMAIL, "not-the-password")
        self.assertEqual(
            str(ctx.exception),
            "The email or password you entered is incorrect. Please check again.",
        )
        self.assertIsNone(auth.user)

    async def test_register_then_login_and_restore(self):
        auth = AuthContext(self.store)
        registered = await auth.register("Rina", "rina@example.com", "secret1", "secret1")
        # registering does not sign in
        self.assertIsNone(auth.user)
        self.assertEqual(auth.saved_accounts[0].email, "rina@example.com")

        user = await auth.login(" rina@example.com ", "secret1", save_account=True)
        self.assertEqual(user.id, registered.id)
        self.assertEqual(self.reopen_store().get(USER_SESSION_KEY), user.id)

        restored = AuthContext(self.reopen_store())
        self.assertEqual((await restored.restore()).id, user.id)
        self.assertEqual(
            [a.email for a in restored.saved_accounts], ["rina@example.com"]
        )

        auth.logout()
        self.assertIsNone(auth.user)
        self.assertNotIn(USER_SESSION_KEY, self.reopen_store())
        self.assertIsNone(await AuthContext(self.reopen_store()).restore())

    async def test_switch_account_keeps_saved_accounts(self):
        auth = AuthContext(self.store)
        await auth.register("Rina", "rina@example.com", "secret1")
        await auth.login("rina@example.com", "secret1", save_account=True)

        auth.switch_account()
        self.assertFalse(auth.is_authenticated)
        self.assertEqual([a.email for a in auth.saved_accounts], ["rina@example.com"])
        self.assertIsNone(await AuthContext(self.reopen_store()).restore())

    async def test_stale_session_is_discarded(self):
        self.store.set(USER_SESSION_KEY, "deleted-user")
        auth = AuthContext(self.store)
        self.assertIsNone(await auth.restore())
        self.assertNotIn(USER_SESSION_KEY, self.store)

    async def test_broken_admin_session_is_discarded(self):
        self.store.set(ADMIN_SESSION_KEY, {"email": "intruder@example.com"})
        auth = AuthContext(self.store)
        self.assertIsNone(await auth.restore())
        self.assertNotIn(ADMIN_SESSION_KEY, self.store)

    async def test_friendly_error_messages(self):
        auth = AuthContext(self.store)
        await auth.register("Rina", "rina@example.com", "secret1")

        with self.assertRaises(AuthError) as ctx:
            await auth.register("Rina", "rina@example.com", "secret1")
        self.assertEqual(
            str(ctx.exception),
            "This email is already registered. Please use another email or login.",
        )
        self.assertEqual(ctx.exception.code, "user_exists")

        with self.assertRaises(AuthError) as ctx:
            await auth.register("Bad", "bad-email", "secret1")
        self.assertEqual(ctx.exception.code, "invalid_email")

        with self.assertRaises(AuthError) as ctx:
            await auth.register("Weak", "weak@example.com", "123")
        self.assertEqual(str(ctx.exception), "Password must have at least 6 characters.")

        with self.assertRaises(AuthError) as ctx:
            await auth.register("Mismatch", "m@example.com", "secret1", "secret2")
        self.assertEqual(ctx.exception.code, "password_mismatch")

        with self.assertRaises(AuthError) as ctx:
            await auth.register("   ", "blank@example.com", "secret1")
        self.assertEqual(ctx.exception.code, "missing_name")

        with self.assertRaises(AuthError) as ctx:
            await auth.login("rina@example.com", "wrong-password")
        self.assertEqual(ctx.exception.code, "invalid_credentials")

        with self.assertRaises(AuthError) as ctx:
            await auth.reset_password("ghost@example.com")
        self.assertEqual(
            str(ctx.exception),
            "Email not found. Please check again or register a new account.",
        )

    async def test_saved_accounts_are_capped_and_most_recent_first(self):
        auth = AuthContext(self.store)
        for i in range(7):
            await auth.register(f"User {i}", f"user{i}@example.com", "secret1")
        self.assertEqual(len(auth.saved_accounts), config.MAX_SAVED_ACCOUNTS)
        self.assertEqual(auth.saved_accounts[0].email, "user6@example.com")
        self.assertEqual(auth.saved_accounts[-1].email, "user2@example.com")

        # signing in again moves the account to the front without duplicating it
        await auth.login("user4@example.com", "secret1", save_account=True)
        emails = [a.email for a in auth.saved_accounts]
        self.assertEqual(emails[0], "user4@example.com")
        self.assertEqual(len(emails), len(set(emails)))

        auth.remove_saved_account("user4@example.com")
        self.assertNotIn(
            "user4@example.com",
            [a["email"] for a in self.reopen_store().get(SAVED_ACCOUNTS_KEY)],
        )

    async def test_password_reset_and_change(self):
        auth = AuthContext(self.store)
        await auth.register("Rina", "rina@example.com", "secret1")

        token = await auth.reset_password("rina@example.com")
        await auth.complete_password_reset(token, "resetpw")
        with self.assertRaises(AuthError) as ctx:
            await auth.complete_password_reset(token, "again12")
        self.assertEqual(ctx.exception.code, "invalid_token")

        with self.assertRaises(NotAuthenticatedError):
            await auth.change_password("changed1", "changed1")

        await auth.login("rina@example.com", "resetpw")
        with self.assertRaises(AuthError) as ctx:
            await auth.change_password("changed1", "changed2")
        self.assertEqual(ctx.exception.code, "password_mismatch")
        with self.assertRaises(AuthError) as ctx:
            await auth.change_password("abc", "abc")
        self.assertEqual(ctx.exception.code, "weak_password")

        await auth.change_password("changed1", "changed1")
        auth.logout()
        await auth.login("rina@example.com", "changed1")

    async def test_admin_password_is_not_changed_here(self):
        auth = AuthContext(self.store)
        await auth.login(config.ADMIN_EMAIL, config.ADMIN_PASSWORD)
        with self.assertRaises(AuthError) as ctx:
            await auth.change_password("changed1", "changed1")
        self.assertEqual(ctx.exception.code, "admin_password")


class CartContextTestCase(ContextTestCase):
    async def test_add_update_remove_and_totals(self):
        potion = await crud.get_item(3)
        sword = await crud.get_item(1)
        cart = CartContext(self.store, "u1")

        cart.add_to_cart(potion)
        cart.add_to_cart(potion, 2)
        cart.add_to_cart(sword)
        self.assertEqual(len(cart), 2)
        self.assertEqual(cart.get(3).quantity, 3)
        self.assertEqual(cart.get_total_items(), 4)
        self.assertEqual(cart.get_total_price(), 3 * 150_000 + 2_500_000)

        with self.assertRaises(ValueError):
            cart.add_to_cart(potion, 0)

        cart.update_quantity(3, 1)
        self.assertEqual(cart.get(3).quantity, 1)
        cart.update_quantity(3, 0)
        self.assertIsNone(cart.get(3))

        cart.remove_from_cart(1)
        self.assertEqual(cart.items, [])
        self.assertEqual(cart.get_total_price(), 0)

    async def test_cart_is_persisted_per_owner(self):
        potion = await crud.get_item(3)
        cart = CartContext(self.store, "u1")
        cart.add_to_cart(potion, 2)

        cart.bind("u2")
        self.assertEqual(cart.items, [])
        cart.bind("u1")
        self.assertEqual(cart.get(3).quantity, 2)

        reopened = CartContext(self.reopen_store(), "u1")
        self.assertEqual(reopened.get(3).quantity, 2)

        reopened.clear_cart()
        self.assertEqual(CartContext(self.reopen_store(), "u1").items, [])

    async def test_unreadable_lines_are_dropped(self):
        self.store.set(
            cart_key("u1"),
            [
                {"id": 3, "name": "Potion", "price": 150000, "image": "",
                 "category": "skyrim", "type": "potion", "quantity": 1},
                {"id": 4, "bogus": True},
                {"id": 5, "name": "Zero", "price": 1, "image": "",
                 "category": "halo", "type": "tool", "quantity": 0},
            ],
        )
        cart = CartContext(self.store, "u1")
        self.assertEqual([i.id for i in cart.items], [3])


class PreferencesContextTestCase(ContextTestCase):
    def test_theme_choice(self):
        prefs = PreferencesContext(self.store)
        self.assertEqual(prefs.theme, "system")
        self.assertIn(prefs.toolkit_theme(), ("textual-dark", "textual-light"))

        self.assertEqual(prefs.set_theme("light"), "textual-light")
        self.assertEqual(PreferencesContext(self.reopen_store()).theme, "light")
        self.assertEqual(prefs.set_theme("dark"), "textual-dark")

        with self.assertRaises(ValueError):
            prefs.set_theme("solarized")

    def test_unknown_stored_theme_falls_back_to_system(self):
        self.store.set("itemku_theme", "neon")
        self.assertEqual(PreferencesContext(self.store).theme, "system")

    def test_settings_save_and_load(self):
        prefs = PreferencesContext(self.store)
        self.assertTrue(prefs.settings.email_notifications)
        self.assertFalse(prefs.settings.marketing_emails)

        prefs.update(marketing_emails=True, public_profile=False)
        # not persisted until saved
        self.assertFalse(PreferencesContext(self.reopen_store()).settings.marketing_emails)

        prefs.save()
        loaded = PreferencesContext(self.reopen_store()).settings
        self.assertTrue(loaded.marketing_emails)
        self.assertFalse(loaded.public_profile)
        self.assertTrue(loaded.push_notifications)

        with self.assertRaises(TypeError):
            prefs.update(dark_mode=True)


class GlobalStateTestCase(ContextTestCase):
    async def asyncSetUp(self):
        self.state = GlobalState(store=self.store)
        await self.state.auth.register("Rina", "rina@example.com", "secret1")
        await self.state.auth.login("rina@example.com", "secret1")
        self.state.start_session()

    async def test_place_order(self):
        self.state.cart.add_to_cart(await crud.get_item(3), 2)
        self.state.cart.add_to_cart(await crud.get_item(1))

        purchase = await self.state.place_order(
            "credit-card", when=datetime(2025, 6, 1, 12, 0)
        )
        # running promotions do not change the bill: line items plus 25% tax
        self.assertEqual(purchase.total, 3_500_000)
        self.assertEqual(purchase.total, round((2 * 150_000 + 2_500_000) * 1.25))
        self.assertEqual(purchase.status, "pending")
        self.assertEqual(purchase.payment_method, "credit-card")
        self.assertEqual({i.id for i in purchase.items}, {"1", "3"})
        self.assertEqual(self.state.cart.items, [])

        purchases = await self.state.purchases.purchases()
        self.assertEqual([p.id for p in purchases], [purchase.id])

        notifications = await self.state.notifications.notifications()
        self.assertEqual(notifications[0].title, "Purchase Successful")
        self.assertIn("Rp 3.500.000", notifications[0].message)
        self.assertEqual(await self.state.notifications.get_unread_count(), 1)

    async def test_place_order_rejections(self):
        with self.assertRaises(ValueError):
            await self.state.place_order("credit-card")

        self.state.cart.add_to_cart(await crud.get_item(3))
        with self.assertRaises(ValueError):
            await self.state.place_order("bitcoin")
        self.assertEqual(len(self.state.cart.items), 1)

        self.state.end_session()
        with self.assertRaises(NotAuthenticatedError):
            await self.state.place_order("gopay")

    async def test_announce_delivery(self):
        notification = await self.state.announce_delivery()
        self.assertEqual(notification.title, "Items Added to Game")
        self.assertEqual(notification.type, "info")

        self.state.end_session()
        self.assertIsNone(await self.state.announce_delivery())

    async def test_notifications_mark_read(self):
        notifications = self.state.notifications
        first = await notifications.add_notification("info", "One", "first")
        await notifications.add_notification("error", "Two", "second")
        self.assertEqual(await notifications.get_unread_count(), 2)

        await notifications.mark_as_read(first.id)
        self.assertEqual(await notifications.get_unread_count(), 1)
        self.assertEqual(await notifications.mark_all_as_read(), 1)
        self.assertEqual(await notifications.get_unread_count(), 0)

        self.state.end_session()
        self.assertEqual(await notifications.notifications(), [])
        with self.assertRaises(NotAuthenticatedError):
            await notifications.add_notification("info", "Three", "third")

    async def test_pending_purchases_are_completed_once(self):
        self.state.cart.add_to_cart(await crud.get_item(4))
        await self.state.place_order("gopay")

        self.assertEqual(await self.state.purchases.complete_pending(), 1)
        purchases = await self.state.purchases.purchases()
        self.assertEqual(purchases[0].status, "delivered")
        self.assertIsNotNone(purchases[0].delivery_date)

        # later orders wait for the next session
        self.state.cart.add_to_cart(await crud.get_item(4))
        await self.state.place_order("gopay")
        self.assertEqual(await self.state.purchases.complete_pending(), 0)

        self.state.start_session()
        self.assertEqual(await self.state.purchases.complete_pending(), 1)

    async def test_sessions_bind_the_cart(self):
        self.state.cart.add_to_cart(await crud.get_item(4))
        uid = self.state.uid

        self.state.end_session()
        self.assertIsNone(self.state.uid)
        self.assertEqual(self.state.cart.items, [])

        await self.state.auth.login("rina@example.com", "secret1")
        self.state.start_session()
        self.assertEqual(self.state.uid, uid)
        self.assertEqual(self.state.cart.get(4).quantity, 1)


if __name__ == "__main__":
    unittest.main()

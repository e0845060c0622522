from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user logs out
    """

    bubble = True


class UserLoginMessage(Message):
    """
    Fired when user logged in, so the screen can refresh
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Fired whenever a cart line is added, changed or removed.
    Will trigger a refresh of cart screen and the sidebar badge

    If posted from outside CartScreen, make sure to post at App level
    """

    bubble = True


class NotificationsChangedMessage(Message):
    """
    Fired after a notification is added or marked as read
    """

    bubble = True


class NewPurchaseMessage(Message):
    """
    Fired when a new purchase is recorded.
    Listened to by purchase history
    """

    bubble = True


class CatalogChangedMessage(Message):
    """
    Fired by the back-office when items or promotions change
    """

    bubble = True


class ThemeChangedMessage(Message):
    bubble = True

    def __init__(self, theme: str) -> None:
        super().__init__()
        self.theme = theme


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode

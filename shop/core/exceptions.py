from uuid import UUID


class AuthenticationFailed(Exception):
    """
    Raised when a request carries a missing, malformed, forged or expired
    bearer token.

    Expected Result: 401 Unauthorized
    """
    pass


class InvalidCredentials(AuthenticationFailed):
    """
    Raised on any failed login. Unknown email and wrong password share this
    one message so the response never reveals which emails are registered.
    """

    def __init__(self):
        super().__init__("invalid email or password")


class EmailAlreadyExists(Exception):
    """
    Raised when registering an email that is already on file.

    Expected Result: 409 Conflict
    """

    def __init__(self):
        super().__init__("email already exists")


class UserNotFound(Exception):
    """Expected Result: 404 Not Found"""

    def __init__(self):
        super().__init__("user not found")


class ItemNotFound(Exception):
    """
    Raised by the item catalog and the item directory client when an item id
    does not exist.

    Expected Result: 404 Not Found on direct lookups
    """

    def __init__(self, item_id: UUID | None = None):
        self.item_id = item_id
        super().__init__("item not found")


class ItemDirectoryError(Exception):
    """
    Raised when the item directory cannot be reached or answers with
    something other than an item or a 404: timeouts, connection failures,
    unexpected statuses and undecodable bodies.

    Expected Result: 500 Internal Server Error (details only in the logs)
    """
    pass


class StockConflict(Exception):
    """
    Raised by the purchase store when the conditional stock decrement for a
    line affected no rows. The surrounding transaction has been rolled back.
    """

    def __init__(self, item_id: UUID):
        self.item_id = item_id
        super().__init__(f"conditional stock decrement failed for item {item_id}")


class DuplicateIdempotencyKey(Exception):
    """
    Raised by the purchase store when another purchase already holds the
    same (user_id, idempotency_key) pair. The transaction has been rolled back.
    """
    pass


class PurchaseConflict(Exception):
    """
    Base class for well-formed purchase requests whose business precondition
    failed.

    Expected Result: 409 Conflict
    """
    pass


class PurchaseItemNotFound(PurchaseConflict):
    """One of the requested items does not exist in the item directory."""

    def __init__(self, item_id: UUID):
        self.item_id = item_id
        super().__init__("one or more items not found")


class InsufficientStockError(PurchaseConflict):
    """
    Raised when a requested quantity exceeds the available stock, either at
    the advisory pre-check or at the conditional decrement.
    """

    def __init__(self, item_id: UUID):
        self.item_id = item_id
        super().__init__("stock for an item is not sufficient")

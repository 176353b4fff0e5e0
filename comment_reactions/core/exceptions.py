"""
Exceptions raised by the reactions services
"""


class ReactionError(Exception):
    """
    Base class for all reaction errors
    """
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class DataAccessError(ReactionError):
    """
    Exception raised when the reaction store cannot be read or written,
    or when a stored row does not decode into the expected shape
    """
    def __init__(self, message: str = "Reaction store is unavailable"):
        super().__init__(message)


class UnknownUserError(ReactionError):
    """
    Exception raised when the reacting user is not in the user directory
    """
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class InvalidReactionTypeError(ReactionError):
    """
    Exception raised when a reaction type is empty or too long
    """
    def __init__(self, message: str = "Reaction type must not be empty"):
        super().__init__(message)

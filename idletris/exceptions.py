# Idletris - Multi-board falling-block simulator
# exceptions.py - Custom exceptions for the session API

class IdletrisError(Exception):
    """Base class for Idletris errors."""
    pass

class BoardNotFoundError(IdletrisError, IndexError):
    """Raised when an operation addresses a board index the session does not have."""

    def __init__(self, index: int, board_count: int):
        super().__init__(f"No board at index {index} (session has {board_count})")
        self.index = index
        self.board_count = board_count

class CapsuleWorkflowError(Exception):
    """Base exception for the capsule workflow engine."""

    pass


class NotFoundError(CapsuleWorkflowError):
    """Raised when a referenced record does not exist."""

    pass


class ItemNotFoundError(NotFoundError):
    """Raised when a relationship item does not exist."""

    def __init__(self, item_id):
        self.item_id = item_id
        super().__init__(f"Item {item_id} not found")


class CapsuleNotFoundError(NotFoundError):
    """Raised when a capsule does not exist."""

    def __init__(self, capsule_id):
        self.capsule_id = capsule_id
        super().__init__(f"Capsule {capsule_id} not found")


class InvalidTransitionError(CapsuleWorkflowError):
    """Raised when the requested action has no edge from the item's current stage."""

    def __init__(self, current_stage: str, action: str, reason: str = ""):
        self.current_stage = current_stage
        self.action = action
        self.reason = reason
        message = f"Cannot {action} an item in stage '{current_stage}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class PreconditionNotMetError(CapsuleWorkflowError):
    """Raised when the edge exists but its gating condition is not satisfied yet.

    Expected outcome while one party waits on the other. Not a subclass of
    InvalidTransitionError.
    """

    def __init__(self, stage: str, action: str, reason: str):
        self.stage = stage
        self.action = action
        self.reason = reason
        super().__init__(f"Cannot {action} yet from stage '{stage}': {reason}")


class NotCapsuleMemberError(CapsuleWorkflowError):
    """Raised when a user id maps to neither slot of a capsule."""

    def __init__(self, capsule_id, user_id: str):
        self.capsule_id = capsule_id
        self.user_id = user_id
        super().__init__(f"User {user_id} is not a member of capsule {capsule_id}")

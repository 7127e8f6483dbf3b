"""Exception taxonomy shared by the triage, scheduling and ledger engines."""


class WordCoachError(Exception):
    """Base class for every error raised by the engines."""


class PreconditionError(WordCoachError):
    """The caller broke a contract. Not recoverable at runtime."""


class ConceptNotInDeck(PreconditionError):
    def __init__(self, user_id: str, concept_id: int, direction: str):
        super().__init__(f"Concept {concept_id} ({direction}) is not in the deck of user {user_id}")
        self.user_id = user_id
        self.concept_id = concept_id
        self.direction = direction


class NotQueueHead(PreconditionError):
    def __init__(self, concept_id: int, head_id):
        super().__init__(f"Concept {concept_id} is not the head of the triage queue (head: {head_id})")
        self.concept_id = concept_id
        self.head_id = head_id


class NoActiveSession(PreconditionError):
    def __init__(self, user_id: str):
        super().__init__(f"No triage queue loaded for user {user_id}")
        self.user_id = user_id


class PolicyRejection(WordCoachError):
    """Expected rejection the presentation layer turns into guidance."""


class QuotaExceeded(PolicyRejection):
    def __init__(self, user_id: str, quota: int, premium: bool):
        super().__init__(f"Daily selection quota of {quota} reached for user {user_id}")
        self.user_id = user_id
        self.quota = quota
        self.premium = premium


class EmptyDeckError(PolicyRejection):
    def __init__(self, user_id: str):
        super().__init__("Select at least one word before studying")
        self.user_id = user_id


class PackageNotFound(PolicyRejection):
    def __init__(self, package_id: str):
        super().__init__(f"Package {package_id} has no concepts")
        self.package_id = package_id


class StoreError(WordCoachError):
    """The persistence layer failed."""

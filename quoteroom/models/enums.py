import enum


class RfqStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    PARTIALLY_QUOTED = "PARTIALLY_QUOTED"
    FULLY_QUOTED = "FULLY_QUOTED"
    QUOTE_ACCEPTED = "QUOTE_ACCEPTED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class RfqTransitionType(str, enum.Enum):
    SEND = "SEND"
    MARK_PARTIALLY_QUOTED = "MARK_PARTIALLY_QUOTED"
    MARK_FULLY_QUOTED = "MARK_FULLY_QUOTED"
    ACCEPT_QUOTE = "ACCEPT_QUOTE"
    REJECT_QUOTE = "REJECT_QUOTE"
    CANCEL = "CANCEL"
    EXPIRE = "EXPIRE"


class SupplierResponseStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUBMITTED = "SUBMITTED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    DECLINED = "DECLINED"


class QuoteStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    REVISED = "REVISED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class PriceClassification(str, enum.Enum):
    BEST = "BEST"
    COMPETITIVE = "COMPETITIVE"
    MODERATE = "MODERATE"
    HIGH = "HIGH"


class ClientQuoteStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SENT_TO_CLIENT = "SENT_TO_CLIENT"
    APPROVED = "APPROVED"


class EventStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class LineItemIssueKind(str, enum.Enum):
    ORPHAN = "ORPHAN"
    DUPLICATE = "DUPLICATE"

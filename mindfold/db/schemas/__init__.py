"""
Domain-split Pydantic schemas with a single aggregator.

Callers import `from mindfold.db import schemas` and use
`schemas.JournalEntry`, `schemas.CheckoutRequest`, ...
"""

from .profiles import Profile, UserProfile, RegisterRequest, MeResponse, UserSettingsUpdate
from .journal import JournalEntryCreate, JournalEntry, VisibilityUpdate
from .chat import Conversation, ChatMessage, ChatRequest, ChatResponse, ConversationDeleteRequest
from .billing import (
    SubscriptionPlan,
    UserSubscription,
    PaymentHistory,
    ActivateSubscriptionRequest,
    CheckoutRequest,
    UsageRequest,
)
from .therapists import (
    TherapistService,
    TherapistServiceInput,
    TherapistProfile,
    TherapistSettingsUpdate,
    TherapistPatient,
    HireRequest,
    UnhireRequest,
    Review,
    ReviewCreate,
)
from .care import (
    SessionNote,
    SessionRequest,
    SessionWithNotes,
    SessionCreate,
    SessionUpdate,
    SessionNoteCreate,
    Message,
    MessageCreate,
    Prescription,
    PrescriptionCreate,
)
from .content import LandingSection, LandingSectionUpdate, VerificationUpdate
from .audits import AuditLogBase, AuditLogCreate, AuditLog

__all__ = [
    # accounts
    "Profile",
    "UserProfile",
    "RegisterRequest",
    "MeResponse",
    "UserSettingsUpdate",
    # journal/chat
    "JournalEntryCreate",
    "JournalEntry",
    "VisibilityUpdate",
    "Conversation",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "ConversationDeleteRequest",
    # billing
    "SubscriptionPlan",
    "UserSubscription",
    "PaymentHistory",
    "ActivateSubscriptionRequest",
    "CheckoutRequest",
    "UsageRequest",
    # therapists
    "TherapistService",
    "TherapistServiceInput",
    "TherapistProfile",
    "TherapistSettingsUpdate",
    "TherapistPatient",
    "HireRequest",
    "UnhireRequest",
    "Review",
    "ReviewCreate",
    # care
    "SessionNote",
    "SessionRequest",
    "SessionWithNotes",
    "SessionCreate",
    "SessionUpdate",
    "SessionNoteCreate",
    "Message",
    "MessageCreate",
    "Prescription",
    "PrescriptionCreate",
    # content/admin
    "LandingSection",
    "LandingSectionUpdate",
    "VerificationUpdate",
    # audit
    "AuditLogBase",
    "AuditLogCreate",
    "AuditLog",
]

"""
Domain-split SQLAlchemy models with a single aggregator.

Exposes `Base`, `now_utc`, and all ORM classes so callers can use
`from mindfold.db import models` and `models.JournalEntry`.
"""

from .base import Base, now_utc  # re-export

# Domain models
from .profiles import Profile, UserProfile
from .therapists import TherapistProfile, TherapistService, TherapistReview, TherapistPatient
from .care import SessionRequest, SessionNote, TherapistMessage, Prescription
from .journal import JournalEntry, JournalChatConversation, JournalChatMessage
from .billing import (
    SubscriptionPlan,
    UserSubscription,
    UsageTracking,
    PaymentHistory,
    BillingTransaction,
    WebhookEvent,
)
from .content import LandingPageSection
from .audit import AuditLog

__all__ = [
    # base
    "Base",
    "now_utc",
    # accounts
    "Profile",
    "UserProfile",
    # therapists
    "TherapistProfile",
    "TherapistService",
    "TherapistReview",
    "TherapistPatient",
    # care
    "SessionRequest",
    "SessionNote",
    "TherapistMessage",
    "Prescription",
    # journal
    "JournalEntry",
    "JournalChatConversation",
    "JournalChatMessage",
    # billing
    "SubscriptionPlan",
    "UserSubscription",
    "UsageTracking",
    "PaymentHistory",
    "BillingTransaction",
    "WebhookEvent",
    # content/audit
    "LandingPageSection",
    "AuditLog",
]

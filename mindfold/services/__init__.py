"""Domain services: AI analysis, usage metering, subscriptions, payments, storage, reports and email."""

"""
Plans, subscription status, activation, checkout and payment history.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from mindfold import audit
from mindfold.api.deps import get_current_profile
from mindfold.db import models, schemas
from mindfold.db.database import get_db
from mindfold.db.repositories import billing as billing_repo
from mindfold.services import dodo_client, subscription_service, usage_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["billing"])

BILLING_CYCLES = ("monthly", "yearly")


@router.get("/plans", response_model=List[schemas.SubscriptionPlan])
def list_plans(db: Session = Depends(get_db)):
    return billing_repo.list_active_plans(db)


@router.get("/subscription")
def get_subscription(
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    subscription = billing_repo.get_active_subscription(db, profile.id)
    if subscription is None:
        return {"hasSubscription": False, "subscription": None, "usage": None}

    plan = billing_repo.get_plan(db, subscription.plan_name)
    summary = usage_service.usage_summary(db, profile.id) or {}
    return {
        "hasSubscription": True,
        "subscription": schemas.UserSubscription.model_validate(subscription).model_dump(mode="json"),
        "plan": schemas.SubscriptionPlan.model_validate(plan).model_dump(mode="json") if plan else None,
        "usage": summary.get("usage"),
        "limits": summary.get("limits"),
    }


@router.post("/subscription/activate")
def activate_subscription(
    payload: schemas.ActivateSubscriptionRequest,
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    if payload.billingCycle not in BILLING_CYCLES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="billingCycle must be monthly or yearly")
    try:
        subscription = subscription_service.activate_from_request(
            db,
            user_id=profile.id,
            plan_name=payload.planName,
            billing_cycle=payload.billingCycle,
            dodo_subscription_id=payload.subscriptionId,
        )
    except subscription_service.PlanNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")

    audit.log(
        db,
        action=audit.AuditAction.SUBSCRIPTION_ACTIVATE,
        target_type="subscription",
        target_id=subscription.id,
        actor_user_id=profile.id,
        metadata={"plan_name": subscription.plan_name, "billing_cycle": subscription.billing_cycle},
    )
    return {"success": True, "plan": subscription.plan_name, "status": "active"}


@router.post("/checkout")
def create_checkout(
    payload: schemas.CheckoutRequest,
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    if not payload.planId or not payload.billingCycle:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="planId and billingCycle are required")

    plan = billing_repo.get_plan(db, payload.planId, active_only=True)
    if plan is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")
    if not plan.dodo_product_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="No Dodo product configured for this plan",
        )
    if not profile.email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User email not found")

    try:
        session = dodo_client.create_checkout_session(
            product_id=plan.dodo_product_id,
            email=profile.email,
            name=profile.full_name or profile.email.split("@")[0],
            metadata={
                "user_id": str(profile.id),
                "plan_name": plan.plan_name,
                "billing_cycle": payload.billingCycle,
            },
        )
    except dodo_client.CheckoutError:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to create checkout session")
    return {"checkout_url": session.get("checkout_url")}


@router.get("/billing/history", response_model=List[schemas.PaymentHistory])
def billing_history(
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    return billing_repo.list_payments(db, profile.id)

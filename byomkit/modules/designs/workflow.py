"""
Approval Workflow
=================

Design lifecycle: draft -> pending_approval -> approved | rejected.
A rejected design is editable again and can be resubmitted.

Every transition function takes a Design and returns an updated copy. The
caller persists the result; a raised error means nothing changed.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ...core.exceptions import (
    AlreadySubmitted, ConflictError, InvalidTransition, ValidationError,
)
from ..customizer.models import Configuration, PlacementZone
from ..pricing.engine import PriceBreakdown, policy_breakdown, to_minor_units

logger = logging.getLogger(__name__)


class DesignStatus(str, Enum):
    DRAFT = 'draft'
    PENDING_APPROVAL = 'pending_approval'
    APPROVED = 'approved'
    REJECTED = 'rejected'


TRANSITIONS = {
    DesignStatus.DRAFT: {DesignStatus.PENDING_APPROVAL},
    DesignStatus.REJECTED: {DesignStatus.PENDING_APPROVAL},
    DesignStatus.PENDING_APPROVAL: {DesignStatus.APPROVED, DesignStatus.REJECTED},
    DesignStatus.APPROVED: set(),
}

EDITABLE_STATUSES = (DesignStatus.DRAFT, DesignStatus.REJECTED)

EMPTY_DESIGN_MESSAGE = 'Please add some customization (text or assets) to your design'


def _now():
    return datetime.now().isoformat()


@dataclass
class Design:
    id: Optional[int] = None
    user_id: Any = None
    user_email: str = ''
    name: str = ''
    color: str = ''
    size: str = 'M'
    placement: str = PlacementZone.FRONT.value
    text: str = ''
    configuration: Configuration = field(default_factory=Configuration)
    uploaded_image: Optional[str] = None
    status: DesignStatus = DesignStatus.DRAFT
    rejection_reason: Optional[str] = None
    pricing_breakdown: Optional[dict] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    approved_at: Optional[str] = None
    approved_by: Any = None

    @property
    def is_editable(self):
        return self.status in EDITABLE_STATUSES


@dataclass
class CartLine:
    """Purchasable line materialized from an approved design"""
    design_id: int
    name: str
    size: str
    color: str
    unit_price: int
    quantity: int = 1
    breakdown: dict = field(default_factory=dict)
    created_at: str = field(default_factory=_now)

    @property
    def total(self):
        return self.unit_price * self.quantity


def design_fields(config, name=None):
    """Summary columns derived from a Configuration"""
    return {
        'name': name or f"Custom {config.merch_type.value}",
        'color': config.color_name or config.color,
        'size': config.size.value,
        'placement': config.primary_placement().value,
        'text': ' | '.join(text.content for text in config.all_texts()),
    }


def new_design(config, user_id=None, user_email='', name=None, uploaded_image=None):
    now = _now()
    return Design(
        user_id=user_id,
        user_email=user_email or '',
        configuration=config.copy(),
        uploaded_image=uploaded_image,
        created_at=now,
        updated_at=now,
        **design_fields(config, name),
    )


def check_transition(design, target):
    if target not in TRANSITIONS[design.status]:
        raise InvalidTransition(design.status.value, target.value)


def ensure_editable(design):
    if not design.is_editable:
        raise ConflictError(
            f"Design cannot be edited while {design.status.value.replace('_', ' ')}",
            {'design_id': design.id, 'status': design.status.value}
        )


def update_configuration(design, config, name=None):
    """Replace a draft/rejected design's configuration and summary columns"""
    ensure_editable(design)
    return replace(
        design,
        configuration=config.copy(),
        updated_at=_now(),
        **design_fields(config, name or design.name),
    )


def submit_for_approval(design, policy=None):
    """Move a draft (or rejected) design into the approval queue.

    Empty designs are refused with a ValidationError and keep their status.
    A policy-based breakdown snapshot is stored when a policy is available.
    """
    if design.status in (DesignStatus.PENDING_APPROVAL, DesignStatus.APPROVED):
        raise AlreadySubmitted(design.id, design.status.value)
    if not design.configuration.has_content():
        raise ValidationError(EMPTY_DESIGN_MESSAGE)

    check_transition(design, DesignStatus.PENDING_APPROVAL)
    snapshot = design.pricing_breakdown
    if policy is not None:
        snapshot = policy_breakdown(design.configuration, policy).to_snapshot()

    logger.info(f"Design {design.id} submitted for approval (was {design.status.value})")
    return replace(
        design,
        status=DesignStatus.PENDING_APPROVAL,
        rejection_reason=None,
        pricing_breakdown=snapshot,
        updated_at=_now(),
    )


def approve(design, admin_id=None):
    check_transition(design, DesignStatus.APPROVED)
    now = _now()
    return replace(
        design,
        status=DesignStatus.APPROVED,
        rejection_reason=None,
        approved_at=now,
        approved_by=admin_id,
        updated_at=now,
    )


def reject(design, reason=None, admin_id=None):
    check_transition(design, DesignStatus.REJECTED)
    if reason is not None and not isinstance(reason, str):
        raise ValidationError('Rejection reason must be text')
    reason = (reason or '').strip() or None
    return replace(
        design,
        status=DesignStatus.REJECTED,
        rejection_reason=reason,
        approved_at=None,
        approved_by=None,
        updated_at=_now(),
    )


def materialize_cart_line(design, policy, quantity=1):
    """Cart line for an approved design, priced by the global policy"""
    if design.status != DesignStatus.APPROVED:
        raise ConflictError(
            'Only approved designs can be added to the cart',
            {'design_id': design.id, 'status': design.status.value}
        )
    if policy is None:
        raise ConflictError('No active pricing policy is configured')
    if int(quantity) < 1:
        raise ValidationError('Quantity must be at least 1')

    breakdown = policy_breakdown(design.configuration, policy)
    return CartLine(
        design_id=design.id,
        name=design.name,
        size=design.size,
        color=design.color,
        unit_price=breakdown.total,
        quantity=int(quantity),
        breakdown=breakdown.to_dict(),
    )


# ---------------------------------------------------------------------------
# Review breakdown
# ---------------------------------------------------------------------------

STORED_LINES = (
    ('text_cost', 'Text customization fee', 'text'),
    ('image_cost', 'Image customization fee', 'image'),
    ('combination_cost', 'Combination fee', 'combination'),
)


def _line_amount(stored, key, design_id):
    amount = to_minor_units(stored.get(key))
    if amount < 0:
        logger.warning(f"Design {design_id}: negative stored {key} ({amount}) shown as 0")
        return 0
    return amount


def _stored_breakdown(design, stored):
    breakdown = PriceBreakdown()
    breakdown.add('Base customization fee', _line_amount(stored, 'base_fee', design.id), 'base')

    placement_costs = stored.get('placement_costs')
    if isinstance(placement_costs, dict) and placement_costs:
        for zone in placement_costs:
            breakdown.add(
                f"{str(zone).capitalize()} placement fee",
                _line_amount(placement_costs, zone, design.id),
                f"placement:{zone}",
            )
    else:
        breakdown.add('Placement fees', _line_amount(stored, 'placement_total', design.id), 'placement')

    for key, label, code in STORED_LINES:
        amount = _line_amount(stored, key, design.id)
        if amount:
            breakdown.add(label, amount, code)

    if 'total' in stored and to_minor_units(stored.get('total')) != breakdown.total:
        logger.warning(
            f"Design {design.id}: stored total {stored.get('total')} does not match "
            f"line sum {breakdown.total}; showing line sum"
        )
    return breakdown


def _legacy_breakdown(design, policy):
    breakdown = PriceBreakdown()
    breakdown.add('Base customization fee', policy.base_fee, 'base')
    zone = design.placement or PlacementZone.FRONT.value
    breakdown.add(
        f"{str(zone).capitalize()} placement fee",
        policy.placement_fee(zone),
        f"placement:{zone}",
    )
    if design.text:
        breakdown.add('Text customization fee', policy.texts_customization_fee, 'text')
    if design.uploaded_image:
        breakdown.add('Image customization fee', policy.image_customization_fee, 'image')
    return breakdown


def breakdown_for_review(design, policy=None):
    """Line-by-line price shown to the reviewing administrator.

    Prefers the snapshot stored at submission, then recomputes from the
    stored configuration, then falls back to the legacy summary columns.
    """
    stored = design.pricing_breakdown
    if isinstance(stored, dict) and stored:
        return _stored_breakdown(design, stored)
    if policy is None:
        logger.warning(f"Design {design.id}: no stored breakdown and no pricing policy")
        return PriceBreakdown()
    if design.configuration.has_content():
        return policy_breakdown(design.configuration, policy)
    return _legacy_breakdown(design, policy)

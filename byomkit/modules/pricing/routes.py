"""
BYOM Pricing Routes
===================

Public price calculation and admin management of the global policy.
"""

from flask import jsonify, request, session
from flask_cors import cross_origin
from . import pricing_bp, pricing_admin_bp
from .database import PricingDatabase
from .engine import (
    decode_pricing_changes, decode_pricing_policy, estimate_breakdown, policy_breakdown,
)
from ..customizer.transport import parse_configuration
from ...core.config import Config
from ...core.decorators import admin_required, json_errors
from ...core.exceptions import NotFoundError, ValidationError
from ...core.logging_service import db_log


@pricing_bp.route('/calculate/', methods=['POST', 'OPTIONS'])
@cross_origin(origins=Config.BYOM_ALLOWED_ORIGINS, supports_credentials=True)
@json_errors('pricing')
def calculate_price():
    """
    Price a configuration.

    Body: the transport configuration, either directly or under
    ``configuration``. Returns the policy breakdown (the purchasable price)
    and the count-based estimate.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')

    config = parse_configuration(data.get('configuration', data))
    policy = PricingDatabase.get_active_policy()

    return jsonify({
        'success': True,
        'breakdown': policy_breakdown(config, policy).to_dict() if policy else None,
        'estimate': estimate_breakdown(config).to_dict(),
    })


@pricing_admin_bp.route('/global/', methods=['GET'])
@admin_required
@json_errors('pricing')
def get_global_policy():
    policy = PricingDatabase.get_global_policy()
    return jsonify({'success': True, 'policy': policy.to_dict() if policy else None})


@pricing_admin_bp.route('/global/', methods=['POST'])
@admin_required
@json_errors('pricing')
def create_global_policy():
    """Create the global policy (only once)"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    PricingDatabase.check_amounts(decode_pricing_changes(data))

    policy = PricingDatabase.create_global_policy(decode_pricing_policy(data))
    db_log('info', 'pricing', 'Global pricing policy created', policy.to_dict(),
           user_id=session.get('admin_id'))
    return jsonify({'success': True, 'policy': policy.to_dict()}), 201


@pricing_admin_bp.route('/global/<int:policy_id>/', methods=['PATCH'])
@admin_required
@json_errors('pricing')
def patch_global_policy(policy_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')

    changes = decode_pricing_changes(data)
    if not changes:
        raise ValidationError('No pricing fields to update')

    policy = PricingDatabase.patch_global_policy(policy_id, changes)
    if policy is None:
        raise NotFoundError(f"Pricing policy {policy_id} not found")

    db_log('info', 'pricing', f"Global pricing policy {policy_id} updated", changes,
           user_id=session.get('admin_id'))
    return jsonify({'success': True, 'policy': policy.to_dict()})

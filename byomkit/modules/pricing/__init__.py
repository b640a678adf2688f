"""
BYOM Pricing Module
===================

Policy-based pricing for customized merch.

Provides:
- Price breakdown for a configuration (public, CORS-enabled)
- Count-based estimate for previews
- Admin management of the single global pricing policy
"""

from flask import Blueprint

pricing_bp = Blueprint(
    'byom_pricing',
    __name__,
    url_prefix='/api/byom/pricing'
)

pricing_admin_bp = Blueprint(
    'byom_pricing_admin',
    __name__,
    url_prefix='/admin/byom/pricing'
)

from . import routes

__all__ = ['pricing_bp', 'pricing_admin_bp']

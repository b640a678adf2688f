"""
BYOM Designs Module
===================

Customer designs and their approval workflow.

Provides:
- Customer API: create, list, edit, delete, submit for approval, add to cart
- Admin API: review queue with orders, price breakdown, approve/reject
"""

from flask import Blueprint

byom_bp = Blueprint(
    'byom_designs',
    __name__,
    url_prefix='/api/byom'
)

byom_admin_bp = Blueprint(
    'byom_admin',
    __name__,
    url_prefix='/admin/byom'
)

from . import routes

__all__ = ['byom_bp', 'byom_admin_bp']

"""
BYOMKit Modules
===============

Feature modules for Build-Your-Own-Merch. ``designs`` and ``pricing`` are
Flask blueprint modules; ``customizer`` and ``byom_client`` are plain
Python packages used by the storefront side.
"""

__all__ = ['customizer', 'pricing', 'designs', 'byom_client']

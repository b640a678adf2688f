"""
BYOM API Client
===============

requests-based client for the BYOM designs and pricing endpoints, and the
upload -> create -> submit pipeline used by the customizer's checkout step.
"""

from .service import BYOMService
from .pipeline import SubmissionPipeline

__all__ = ['BYOMService', 'SubmissionPipeline']

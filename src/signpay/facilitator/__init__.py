"""
Facilitator HTTP client
"""

from signpay.facilitator.facilitator_client import FacilitatorClient

__all__ = ["FacilitatorClient"]

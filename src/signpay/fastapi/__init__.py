"""
FastAPI middleware for signpay payment handling
"""

from signpay.fastapi.middleware import SignPayMiddleware, signpay_protected

__all__ = ["SignPayMiddleware", "signpay_protected"]

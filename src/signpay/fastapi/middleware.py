"""
FastAPI middleware for signpay payment processing
"""

import inspect
import logging
from functools import wraps
from typing import Any, Callable, Optional

from fastapi import HTTPException, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from signpay.config import PAYMENT_RESPONSE_HEADER
from signpay.exceptions import PaymentGateError
from signpay.server import PaymentGate, payment_error_content

logger = logging.getLogger(__name__)

# Keyword used when the endpoint does not take the Request itself
_INJECTED_REQUEST = "__signpay_request"


class SignPayMiddleware:
    """
    FastAPI middleware for signature-based payment verification and settlement.

    Usage:
        app = FastAPI()
        gate = PaymentGate(84532, "0x036C...", "1000000", "0xB8E1...", FACILITATOR_URL)
        middleware = SignPayMiddleware(gate)

        @app.post("/api/purchase", dependencies=[Depends(calculate_order_total)])
        @middleware.protect
        async def purchase(request: Request):
            data = get_payment_result(request)
            return {"transaction": data.settle_response.transaction}

    Dependencies run before the gate, so a pricing dependency can call
    set_payment_amount(request, amount) to override the configured amount.
    """

    def __init__(self, gate: PaymentGate) -> None:
        self._gate = gate

    @property
    def gate(self) -> PaymentGate:
        return self._gate

    def protect(self, func: Callable) -> Callable:
        """
        Decorator to protect an endpoint with the payment gate.

        The endpoint runs only after verify and settle succeed. Sync endpoints
        run in the threadpool. A non-Response return value is rendered as JSON.
        The endpoint does not need to declare a Request parameter.

        Args:
            func: Endpoint function

        Returns:
            Decorated function
        """
        signature = inspect.signature(func, eval_str=True)
        request_param = _find_request_param(signature)
        is_async = inspect.iscoroutinefunction(func)

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Response:
            if request_param is None:
                request = kwargs.pop(_INJECTED_REQUEST)
            else:
                request = kwargs[request_param]

            try:
                result = await self._gate.process(request)
            except PaymentGateError as e:
                return JSONResponse(content=payment_error_content(e), status_code=e.status_code)

            payment_response = self._gate.payment_response_header(result)

            try:
                if is_async:
                    response = await func(*args, **kwargs)
                else:
                    response = await run_in_threadpool(func, *args, **kwargs)
            except HTTPException as e:
                # Settlement already happened, the error response still carries the receipt
                if payment_response is not None:
                    e.headers = {**(e.headers or {}), PAYMENT_RESPONSE_HEADER: payment_response}
                raise

            if not isinstance(response, Response):
                response = JSONResponse(content=jsonable_encoder(response))
            if payment_response is not None:
                response.headers[PAYMENT_RESPONSE_HEADER] = payment_response
            return response

        # FastAPI must see the async wrapper, not a possibly sync endpoint
        del wrapper.__wrapped__
        wrapper.__signature__ = _with_request_param(signature, request_param)  # type: ignore[attr-defined]
        return wrapper


def _find_request_param(signature: inspect.Signature) -> Optional[str]:
    for name, param in signature.parameters.items():
        if inspect.isclass(param.annotation) and issubclass(param.annotation, Request):
            return name
    return None


def _with_request_param(
    signature: inspect.Signature, request_param: Optional[str]
) -> inspect.Signature:
    if request_param is not None:
        return signature

    params = list(signature.parameters.values())
    injected = inspect.Parameter(
        _INJECTED_REQUEST, inspect.Parameter.KEYWORD_ONLY, annotation=Request
    )
    if params and params[-1].kind is inspect.Parameter.VAR_KEYWORD:
        params.insert(len(params) - 1, injected)
    else:
        params.append(injected)
    return signature.replace(parameters=params)


def signpay_protected(
    chain_id: int,
    token_address: str,
    token_amount: str,
    recipient_address: str,
    facilitator_url: str,
    **kwargs: Any,
) -> Callable:
    """
    Convenience decorator to protect an endpoint.

        @app.post("/api/purchase")
        @signpay_protected(
            84532,
            "0x036CbD53842c5426634e7929541eC2318f3dCF7e",
            "1000000",
            "0xB8E124eaA317761CF8E4C63EB445fA3d21deD759",
            "https://x402.org/facilitator",
            api_key=os.getenv("FACILITATOR_API_KEY"),
        )
        async def purchase(request: Request):
            ...

    Extra keyword arguments are passed to PaymentGate.
    """
    gate = PaymentGate(
        chain_id,
        token_address,
        token_amount,
        recipient_address,
        facilitator_url,
        **kwargs,
    )
    return SignPayMiddleware(gate).protect

"""
Encoding utilities for the X-PAYMENT and X-PAYMENT-RESPONSE headers
"""

import base64
import json
from typing import Any, TypeVar

from pydantic import BaseModel

from signpay.exceptions import PayloadDecodeError

T = TypeVar("T", bound=BaseModel)


def encode_base64(data: str | bytes) -> str:
    """Encode data to base64"""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(data).decode("utf-8")


def decode_base64(data: str) -> str:
    """Decode strict base64 to string"""
    return base64.b64decode(data, validate=True).decode("utf-8")


def encode_payment_payload(payload: Any) -> str:
    """Encode a model or plain dict to base64 JSON for an HTTP header"""
    if hasattr(payload, "model_dump"):
        json_str = json.dumps(payload.model_dump(by_alias=True, exclude_none=True))
    else:
        json_str = json.dumps(payload)
    return encode_base64(json_str)


def decode_payment_payload(encoded: str, model_class: type[T]) -> T:
    """Decode a base64 JSON HTTP header into *model_class*

    Raises:
        PayloadDecodeError: If the value is not base64, not UTF-8 JSON, or
            does not match the model
    """
    try:
        data = json.loads(decode_base64(encoded.strip()))
        return model_class.model_validate(data)
    except ValueError as e:
        # binascii.Error, UnicodeDecodeError, JSONDecodeError and pydantic's
        # ValidationError all derive from ValueError
        raise PayloadDecodeError(str(e)) from e
    except RecursionError as e:
        raise PayloadDecodeError("payload JSON is nested too deeply") from e

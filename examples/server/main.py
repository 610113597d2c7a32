import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from signpay.config import PAYMENT_HEADER, PAYMENT_RESPONSE_HEADER, NetworkConfig
from signpay.fastapi import SignPayMiddleware
from signpay.server import PaymentGate, get_payment_result, set_payment_amount

load_dotenv(Path(__file__).parent.parent.parent / ".env")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logging.getLogger("signpay").setLevel(logging.DEBUG)
logging.getLogger("uvicorn.access").setLevel(logging.INFO)

logger = logging.getLogger(__name__)

# Configuration
CHAIN_ID = int(os.getenv("SIGNPAY_CHAIN_ID") or NetworkConfig.BASE_SEPOLIA)
# USDC on Base Sepolia
TOKEN_ADDRESS = os.getenv("SIGNPAY_TOKEN_ADDRESS") or "0x036CbD53842c5426634e7929541eC2318f3dCF7e"
RECIPIENT_ADDRESS = (
    os.getenv("SIGNPAY_RECIPIENT_ADDRESS") or "0xB8E124eaA317761CF8E4C63EB445fA3d21deD759"
)
FACILITATOR_URL = os.getenv("SIGNPAY_FACILITATOR_URL") or "https://x402.org/facilitator"
FACILITATOR_API_KEY = os.getenv("SIGNPAY_API_KEY")
CLIENT_ORIGIN = os.getenv("CLIENT_ORIGIN") or "http://localhost:3000"
SERVER_HOST = "0.0.0.0"
SERVER_PORT = 8080

# Product prices in smallest token units (USDC has 6 decimals)
PRICES = {
    "TSH-001": 99900,  # $9.99
    "JEANS-042": 199900,  # $19.99
}


class OrderItem(BaseModel):
    productCode: str
    productName: str = ""
    quantity: int
    size: str = ""


class Order(BaseModel):
    customerEmail: str = ""
    items: list[OrderItem] = []


# Empty token amount: the price comes from calculate_order_total
gate = PaymentGate(
    chain_id=CHAIN_ID,
    token_address=TOKEN_ADDRESS,
    token_amount="",
    recipient_address=RECIPIENT_ADDRESS,
    facilitator_url=FACILITATOR_URL,
    api_key=FACILITATOR_API_KEY,
)
middleware = SignPayMiddleware(gate)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await gate.close()


app = FastAPI(
    title="SignPay Shop",
    description="Order endpoint paid with a signed USDC transfer",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[CLIENT_ORIGIN],
    allow_credentials=True,
    allow_methods=["POST", "OPTIONS", "GET", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization", PAYMENT_HEADER],
    expose_headers=[PAYMENT_RESPONSE_HEADER],
)


async def calculate_order_total(request: Request) -> None:
    """Price the order in the request body and hand the total to the payment gate"""
    try:
        order = Order.model_validate_json(await request.body() or b"{}")
    except ValidationError:
        order = Order()

    total = sum(PRICES.get(item.productCode, 0) * item.quantity for item in order.items)
    set_payment_amount(request, str(total))


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.post("/api/purchase", dependencies=[Depends(calculate_order_total)])
@middleware.protect
async def process_order(request: Request):
    """Process the order after payment has been verified and settled"""
    data = get_payment_result(request)

    try:
        order = data.parse_body(Order) or Order()
    except ValidationError:
        return JSONResponse(status_code=400, content={"error": "Invalid order data"})

    # Save the order, send the confirmation email, update inventory...
    logger.info(f"Order paid: tx={data.settle_response.transaction}, items={len(order.items)}")

    return {
        "success": True,
        "message": "Payment verified and order processed",
        "transaction": data.settle_response.transaction,
        "customerEmail": order.customerEmail,
        "itemCount": len(order.items),
    }


if __name__ == "__main__":
    import uvicorn

    print(f"Network: {gate.network} (chain {CHAIN_ID})")
    print(f"Pay To: {RECIPIENT_ADDRESS}")
    print(f"Facilitator URL: {FACILITATOR_URL}")

    uvicorn.run(app, host=SERVER_HOST, port=SERVER_PORT, log_level="info")

"""Example endpoints demonstrating the `rate_limit` decorator.

Each route shows one way of deriving the rate limit identifier:

- ``/send-otp``: by a named query parameter (``#phone``)
- ``/login``: by a named parameter while ignoring the others (``#email``)
- ``/products``: by position (``#p0``)
- ``/public-data``: one shared bucket for every caller (no key)
- ``/register``: by a property of the request body (``#user.email``)

`rate_limit` must sit below the route decorator so FastAPI registers the
guarded function.
"""

from fastapi import APIRouter
from pydantic import BaseModel, EmailStr

from redis_ratelimiter.domain.rate_limiting.interceptor import rate_limit

router = APIRouter(tags=["examples"])


class UserRegistration(BaseModel):
    email: EmailStr
    name: str | None = None


class MessageResponse(BaseModel):
    message: str


@router.post("/send-otp", response_model=MessageResponse)
@rate_limit(limit=3, duration=60, key="#phone")
async def send_otp(phone: str) -> MessageResponse:
    """Allows 3 requests per 60 seconds per phone number."""
    return MessageResponse(message=f"OTP sent to {phone}")


@router.post("/login", response_model=MessageResponse)
@rate_limit(limit=5, duration=300, key="#email")
async def login(email: str, password: str) -> MessageResponse:
    """Allows 5 login attempts per 5 minutes per email."""
    return MessageResponse(message=f"Login successful for {email}")


@router.get("/products", response_model=MessageResponse)
@rate_limit(limit=10, duration=60, key="#p0")
async def get_products(category: str) -> MessageResponse:
    return MessageResponse(message=f"Products in category: {category}")


@router.get("/public-data", response_model=MessageResponse)
@rate_limit(limit=100, duration=60, name="publicData")
async def get_public_data() -> MessageResponse:
    return MessageResponse(message="Public data")


@router.post("/register", response_model=MessageResponse)
@rate_limit(limit=3, duration=3600, key="#user.email")
async def register(user: UserRegistration) -> MessageResponse:
    """Allows 3 registrations per hour per email address."""
    return MessageResponse(message=f"User registered: {user.email}")

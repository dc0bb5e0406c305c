import logging
from math import ceil

from fastapi import Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter

from .auth import decode_user_id
from .exceptions import TooManyRequests

logger = logging.getLogger("spotbnb.limits")


async def get_key_by_user_id_or_ip(request: Request) -> str:
    """
    Rate-limit key: the user ID from the session token when there is a valid
    one, otherwise the client's IP.
    """
    user_id = decode_user_id(request.headers.get("Authorization"))
    if user_id is not None:
        return f"user:{user_id}"
    return request.client.host if request.client else "anonymous"


class OptionalRateLimiter(RateLimiter):
    """
    A RateLimiter that lets requests through unlimited while FastAPILimiter
    has no Redis connection, instead of failing them with a 500.
    """

    async def __call__(self, request: Request, response: Response):
        if FastAPILimiter.redis is None:
            logger.debug(f"Rate limiting skipped for {request.url.path}: limiter not initialized")
            return
        return await super().__call__(request, response)


booking_limiter = OptionalRateLimiter(times=30, minutes=1, identifier=get_key_by_user_id_or_ip)
review_limiter = OptionalRateLimiter(times=10, minutes=1, identifier=get_key_by_user_id_or_ip)
session_limiter = OptionalRateLimiter(times=5, minutes=1, identifier=get_key_by_user_id_or_ip)

ALL_LIMITERS = (booking_limiter, review_limiter, session_limiter)


async def rate_limit_exceeded(request: Request, response: Response, pexpire: int):
    retry_after = max(ceil(pexpire / 1000), 1)
    raise TooManyRequests(f"Too many requests, retry in {retry_after} seconds")

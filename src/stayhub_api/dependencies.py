"""FastAPI dependency injection providers for engine services.

This module provides factory functions for service instances using @lru_cache
so that every request in the process shares one store and, crucially, one
PropertyLockRegistry. Services are lazily instantiated.

Service Dependency Graph:
    BookingStore (DynamoDB or in-memory, from STORE_BACKEND)
        └── CalendarResolver
                ├── ConflictChecker
                ├── PricingCalculator (+ TaxPolicy from settings)
                ├── BookingService      ─┐
                └── AvailabilityService ─┴── PropertyLockRegistry

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from fastapi import Header, HTTPException
from starlette.status import HTTP_401_UNAUTHORIZED

from stayhub.config import get_settings
from stayhub.services import (
    AvailabilityService,
    BookingService,
    BookingStore,
    CalendarResolver,
    ConflictChecker,
    PricingCalculator,
    PropertyLockRegistry,
    build_tax_policy,
    create_booking_store,
    reset_dynamodb_service,
)


@lru_cache
def get_booking_store() -> BookingStore:
    """Get cached BookingStore selected by STORE_BACKEND."""
    return create_booking_store(get_settings())


@lru_cache
def get_lock_registry() -> PropertyLockRegistry:
    """Get the process-wide per-property lock registry."""
    return PropertyLockRegistry()


@lru_cache
def get_calendar_resolver() -> CalendarResolver:
    """Get cached CalendarResolver instance."""
    return CalendarResolver(get_booking_store())


@lru_cache
def get_conflict_checker() -> ConflictChecker:
    """Get cached ConflictChecker instance."""
    return ConflictChecker(get_booking_store(), get_calendar_resolver())


@lru_cache
def get_pricing_calculator() -> PricingCalculator:
    """Get cached PricingCalculator instance.

    Returns:
        PricingCalculator with the configured tax policy and default
        service fee.
    """
    settings = get_settings()
    return PricingCalculator(
        get_calendar_resolver(),
        tax_policy=build_tax_policy(settings),
        default_service_fee_percent=settings.service_fee_percent,
    )


@lru_cache
def get_booking_service() -> BookingService:
    """Get cached BookingService instance."""
    return BookingService(
        store=get_booking_store(),
        calendar=get_calendar_resolver(),
        conflicts=get_conflict_checker(),
        pricing=get_pricing_calculator(),
        locks=get_lock_registry(),
    )


@lru_cache
def get_availability_service() -> AvailabilityService:
    """Get cached AvailabilityService instance."""
    return AvailabilityService(
        store=get_booking_store(),
        calendar=get_calendar_resolver(),
        conflicts=get_conflict_checker(),
        locks=get_lock_registry(),
    )


def get_actor_id(x_user_sub: str | None = Header(default=None)) -> str:
    """Caller identity passed by the upstream authenticator.

    API Gateway validates the JWT and forwards its sub claim via the
    x-user-sub header.

    Raises:
        HTTPException: 401 when the header is missing
    """
    if not x_user_sub:
        raise HTTPException(
            status_code=HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return x_user_sub


def reset_services() -> None:
    """Clear all cached service instances.

    Call this in test fixtures to ensure clean state between tests.
    Also resets the settings cache and the DynamoDB singleton.
    """
    get_booking_store.cache_clear()
    get_lock_registry.cache_clear()
    get_calendar_resolver.cache_clear()
    get_conflict_checker.cache_clear()
    get_pricing_calculator.cache_clear()
    get_booking_service.cache_clear()
    get_availability_service.cache_clear()
    get_settings.cache_clear()

    reset_dynamodb_service()

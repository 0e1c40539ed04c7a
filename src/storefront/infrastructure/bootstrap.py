"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.  Configuration comes
from the environment, optionally seeded from a ``.env`` file.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

from storefront.application.order_view import OrderView
from storefront.domain.exceptions import ValidationError
from storefront.domain.service.order_state_machine import Role
from storefront.infrastructure.http.http_order_gateway import HttpOrderGateway
from storefront.infrastructure.session import EnvSession

DEFAULT_API_URL = "http://localhost:5000/api"


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    api_timeout: float = 30.0
    token: str | None = None
    role: Role = Role.CUSTOMER
    log_level: str = "WARNING"


def load_settings() -> Settings:
    """Read settings from the environment (and ``.env`` if present)."""
    load_dotenv(find_dotenv(usecwd=True))

    raw_timeout = os.getenv("STOREFRONT_API_TIMEOUT", "30")
    try:
        timeout = float(raw_timeout)
    except ValueError:
        raise ValidationError(f"STOREFRONT_API_TIMEOUT must be a number, got {raw_timeout!r}")
    if timeout <= 0:
        raise ValidationError("STOREFRONT_API_TIMEOUT must be positive")

    log_level = os.getenv("STOREFRONT_LOG_LEVEL", "WARNING").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValidationError(f"Unknown log level {log_level!r}")

    return Settings(
        api_url=os.getenv("STOREFRONT_API_URL", DEFAULT_API_URL),
        api_timeout=timeout,
        token=os.getenv("STOREFRONT_TOKEN") or None,
        role=parse_role(os.getenv("STOREFRONT_ROLE", Role.CUSTOMER.value)),
        log_level=log_level,
    )


def parse_role(raw: str) -> Role:
    try:
        return Role(raw.strip().lower())
    except ValueError:
        raise ValidationError(
            f"Unknown role {raw!r}; expected one of {', '.join(r.value for r in Role)}"
        ) from None


def order_gateway(settings: Settings) -> HttpOrderGateway:
    return HttpOrderGateway(settings.api_url, timeout=settings.api_timeout)


def session(settings: Settings) -> EnvSession:
    return EnvSession(settings.token)


def order_view(settings: Settings) -> OrderView:
    return OrderView(order_gateway(settings), session(settings), settings.role)

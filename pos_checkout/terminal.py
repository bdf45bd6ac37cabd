"""Wiring for one POS terminal: cart, manager session and pricing engine."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from .authorization import CredentialVerifier, ManagerAuthorizationSession
from .cart import Cart
from .clock import Clock, SystemClock
from .config import CheckoutConfig, configure_logging, get_checkout_config
from .loyalty import MembershipConfig
from .pricing import PricingEngine


@dataclass
class CheckoutTerminal:
    terminal_id: str
    cart: Cart
    manager_session: ManagerAuthorizationSession
    pricing: PricingEngine

    @classmethod
    def create(
        cls,
        terminal_id: str,
        verifier: CredentialVerifier,
        *,
        config: CheckoutConfig | None = None,
        membership: MembershipConfig | None = None,
        clock: Clock | None = None,
    ) -> CheckoutTerminal:
        """Build a terminal; configuration comes from the environment when not given."""
        config = config or get_checkout_config()
        clock = clock or SystemClock()
        cart = Cart(terminal_id=terminal_id)
        session = ManagerAuthorizationSession(
            verifier,
            allowed_roles=config.allowed_roles,
            session_duration_minutes=config.session_duration_minutes,
            clock=clock,
            terminal_id=terminal_id,
        )
        pricing = PricingEngine(
            cart,
            session,
            clock=clock,
            membership=membership,
            stacking_order=config.stacking_order,
        )
        return cls(terminal_id=terminal_id, cart=cart, manager_session=session, pricing=pricing)

    @classmethod
    def from_environment(
        cls,
        terminal_id: str,
        verifier: CredentialVerifier,
        *,
        membership: MembershipConfig | None = None,
        clock: Clock | None = None,
    ) -> CheckoutTerminal:
        """Entry point: build a terminal from environment config with logging at ``POS_LOG_LEVEL``."""
        config = get_checkout_config()
        configure_logging(config.log_level)
        terminal = cls.create(terminal_id, verifier, config=config, membership=membership, clock=clock)
        structlog.get_logger().info(
            "terminal_started",
            terminal_id=terminal_id,
            session_duration_minutes=config.session_duration_minutes,
            stacking_order=[c.value for c in config.stacking_order],
        )
        return terminal

    def end_sale(self) -> None:
        """Reset for the next customer. The manager session survives until it expires or is cleared."""
        self.cart.clear()
        self.pricing.reset()

"""Shared pytest fixtures for checkout tests."""

import pytest

from pos_checkout import Cart, FrozenClock, ManagerAuthorizationSession, PricingEngine

from .fixtures import T0, StubVerifier, make_membership


@pytest.fixture
def clock():
    return FrozenClock(T0)


@pytest.fixture
def verifier():
    return StubVerifier()


@pytest.fixture
def session(verifier, clock):
    return ManagerAuthorizationSession(verifier, clock=clock, terminal_id="t-1")


@pytest.fixture
def cart():
    return Cart(terminal_id="t-1")


@pytest.fixture
def membership():
    return make_membership()


@pytest.fixture
def engine(cart, session, clock, membership):
    return PricingEngine(cart, session, clock=clock, membership=membership)

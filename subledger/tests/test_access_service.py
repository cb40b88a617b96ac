"""Tests for subscription access checks (active / expired / missing)."""
import pytest

from subledger.core.addressing import subscription_address
from subledger.core.errors import ErrorKind, ExpiredError, NotFoundError
from subledger.features.access.service import check_subscription, check_subscription_for, is_active
from subledger.features.plans.service import create_plan
from subledger.features.subscriptions.service import subscribe
from subledger.models.subscription import SubscriptionStatus


@pytest.fixture
def active_subscription(fund):
    fund("creator-a")
    fund("sub-b")
    create_plan("creator-a", 1, "Premium", 500_000_000, 30)
    return subscribe("sub-b", "creator-a", 1)


def test_active_subscription_checks_true(active_subscription):
    assert check_subscription(active_subscription.address) is True
    assert check_subscription_for("sub-b", "creator-a") is True


def test_still_active_one_second_before_expiry(active_subscription, clock):
    clock.set(active_subscription.expires_at - 1)
    assert check_subscription(active_subscription.address) is True


def test_expired_exactly_at_expiry(active_subscription, clock):
    clock.set(active_subscription.expires_at)
    with pytest.raises(ExpiredError) as exc:
        check_subscription(active_subscription.address)
    assert exc.value.kind == ErrorKind.EXPIRED
    assert "Subscription has expired" in exc.value.message


def test_expired_long_after_expiry(active_subscription, clock):
    clock.advance(365 * 86400)
    with pytest.raises(ExpiredError):
        check_subscription(active_subscription.address)


def test_explicit_now_overrides_clock(active_subscription):
    assert check_subscription(active_subscription.address, now=active_subscription.expires_at - 10) is True
    with pytest.raises(ExpiredError):
        check_subscription(active_subscription.address, now=active_subscription.expires_at + 10)


def test_missing_subscription_is_not_found_not_false():
    with pytest.raises(NotFoundError) as exc:
        check_subscription(subscription_address("nobody", "creator-a"))
    assert exc.value.kind == ErrorKind.NOT_FOUND


def test_expiry_is_one_way(active_subscription, clock):
    clock.set(active_subscription.expires_at + 5)
    with pytest.raises(ExpiredError):
        check_subscription(active_subscription.address)
    # The record stays in place and keeps reporting expired
    with pytest.raises(ExpiredError):
        check_subscription(active_subscription.address)


def test_status_helpers(active_subscription):
    record = active_subscription
    assert record.status_at(record.created_at) == SubscriptionStatus.ACTIVE
    assert record.status_at(record.expires_at) == SubscriptionStatus.EXPIRED
    assert is_active(record, record.expires_at - 1)
    assert not is_active(record, record.expires_at)


def test_full_lifecycle(fund, clock):
    """create plan -> subscribe -> check active -> time passes -> expired"""
    fund("test-creator")
    fund("test-subscriber")

    create_plan("test-creator", 7, "Test Plan", 500_000_000, 7)
    record = subscribe("test-subscriber", "test-creator", 7)
    assert check_subscription(record.address) is True

    clock.advance(7 * 86400)
    with pytest.raises(ExpiredError):
        check_subscription(record.address)

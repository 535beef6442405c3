"""Unit tests for the expiration policy."""

import pytest

from dynamodb_cache.cache.expiration import ExpirationPolicy, ExpirationState

pytestmark = pytest.mark.unit

T = 1_000.0


@pytest.fixture
def policy(manual_clock):
    manual_clock.now = T
    return ExpirationPolicy(clock=manual_clock)


class TestOnWrite:
    def test_no_windows_never_expires(self, policy):
        state = policy.on_write()

        assert state == ExpirationState(None, None, None)
        assert state.is_live(T + 10**9)

    def test_absolute_only(self, policy):
        state = policy.on_write(absolute_expires_at=T + 100)

        assert state.expires_at == T + 100
        assert state.absolute_expires_at == T + 100
        assert state.sliding_window_seconds is None

    def test_sliding_only(self, policy):
        state = policy.on_write(sliding_window_seconds=60)

        assert state.expires_at == T + 60
        assert state.absolute_expires_at is None

    def test_both_takes_earlier_deadline(self, policy):
        assert policy.on_write(T + 30, 60).expires_at == T + 30
        assert policy.on_write(T + 100, 60).expires_at == T + 60

    def test_past_absolute_rejected(self, policy):
        with pytest.raises(ValueError):
            policy.on_write(absolute_expires_at=T)

    @pytest.mark.parametrize("window", [0, -5])
    def test_non_positive_window_rejected(self, policy, window):
        with pytest.raises(ValueError):
            policy.on_write(sliding_window_seconds=window)

    def test_explicit_now_overrides_clock(self, policy):
        assert policy.on_write(sliding_window_seconds=10, now=50).expires_at == 60


class TestComputeInitial:
    def test_defaults_applied(self, policy, make_options):
        options = make_options(
            default_absolute_expiration_seconds=300,
            default_sliding_expiration_seconds=60,
        )

        state = policy.compute_initial(options)

        assert state == ExpirationState(T + 60, T + 300, 60)

    def test_no_defaults_never_expires(self, policy, make_options):
        assert policy.compute_initial(make_options()).expires_at is None


class TestOnRead:
    def test_sliding_read_renews_window(self, policy, manual_clock):
        state = policy.on_write(sliding_window_seconds=60)

        manual_clock.advance(30)
        decision = policy.on_read(state)

        assert decision.is_live
        assert decision.refreshed.expires_at == T + 90

        manual_clock.advance(70)
        assert not policy.on_read(decision.refreshed).is_live

    def test_refresh_capped_at_absolute(self, policy):
        # Last renewed by a read at T+30.
        state = ExpirationState(
            expires_at=T + 90, absolute_expires_at=T + 100, sliding_window_seconds=60
        )

        decision = policy.on_read(state, now=T + 80)

        assert decision.is_live
        assert decision.refreshed.expires_at == T + 100
        assert decision.refreshed.absolute_expires_at == T + 100

    def test_initial_deadline_with_both_windows(self, policy, manual_clock):
        state = policy.on_write(absolute_expires_at=T + 100, sliding_window_seconds=60)

        assert state.expires_at == T + 60
        manual_clock.advance(50)
        assert policy.on_read(state).refreshed.expires_at == T + 100

    def test_absolute_only_not_refreshed(self, policy, manual_clock):
        state = policy.on_write(absolute_expires_at=T + 100)

        manual_clock.advance(50)
        decision = policy.on_read(state)

        assert decision.is_live
        assert decision.refreshed is None

    def test_deadline_is_exclusive(self, policy, manual_clock):
        state = policy.on_write(absolute_expires_at=T + 100)

        assert policy.on_read(state, now=T + 99.999).is_live
        assert not policy.on_read(state, now=T + 100).is_live

    def test_expired_item_has_no_refresh(self, policy):
        state = ExpirationState(
            expires_at=T - 1, absolute_expires_at=None, sliding_window_seconds=60
        )

        decision = policy.on_read(state)

        assert not decision.is_live
        assert decision.refreshed is None

    def test_never_expiring_item_is_live(self, policy):
        decision = policy.on_read(ExpirationState())

        assert decision.is_live
        assert decision.refreshed is None

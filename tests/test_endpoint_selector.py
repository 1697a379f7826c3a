"""Unit tests for overpass_proxy/core/endpoint_selector.py."""

import random

import pytest

from overpass_proxy.core.endpoint_selector import (
    RandomStrategy,
    RoundRobinStrategy,
    build_strategy,
    select_endpoint,
)


class TestStrategies:
    def test_random_only_returns_candidates(self):
        strategy = RandomStrategy(random.Random(7))
        picks = {strategy.pick(["a", "b"]) for _ in range(50)}
        assert picks == {"a", "b"}

    def test_round_robin_rotates(self):
        strategy = RoundRobinStrategy()
        assert [strategy.pick(["a", "b", "c"]) for _ in range(4)] == ["a", "b", "c", "a"]

    def test_build_known_strategies(self):
        assert isinstance(build_strategy("random"), RandomStrategy)
        assert isinstance(build_strategy("round_robin"), RoundRobinStrategy)

    def test_build_unknown_strategy_raises(self):
        with pytest.raises(ValueError, match="Unknown selection strategy"):
            build_strategy("weighted")


class TestSelectHealthy:
    def test_all_healthy_uses_strategy(self, endpoints, registry, first_strategy):
        chosen = select_endpoint(endpoints, registry, set(), strategy=first_strategy)
        assert chosen == endpoints[0]

    def test_skips_recently_failed(self, endpoints, registry, first_strategy):
        registry.mark_failed(endpoints[0])
        chosen = select_endpoint(endpoints, registry, set(), strategy=first_strategy)
        assert chosen == endpoints[1]

    def test_never_returns_already_tried(self, endpoints, registry):
        strategy = RandomStrategy(random.Random(1))
        for _ in range(50):
            chosen = select_endpoint(
                endpoints, registry, {endpoints[0], endpoints[2]}, strategy=strategy
            )
            assert chosen == endpoints[1]

    def test_random_default_spreads_load(self, endpoints, registry):
        picks = {select_endpoint(endpoints, registry, set()) for _ in range(200)}
        assert picks == set(endpoints)

    def test_aged_out_failure_counts_as_healthy(
        self, endpoints, registry, clock, first_strategy
    ):
        registry.mark_failed(endpoints[0])
        clock.advance(301)
        chosen = select_endpoint(endpoints, registry, set(), strategy=first_strategy)
        assert chosen == endpoints[0]


class TestSelectFallback:
    def test_all_unhealthy_returns_oldest_failure(self, endpoints, registry, clock):
        registry.mark_failed(endpoints[1])
        clock.advance(10)
        registry.mark_failed(endpoints[2])
        clock.advance(10)
        registry.mark_failed(endpoints[0])
        assert select_endpoint(endpoints, registry, set()) == endpoints[1]

    def test_fallback_respects_already_tried(self, endpoints, registry, clock):
        registry.mark_failed(endpoints[1])
        clock.advance(10)
        registry.mark_failed(endpoints[2])
        clock.advance(10)
        registry.mark_failed(endpoints[0])
        chosen = select_endpoint(endpoints, registry, {endpoints[1]})
        assert chosen == endpoints[2]

    def test_healthy_candidate_beats_fallback(self, endpoints, registry, first_strategy):
        registry.mark_failed(endpoints[0])
        registry.mark_failed(endpoints[1])
        chosen = select_endpoint(endpoints, registry, set(), strategy=first_strategy)
        assert chosen == endpoints[2]


class TestSelectExhausted:
    def test_none_when_everything_tried(self, endpoints, registry):
        assert select_endpoint(endpoints, registry, set(endpoints)) is None

    def test_none_for_empty_endpoint_list(self, registry):
        assert select_endpoint([], registry, set()) is None

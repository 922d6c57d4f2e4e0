"""Tests for the deterministic RNG."""

from airwar.util.rng import DeterministicRNG


class TestSequence:
    def test_same_seed_same_sequence(self):
        """Same seed, same stream."""
        a, b = DeterministicRNG(42), DeterministicRNG(42)
        assert [a.next() for _ in range(100)] == [b.next() for _ in range(100)]

    def test_different_seed_different_sequence(self):
        """Different seeds diverge."""
        a, b = DeterministicRNG(1), DeterministicRNG(2)
        assert [a.next() for _ in range(10)] != [b.next() for _ in range(10)]

    def test_values_in_unit_interval(self):
        """Draws lie in [0, 1)."""
        rng = DeterministicRNG(7)
        for _ in range(5000):
            v = rng.next()
            assert 0.0 <= v < 1.0

    def test_seed_reduced_to_32_bits(self):
        """Seeds are taken modulo 2**32."""
        a, b = DeterministicRNG(5), DeterministicRNG(5 + 2**32)
        assert a.next() == b.next()


class TestHelpers:
    def test_next_int_inclusive_bounds(self):
        """next_int covers both bounds."""
        rng = DeterministicRNG(3)
        seen = {rng.next_int(1, 3) for _ in range(500)}
        assert seen == {1, 2, 3}

    def test_next_float_half_open(self):
        """next_float stays in [lo, hi)."""
        rng = DeterministicRNG(3)
        for _ in range(500):
            v = rng.next_float(-2.0, 2.0)
            assert -2.0 <= v < 2.0

    def test_next_bool_extremes(self):
        """Probabilities 0 and 1 are never and always."""
        rng = DeterministicRNG(9)
        assert not any(rng.next_bool(0.0) for _ in range(200))
        assert all(rng.next_bool(1.0) for _ in range(200))

    def test_next_bool_consumes_one_draw(self):
        """A boolean costs exactly one draw."""
        a, b = DeterministicRNG(11), DeterministicRNG(11)
        a.next_bool(0.3)
        b.next()
        assert a.get_state() == b.get_state()

    def test_choice_empty_returns_none(self):
        """Choosing from nothing returns None."""
        assert DeterministicRNG(1).choice([]) is None

    def test_choice_picks_member(self):
        """Choices come from the sequence."""
        rng = DeterministicRNG(1)
        items = ["a", "b", "c"]
        for _ in range(50):
            assert rng.choice(items) in items

    def test_shuffle_is_in_place_permutation(self):
        """Shuffle permutes the list in place."""
        rng = DeterministicRNG(123)
        items = list(range(20))
        result = rng.shuffle(items)
        assert result is items
        assert sorted(items) == list(range(20))

    def test_shuffle_deterministic(self):
        """Shuffles are reproducible from the seed."""
        a = DeterministicRNG(8).shuffle(list(range(10)))
        b = DeterministicRNG(8).shuffle(list(range(10)))
        assert a == b


class TestState:
    def test_set_state_get_state_round_trip(self):
        """Writing back the current state does not disturb the stream."""
        reference = DeterministicRNG(42)
        probe = DeterministicRNG(42)
        for _ in range(17):
            reference.next()
            probe.next()
        probe.set_state(probe.get_state())
        assert [probe.next() for _ in range(50)] == [reference.next() for _ in range(50)]

    def test_restore_into_fresh_generator(self):
        """A restored state continues the original stream."""
        rng = DeterministicRNG(42)
        for _ in range(10):
            rng.next()
        state = rng.get_state()
        expected = [rng.next() for _ in range(20)]

        other = DeterministicRNG(999)
        other.set_state(state)
        assert [other.next() for _ in range(20)] == expected

    def test_reset_rewinds_to_seed(self):
        """reset() restarts the stream from the seed."""
        rng = DeterministicRNG(42)
        first = [rng.next() for _ in range(5)]
        rng.set_state(12345)
        rng.reset()
        assert [rng.next() for _ in range(5)] == first

    def test_state_is_32_bit(self):
        """State always fits in 32 bits."""
        rng = DeterministicRNG(0xFFFFFFFF)
        for _ in range(100):
            rng.next()
            assert 0 <= rng.get_state() <= 0xFFFFFFFF

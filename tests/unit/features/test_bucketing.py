"""Unit tests for consistent-hash bucketing and variant selection."""

from __future__ import annotations

import hashlib
from collections import Counter

from flcm_rollout.features.bucketing import bucket_for, is_in_rollout_percentage, select_variant
from flcm_rollout.features.models import FlagVariant

USERS = [f"user-{i}" for i in range(10_000)]


class TestBucketFor:
    def test_first_eight_hex_digits_of_md5(self) -> None:
        expected = int(hashlib.md5(b"u1").hexdigest()[:8], 16) % 100
        assert bucket_for("u1") == expected

    def test_unicode_user_ids_hash_as_utf8(self) -> None:
        expected = int(hashlib.md5("usuário".encode("utf-8")).hexdigest()[:8], 16) % 100
        assert bucket_for("usuário") == expected

    def test_deterministic(self) -> None:
        assert [bucket_for(u) for u in USERS[:100]] == [bucket_for(u) for u in USERS[:100]]

    def test_range(self) -> None:
        assert all(0 <= bucket_for(u) < 100 for u in USERS[:1000])


class TestRolloutPercentage:
    def test_zero_and_hundred(self) -> None:
        assert not any(is_in_rollout_percentage(u, 0) for u in USERS[:500])
        assert all(is_in_rollout_percentage(u, 100) for u in USERS[:500])

    def test_monotonic(self) -> None:
        for user in USERS[:500]:
            inside = [is_in_rollout_percentage(user, p) for p in range(0, 101, 5)]
            # once inside, inside for every larger percentage
            assert inside == sorted(inside)

    def test_distribution_close_to_percentage(self) -> None:
        share = sum(is_in_rollout_percentage(u, 30) for u in USERS) / len(USERS)
        assert 0.27 <= share <= 0.33


class TestSelectVariant:
    def test_no_variants(self) -> None:
        assert select_variant([], "u1") is None

    def test_zero_total_weight(self) -> None:
        assert select_variant([FlagVariant("a", 0), FlagVariant("b", 0)], "u1") is None

    def test_single_variant(self) -> None:
        assert select_variant([FlagVariant("only", 10)], "u1") == "only"

    def test_stable_per_user(self) -> None:
        variants = [FlagVariant("full_library", 50), FlagVariant("core_only", 50)]
        assert select_variant(variants, "u42") == select_variant(variants, "u42")

    def test_even_split_is_proportional(self) -> None:
        variants = [FlagVariant("full_library", 50), FlagVariant("core_only", 50)]
        counts = Counter(select_variant(variants, u) for u in USERS)
        assert abs(counts["full_library"] / len(USERS) - 0.5) <= 0.05
        assert abs(counts["core_only"] / len(USERS) - 0.5) <= 0.05

    def test_weights_need_not_sum_to_hundred(self) -> None:
        variants = [FlagVariant("a", 1), FlagVariant("b", 3)]
        counts = Counter(select_variant(variants, u) for u in USERS)
        assert abs(counts["a"] / len(USERS) - 0.25) <= 0.05
        assert abs(counts["b"] / len(USERS) - 0.75) <= 0.05

    def test_zero_weight_variant_never_chosen(self) -> None:
        variants = [FlagVariant("never", 0), FlagVariant("always", 10)]
        assert {select_variant(variants, u) for u in USERS[:500]} == {"always"}

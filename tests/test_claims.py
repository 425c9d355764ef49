"""Tests for docground.llm.claims module."""
import logging

import pytest

from docground.llm.claims import ClaimVerdict, KnownSources, classify_claim, validate_claims
from docground.models.grounding import ClaimMapEntry


def entry(claim: str, fact_id: str) -> ClaimMapEntry:
    return ClaimMapEntry(claim=claim, fact_id=fact_id, source_url="https://example.com")


class TestKnownSources:
    def test_empty(self) -> None:
        assert KnownSources([]).is_empty()

    def test_registry_does_not_make_non_empty(self) -> None:
        known = KnownSources([], registry={"abcd1234"})
        assert known.is_empty()
        assert "abcd1234" in known

    def test_membership(self) -> None:
        known = KnownSources(["SRC-1"])
        assert "SRC-1" in known
        assert "SRC-2" not in known


class TestClassifyClaim:
    @pytest.mark.parametrize("source_ids, fact_id, permissive, expected", [
        (["SRC-1"], "SRC-1", False, ClaimVerdict.KNOWN_SOURCE),
        (["SRC-1"], "SRC-1", True, ClaimVerdict.KNOWN_SOURCE),
        ([], "anything", False, ClaimVerdict.NO_SOURCE_CONSTRAINT),
        (["SRC-1"], "SRC-9", False, ClaimVerdict.UNKNOWN_STRICT),
        (["SRC-1"], "SRC-9", True, ClaimVerdict.UNKNOWN_PERMISSIVE),
    ])
    def test_verdicts(self, source_ids, fact_id: str, permissive: bool, expected: ClaimVerdict) -> None:
        assert classify_claim(entry("c", fact_id), KnownSources(source_ids), permissive) == expected


class TestValidateClaims:
    def test_strict_moves_unknown_to_unsourceable(self) -> None:
        entries = [entry("Known claim", "SRC-1"), entry("Invented claim", "SRC-9")]
        kept, unsourceable = validate_claims(entries, KnownSources(["SRC-1"]), allow_training_knowledge=False)

        assert [e.fact_id for e in kept] == ["SRC-1"]
        assert unsourceable == ["Invented claim"]

    def test_permissive_keeps_unknown(self) -> None:
        entries = [entry("Known claim", "SRC-1"), entry("Invented claim", "SRC-9")]
        kept, unsourceable = validate_claims(entries, KnownSources(["SRC-1"]), allow_training_knowledge=True)

        assert kept == entries
        assert unsourceable == []

    def test_empty_source_set_accepts_everything(self) -> None:
        entries = [entry("a", "X"), entry("b", "Y")]
        kept, unsourceable = validate_claims(entries, KnownSources([]), allow_training_knowledge=False)

        assert kept == entries
        assert unsourceable == []

    def test_registry_membership_counts_as_known(self) -> None:
        entries = [entry("Registry claim", "5b0663a0")]
        known = KnownSources(["SRC-1"], registry=frozenset({"5b0663a0"}))
        kept, unsourceable = validate_claims(entries, known, allow_training_knowledge=False)

        assert kept == entries
        assert unsourceable == []

    def test_empty_cache_with_registry_accepts_everything_in_strict_mode(self) -> None:
        entries = [entry("Registry claim", "5b0663a0"), entry("Other claim", "SRC-9")]
        known = KnownSources([], registry=frozenset({"5b0663a0"}))
        kept, unsourceable = validate_claims(entries, known, allow_training_knowledge=False)

        assert kept == entries
        assert unsourceable == []

    def test_reclassification_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="docground.llm.claims"):
            validate_claims([entry("x", "SRC-9")], KnownSources(["SRC-1"]), allow_training_knowledge=False)
        assert "SRC-9" in caplog.text

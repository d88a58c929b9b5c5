"""Tests for device-local autocomplete lists."""

import json

from semesmart.models import Member
from semesmart.services.storage import LocalSuggestionStore, suggest_income_source


class TestLocalSuggestionStore:

    def test_empty_when_missing(self, suggestions):
        assert suggestions.locations() == []
        assert suggestions.income_sources() == []

    def test_sorted_and_deduplicated(self, suggestions):
        suggestions.remember_location("Padaria")
        suggestions.remember_location(" Açougue ")
        suggestions.remember_location("Padaria")
        suggestions.remember_location("   ")
        assert suggestions.locations() == ["Açougue", "Padaria"]

    def test_lists_are_independent(self, suggestions):
        suggestions.remember_income_source("Salário de Ana")
        assert suggestions.locations() == []
        assert suggestions.income_sources() == ["Salário de Ana"]

    def test_file_layout(self, suggestions):
        suggestions.remember_location("Feira")
        content = json.loads(suggestions.path.read_text(encoding="utf-8"))
        assert content == {"transactionLocations": ["Feira"]}

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "suggestions.json"
        path.write_text("{not json", encoding="utf-8")
        store = LocalSuggestionStore(path)

        assert store.locations() == []
        assert store.remember_location("Feira") == ["Feira"]


class TestSuggestIncomeSource:

    def test_member_with_source(self):
        member = Member(id="m1", name="Ana", income_source="Salário")
        assert suggest_income_source(member) == "Salário de Ana"

    def test_member_without_source(self):
        assert suggest_income_source(Member(id="m1", name="Ana")) is None
        assert suggest_income_source(None) is None

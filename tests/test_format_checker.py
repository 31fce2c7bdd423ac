import json

import pytest

from format_checker import FormatChecker, check_legality


@pytest.fixture
def checker():
    return FormatChecker()


def test_legal_deck_passes(checker, legal_deck):
    report = checker.check(legal_deck.cards, "commander", legal_deck.commander)
    assert report.legal
    assert report.get_summary() == "✅ Legal in commander"


def test_missing_commander(legal_deck):
    result = check_legality(legal_deck.cards, "commander", None)
    assert not result.ok
    assert "Commander format requires a commander" in result.issues
    assert "Deck has 99 cards, expected 100" in result.issues


def test_wrong_size(forest, bears, commander):
    result = check_legality([forest(30)] + bears(60), "commander", commander)
    assert result.issues == ("Deck has 90 cards, expected 99",)


def test_singleton_violation_by_quantity(forest, bears, commander, make_card):
    cards = [forest(38)] + bears(59) + [make_card("Sol Ring", 1, "Artifact", quantity=2)]
    result = check_legality(cards, "commander", commander)
    assert result.issues == ("Sol Ring appears 2 times (singleton rule violation)",)


def test_singleton_violation_by_repeated_entries(forest, bears, commander, make_card):
    cards = [forest(37)] + bears(60) + [make_card("Sol Ring", 1, "Artifact"),
                                        make_card("SOL RING", 1, "Artifact")]
    result = check_legality(cards, "commander", commander)
    assert result.issues == ("Sol Ring appears 2 times (singleton rule violation)",)


def test_any_number_cards_are_exempt(forest, bears, commander, make_card):
    rats = make_card("Relentless Rats", 3, "Creature — Rat",
                     "A deck can have any number of cards named Relentless Rats.", quantity=20)
    cards = [forest(39)] + bears(40) + [rats]
    assert check_legality(cards, "commander", commander).ok


def test_color_identity_violation(forest, bears, commander, make_card):
    bolt = make_card("Lightning Bolt", 1, "Instant", "Lightning Bolt deals 3 damage to any target.", colors="R")
    cards = [forest(39)] + bears(59) + [bolt]
    result = check_legality(cards, "commander", commander)
    assert result.issues == ("Lightning Bolt has colors outside commander's identity",)


def test_unknown_format(checker, legal_deck):
    result = checker.check(legal_deck.cards, "Modern", legal_deck.commander).to_result()
    assert result.issues == ("Unknown format: Modern",)
    assert not result.ok


def test_edh_alias(checker, legal_deck):
    assert checker.check(legal_deck.cards, "EDH", legal_deck.commander).legal
    assert checker.get_format_description("edh")


def test_available_formats(checker):
    assert checker.get_available_formats() == ["commander"]
    assert checker.get_format_description("vintage") is None


def test_rules_file(tmp_path, make_card):
    rules = {"brawl": {"description": "Tiny singleton",
                       "deck_construction": {"deck_size_with_commander": 2, "singleton": True},
                       "special_rules": {"commander_required": True, "color_identity": False}}}
    path = tmp_path / "rules.json"
    path.write_text(json.dumps(rules))
    checker = FormatChecker(path)
    cards = [make_card("A", 1), make_card("B", 1)]
    assert checker.check(cards, "brawl", make_card("Boss", 3)).legal


def test_rules_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        FormatChecker(tmp_path / "missing.json")

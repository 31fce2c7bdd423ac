"""Shared fixtures: card factories and sample decks."""

import pytest

from models import Card, Deck


def _card(name, mana_value=0, type_line="Creature", oracle_text="", **kwargs):
    return Card(name=name, mana_value=mana_value, type_line=type_line, oracle_text=oracle_text, **kwargs)


@pytest.fixture
def make_card():
    """Factory for Card records with terse defaults."""
    return _card


@pytest.fixture
def forest():
    def build(quantity=1):
        return _card("Forest", 0, "Basic Land — Forest", quantity=quantity)
    return build


@pytest.fixture
def bears():
    """N distinct vanilla two-drop creatures."""
    def build(count):
        return [_card(f"Bear {i}", 2, "Creature — Bear") for i in range(1, count + 1)]
    return build


@pytest.fixture
def rocks():
    """N distinct two-mana rocks that tap for any color."""
    def build(count):
        return [_card(f"Mana Rock {i}", 2, "Artifact", "{T}: Add one mana of any color.")
                for i in range(1, count + 1)]
    return build


@pytest.fixture
def commander():
    return _card("Test Commander", 3, "Legendary Creature — Elf Druid", colors="G")


@pytest.fixture
def vanilla_cards(forest, bears):
    """40 basic Forests and 60 vanilla bears, no commander (100 cards)."""
    return [forest(40)] + bears(60)


@pytest.fixture
def legal_deck(forest, bears, commander):
    """99 cards plus a commander; legal in Commander."""
    return Deck(cards=[forest(39)] + bears(60), commander=commander, name="Legal Test Deck")


@pytest.fixture
def rock_cards(forest, rocks):
    """40 Forests and 60 mana rocks: nearly every hand is keepable."""
    return [forest(40)] + rocks(60)


@pytest.fixture
def combo_cards(make_card):
    return [
        make_card("Thassa's Oracle", 2, "Creature — Merfolk Wizard",
                  "When Thassa's Oracle enters the battlefield, look at the top X cards of your library. "
                  "If X is greater than or equal to the number of cards in your library, you win the game.",
                  colors="U"),
        make_card("Demonic Consultation", 1, "Instant",
                  "Choose a card name. Exile the top six cards of your library, then reveal cards from "
                  "the top of your library until you reveal a card with the chosen name.",
                  colors="B"),
    ]

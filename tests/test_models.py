import pytest

from models import Card, CoachingOp, CoachingOperation, Deck, InvalidCardError, expand_cards


class TestCardValidation:
    def test_negative_mana_value_rejected(self):
        with pytest.raises(InvalidCardError):
            Card(name="Broken", mana_value=-1)

    def test_non_numeric_mana_value_rejected(self):
        with pytest.raises(InvalidCardError):
            Card(name="Broken", mana_value="2")

    def test_bool_mana_value_rejected(self):
        with pytest.raises(InvalidCardError):
            Card(name="Broken", mana_value=True)

    @pytest.mark.parametrize("mana_value", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_mana_value_rejected(self, mana_value):
        with pytest.raises(InvalidCardError):
            Card(name="Broken", mana_value=mana_value)

    def test_empty_name_rejected(self):
        with pytest.raises(InvalidCardError):
            Card(name="  ")

    def test_unknown_color_rejected(self):
        with pytest.raises(InvalidCardError):
            Card(name="Purple Thing", colors="P")

    def test_quantity_must_be_positive(self):
        with pytest.raises(InvalidCardError):
            Card(name="Forest", type_line="Basic Land — Forest", quantity=0)

    def test_invalid_card_error_is_value_error(self):
        assert issubclass(InvalidCardError, ValueError)

    def test_color_identity_defaults_to_colors(self):
        card = Card(name="Azorius Thing", colors="WU")
        assert card.colors == frozenset({"W", "U"})
        assert card.color_identity == frozenset({"W", "U"})

    def test_keyword_string_is_single_entry(self):
        card = Card(name="Goblin Guide", keywords="Haste")
        assert card.keywords == frozenset({"Haste"})

    def test_none_text_becomes_empty(self):
        card = Card(name="Blank", oracle_text=None)
        assert card.oracle_text == ""


class TestCardProperties:
    def test_enters_tapped_by_text(self):
        land = Card(name="Temple", type_line="Land", oracle_text="Temple enters the battlefield tapped.")
        assert land.enters_tapped

    def test_guildgate_enters_tapped(self):
        assert Card(name="Azorius Guildgate", type_line="Land — Gate").enters_tapped

    def test_power_value_handles_star(self):
        assert Card(name="Tarmogoyf", type_line="Creature", power="*").power_value == 0
        assert Card(name="Emrakul", type_line="Creature", power="15").power_value == 15

    def test_from_scryfall_double_faced(self):
        data = {
            "name": "Delver of Secrets // Insectile Aberration",
            "cmc": 1,
            "type_line": "Creature — Human Wizard // Creature — Human Insect",
            "color_identity": ["U"],
            "card_faces": [
                {"oracle_text": "At the beginning of your upkeep, look at the top card.",
                 "colors": ["U"], "power": "1", "toughness": "1"},
                {"oracle_text": "Flying", "colors": ["U"], "power": "3", "toughness": "2"},
            ],
        }
        card = Card.from_scryfall(data, quantity=1)
        assert card.colors == frozenset({"U"})
        assert "Flying" in card.oracle_text
        assert card.power == "1"
        assert card.mana_value == 1


class TestDeck:
    def test_rejects_non_card_entries(self):
        with pytest.raises(InvalidCardError):
            Deck(cards=["Sol Ring"])

    def test_counts_and_expansion(self, forest, bears, commander):
        deck = Deck(cards=[forest(10)] + bears(5), commander=commander)
        assert deck.total_cards == 15
        assert deck.unique_cards == 6
        assert len(deck.expanded()) == 15
        assert deck.all_cards()[0] == commander
        assert len(deck.all_cards()) == 16

    def test_expand_cards(self, forest):
        assert len(expand_cards([forest(3)])) == 3


def test_coaching_priority_bounds():
    with pytest.raises(ValueError):
        CoachingOperation(op=CoachingOp.IMPROVE_CURVE, reason="x", priority=0)
    with pytest.raises(ValueError):
        CoachingOperation(op=CoachingOp.IMPROVE_CURVE, reason="x", priority=11)


def test_coaching_operation_to_dict_skips_unset_fields():
    op = CoachingOperation(op=CoachingOp.ADD_ROLE, reason="r", priority=5, role="tutor", qty=2)
    assert op.to_dict() == {"op": "add_role", "reason": "r", "priority": 5, "role": "tutor", "qty": 2}

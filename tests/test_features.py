import pytest

from card_lists import FeatureKind
from features import (
    FEATURE_FUNCTIONS,
    extract_features,
    fast_mana_index,
    find_game_changers,
    find_tutors,
    interaction_density,
    mana_quality,
    resilience_index,
    synergy_score,
    tutor_density,
    wincon_compactness,
)

FEATURE_NAMES = [kind.value for kind in FeatureKind]


def _values(features):
    return {name: getattr(features, name) for name in FEATURE_NAMES}


def test_every_feature_kind_has_a_function():
    assert set(FEATURE_FUNCTIONS) == set(FeatureKind)


def test_empty_deck_is_all_zero_except_neutral_synergy():
    values = _values(extract_features([]))
    assert values.pop("synergy_score") == 50.0
    assert all(value == 0 for value in values.values())


def test_lands_only_deck(forest):
    values = _values(extract_features([forest(100)]))
    assert values["mana_quality"] == 0
    assert values["resilience_index"] == 0
    assert values["speed_proxy"] == 0


def test_vanilla_deck_values(vanilla_cards):
    features = extract_features(vanilla_cards)
    assert features.speed_proxy == pytest.approx(90)
    assert features.mana_quality == pytest.approx(92)
    assert features.consistency_metrics == pytest.approx(50)
    assert features.synergy_score == 50
    assert features.interaction_density == 0
    assert features.tutor_density == 0


def test_features_stay_in_bounds_for_heavy_text(make_card, forest):
    wall = ("Counter target spell. Destroy target creature. Exile all creatures. Search your library "
            "for any card. Draw a card for each opponent. Whenever you cast a spell, draw an additional "
            "card. Hexproof, indestructible, protection from everything. Return target card from your "
            "graveyard to your hand. Spells cost {1} more mana. Players can't untap. ") * 20
    cards = [forest(30)] + [make_card(f"Everything {i}", 0, "Artifact Creature", wall, power="30")
                            for i in range(70)]
    for name, value in _values(extract_features(cards)).items():
        assert 0 <= value <= 100, name


def test_adding_sol_ring_raises_fast_mana(vanilla_cards, make_card):
    sol_ring = make_card("Sol Ring", 1, "Artifact", "{T}: Add {C}{C}.")
    before = fast_mana_index(vanilla_cards)
    after = fast_mana_index(vanilla_cards + [sol_ring])
    assert after == before + 15


def test_catalog_match_is_case_insensitive(make_card):
    assert fast_mana_index([make_card("SOL RING", 1, "Artifact")]) == 15


def test_heuristic_tutor_ignores_land_searches(make_card):
    ramp = make_card("Cultivate", 3, "Sorcery",
                     "Search your library for up to two basic land cards, reveal those cards.")
    tutor = make_card("Homemade Tutor", 2, "Sorcery",
                      "Search your library for any card, put it into your hand, then shuffle.")
    assert tutor_density([ramp]) == 0
    assert tutor_density([tutor]) == 8


def test_cheap_counterspell_counts_more(make_card):
    cheap = make_card("Cheap Counter", 2, "Instant", "Counter target spell.")
    pricey = make_card("Pricey Counter", 4, "Instant", "Counter target spell.")
    assert interaction_density([cheap]) > interaction_density([pricey])


def test_known_combo_adds_compactness(combo_cards):
    # 25 for the combo, 10 for "win the game" text
    assert wincon_compactness(combo_cards) == 35


def test_lands_are_not_free_spells(forest, make_card):
    assert resilience_index([forest(10)]) == 0
    assert resilience_index([make_card("Memnite", 0, "Artifact Creature — Golem")]) == 4


def test_tapped_lands_lower_mana_quality(make_card, bears):
    untapped = [make_card(f"Land {i}", 0, "Land") for i in range(36)]
    tapped = [make_card(f"Land {i}", 0, "Land", "This land enters tapped.") for i in range(36)]
    assert mana_quality(tapped + bears(64)) < mana_quality(untapped + bears(64))


def test_synergy_overlap_with_commander(make_card):
    commander = make_card("Counters Commander", 3, "Legendary Creature",
                          "Put a +1/+1 counter on target creature.")
    matching = make_card("Counter Friend", 2, "Creature", "Put a +1/+1 counter on it.")
    other = make_card("Loner", 2, "Creature", "")
    assert synergy_score([matching], commander) == 100
    assert synergy_score([other], commander) == 0
    assert synergy_score([], commander) == 0


def test_find_tutors_reports_tiers(make_card):
    cards = [
        make_card("Demonic Tutor", 2, "Sorcery", "Search your library for a card."),
        make_card("Demonic Tutor", 2, "Sorcery", "Search your library for a card."),
        make_card("Homemade Tutor", 2, "Sorcery", "Search your library for any card."),
    ]
    tutors = find_tutors(cards)
    assert [(t.name, t.tier) for t in tutors] == [("Demonic Tutor", "premium"), ("Homemade Tutor", "heuristic")]
    assert sum(t.quality for t in tutors) == 2.5


def test_game_changers_capped_per_class(make_card):
    names = ["Rhystic Study", "Smothering Tithe", "The One Ring", "Necropotence", "Sylvan Library"]
    found = find_game_changers([make_card(name, 3, "Enchantment") for name in names])
    assert len(found) == 3
    assert {gc.category for gc in found} == {"inevitability_engines"}


def test_commander_is_scanned(make_card):
    commander = make_card("Sol Ring", 1, "Artifact")
    assert extract_features([], commander).fast_mana_index == 15


def test_extraction_is_deterministic(vanilla_cards, combo_cards):
    cards = vanilla_cards + combo_cards
    assert extract_features(cards) == extract_features(cards)

import pytest

from synergy import (
    MECHANIC_SYNERGIES,
    analyze_synergy,
    card_mechanics,
    card_pair_synergy,
    extract_mechanics,
    extract_themes,
    generate_synergy_summary,
    get_default_archetypes,
)


@pytest.fixture
def affinity_cards(make_card):
    affinity = [
        make_card(name, 4, "Artifact Creature — Construct", "Affinity for artifacts", keywords={"Affinity"})
        for name in ("Frogmite", "Myr Enforcer", "Somber Hoverguard")
    ]
    plain = [make_card(name, 0, "Artifact Creature — Thopter") for name in ("Ornithopter", "Memnite")]
    return affinity + plain


def test_empty_deck_has_no_synergy():
    analysis = analyze_synergy([])
    assert analysis.total_synergy_score == 0
    assert analysis.strongest_synergies == ()
    assert analysis.archetype_matches == ()
    assert analysis.improvement_suggestions == ()
    assert analysis.mechanic_clusters == ()
    assert analysis.combo_presence is False


def test_card_mechanics_from_text_and_types(make_card):
    card = make_card("Elvish Visionary", 2, "Creature — Elf Shaman",
                     "When Elvish Visionary enters the battlefield, draw a card.")
    assert card_mechanics(card) == {"etb", "card-draw", "tribal-elf", "tribal-shaman"}


def test_extract_mechanics_counts_quantity(make_card):
    goblins = make_card("Goblin Token Maker", 3, "Sorcery", "Create two 1/1 red Goblin creature tokens.",
                        quantity=3)
    counts, members = extract_mechanics([goblins])
    assert counts["tokens"] == 3
    assert members["tokens"] == ["Goblin Token Maker"]


def test_themes(affinity_cards):
    assert extract_themes(affinity_cards) == ["creature-based", "low-curve"]


def test_affinity_deck(affinity_cards):
    analysis = analyze_synergy(affinity_cards)

    assert analysis.mechanics == {"affinity": 3, "artifact": 5}
    top_pair = analysis.strongest_synergies[0]
    assert (top_pair.card_a, top_pair.card_b) == ("affinity", "artifact")
    assert top_pair.strength == pytest.approx(4.8)
    assert top_pair.description == "affinity synergizes with artifact"
    assert analysis.total_synergy_score == pytest.approx(4.8)

    top = analysis.archetype_matches[0]
    assert top.name == "Artifacts"
    assert top.confidence == pytest.approx(68.5)
    assert top.missing_cards == ("Cards with metalcraft",)
    assert len(analysis.archetype_matches) <= 5

    first = analysis.improvement_suggestions[0]
    assert first.type == "add"
    assert first.reason == "Strengthen Artifacts strategy"
    assert first.priority == 8
    assert [s.priority for s in analysis.improvement_suggestions] == [8, 3]

    clusters = {c.mechanic: c for c in analysis.mechanic_clusters}
    assert clusters["artifact"].coverage == 100
    assert clusters["affinity"].coverage == pytest.approx(60)
    assert clusters["affinity"].potential == pytest.approx(68)
    assert len(clusters["affinity"].cards) == 3


def test_card_pair_synergy(make_card):
    a = make_card("Goblin Guide", 1, "Creature — Goblin Scout", colors="R", keywords={"Haste"})
    b = make_card("Monastery Swiftspear", 1, "Creature — Human Monk", colors="R", keywords={"Haste"})
    pair = card_pair_synergy(a, b)
    assert pair.strength == 5
    assert pair.synergy_type == "mechanical"
    assert pair.description == "Both are creatures Similar mana costs Shared mechanics: Haste"


def test_unrelated_cards_have_generic_synergy(make_card):
    pair = card_pair_synergy(make_card("Big", 9, "Sorcery"), make_card("Small", 1, "Instant"))
    assert pair.strength == 0
    assert pair.description == "Generic synergy"


def test_combo_detection(vanilla_cards, combo_cards):
    analysis = analyze_synergy(vanilla_cards + combo_cards)
    assert analysis.combo_presence is True
    assert analysis.compact_combo_count == 1


def test_commander_is_included(make_card):
    commander = make_card("Krenko, Mob Boss", 4, "Legendary Creature — Goblin Warrior",
                          "{T}: Create X 1/1 red Goblin creature tokens.", colors="R")
    analysis = analyze_synergy([], commander=commander)
    assert analysis.mechanics["tribal-goblin"] == 1
    assert analysis.mechanics["tokens"] == 1


def test_analysis_is_deterministic(affinity_cards):
    assert analyze_synergy(affinity_cards) == analyze_synergy(affinity_cards)


def test_archetype_definitions_reference_known_categories():
    categories = {a.category for a in get_default_archetypes()}
    assert categories <= {"aggro", "control", "midrange", "combo", "tribal", "ramp", "tempo"}
    assert all(rule.strength <= 10 for rule in MECHANIC_SYNERGIES.values())


def test_summary_mentions_top_archetype(affinity_cards):
    summary = generate_synergy_summary(analyze_synergy(affinity_cards))
    assert "SYNERGY ANALYSIS" in summary
    assert "Artifacts" in summary

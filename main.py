#!/usr/bin/env python3
"""
EDH Power Analyzer - Score Commander decklists from 1 to 10
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from analyzer import DeckAnalyzer, DeckReport
from coach import format_recommendations
from deck_parser import parse_decklist
from power_calculator import DEFAULT_CONFIG, load_config
from scryfall_api import ScryfallAPI
from simulation import DEFAULT_ITERATIONS, DEFAULT_SEED
from synergy import generate_synergy_summary


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logging for the command line."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


def print_report(report: DeckReport, missing_cards=()):
    """Print the formatted power and synergy report."""
    score = report.power

    print("\n" + "=" * 60)
    print(f"🃏 EDH POWER ANALYSIS{f' - {report.deck_name}' if report.deck_name else ''}")
    print("=" * 60)

    print(f"\n⚡ POWER: {score.power:.1f} / 10 ({score.band.upper()})")

    print("\n📊 SUBSCORES")
    for name, value in score.subscores.as_dict().items():
        bar = "█" * int(value // 5)
        print(f"   {name:<15} {value:5.1f} |{bar}")

    play = score.playability
    print(f"\n🎲 OPENING HANDS ({play.iterations} hands, seed {play.seed})")
    print(f"   Keepable 7: {play.keepable7_pct:.1f}%")
    print(f"   Turn 1 land: {play.t1_color_hit_pct:.1f}%")
    print(f"   Two colors by turn 2: {play.t2_two_colors_hit_pct:.1f}%")
    print(f"   Untapped lands: {play.untapped_land_ratio:.1f}%")
    print(f"   Average mana value: {play.avg_cmc:.2f}")
    print(f"   Rocks and dorks: {play.rocks_dorks_count}")
    print(f"   Expected goldfish win: turn {score.goldfish.exp_win_turn:.1f}")

    if score.drivers:
        print("\n💪 DRIVERS")
        for driver in score.drivers:
            print(f"   + {driver}")
    if score.drags:
        print("\n🐢 DRAGS")
        for drag in score.drags:
            print(f"   - {drag}")

    print(f"\n⚖️  LEGALITY: {'✅ Legal' if score.legality.ok else '❌ Illegal'}")
    for issue in score.legality.issues:
        print(f"   - {issue}")

    if score.flags.no_tutors or score.flags.no_game_changers:
        print("\n🚩 FLAGS")
        if score.flags.no_tutors:
            print(f"   Low tutor quality for {score.band} ({score.diagnostics.tutor_quality:.1f})")
        if score.flags.no_game_changers:
            print(f"   Few game changers for {score.band} ({score.diagnostics.game_changer_count})")

    if score.recommendations:
        print("\n🎯 COACHING")
        for line in format_recommendations(score.recommendations):
            print(f"   {line}")
        for op in score.coaching_operations:
            print(f"   [{op.priority}] {op.op.value}: {op.reason}")
    if report.quick_fixes:
        print("\n🔧 QUICK FIXES")
        for fix in report.quick_fixes:
            print(f"   - {fix}")

    print()
    print(generate_synergy_summary(report.synergy))

    if missing_cards:
        print("\n⚠️  MISSING CARDS")
        print(f"   Could not find information for {len(missing_cards)} cards:")
        for card in missing_cards:
            print(f"   - {card}")

    print("\n" + "=" * 60)


def main(argv=None):
    """Main entry point for the power analyzer."""

    parser = argparse.ArgumentParser(
        description="Estimate the power level of Commander decklists",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py my_deck.txt
  python main.py my_deck.txt --commander "Atraxa, Praetors' Voice" --target 6
  python main.py my_deck.txt --seed 7 --iterations 20000 --json

Supported formats:
  - "1 Card Name"
  - "1x Card Name (SET) 123"
  - "Card Name" (assumes quantity 1)
  - A "Commander" section header selects the commander

The program will automatically fetch card information from Scryfall.
        """
    )

    parser.add_argument('decklist', help='Path to the decklist file')
    parser.add_argument('--commander', help='Commander name (overrides the decklist)')
    parser.add_argument('--format', default='commander', help='Format to check legality against')
    parser.add_argument('--seed', type=int, default=DEFAULT_SEED, help='Simulation seed')
    parser.add_argument('--iterations', type=int, default=DEFAULT_ITERATIONS, help='Simulated opening hands')
    parser.add_argument('--target', type=float, help='Target power (1-10) for coaching')
    parser.add_argument('--config', help='JSON file with weights, thresholds and logistic overrides')
    parser.add_argument('--json', action='store_true', help='Print the report as JSON')
    parser.add_argument('-v', '--verbose', action='store_true', help='Show debug logging')
    parser.add_argument('-q', '--quiet', action='store_true', help='Only log errors')

    args = parser.parse_args(argv)
    setup_logging(args.verbose, args.quiet)

    decklist_path = Path(args.decklist)
    if not decklist_path.exists():
        print(f"Error: Decklist file '{args.decklist}' not found.")
        sys.exit(1)

    try:
        config = load_config(args.config) if args.config else DEFAULT_CONFIG

        if not args.json:
            print(f"📄 Parsing decklist: {decklist_path.name}")
        entries = parse_decklist(decklist_path)
        if args.commander:
            entries.commander = args.commander

        if not args.json:
            print("🌐 Connecting to Scryfall API...")
        deck, missing = ScryfallAPI().build_deck(entries, format=args.format)

        analyzer = DeckAnalyzer(config=config, seed=args.seed, iterations=args.iterations)
        report = analyzer.analyze(deck, target_power=args.target)

        if args.json:
            data = report.to_dict()
            data["missing_cards"] = missing
            print(json.dumps(data, indent=2))
        else:
            print_report(report, missing)
            print(f"✅ Analysis complete! Power {report.power.power:.1f} ({report.power.band}).")

    except Exception as e:
        print(f"❌ Error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()

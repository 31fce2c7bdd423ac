"""
Deck list parsing utilities for Magic: The Gathering.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class DecklistEntries:
    """Card names and quantities read from a decklist, before card lookup."""
    cards: Dict[str, int]
    commander: Optional[str] = None
    name: Optional[str] = None
    card_sets: Dict[str, str] = field(default_factory=dict)

    @property
    def total_cards(self) -> int:
        return sum(self.cards.values())


class DeckParser:
    """Parser for various Magic: The Gathering decklist formats."""

    def __init__(self):
        # Regex patterns for different decklist formats
        self.patterns = [
            # "1 Card Name (SET) 123 *F*" - full format with set and collector number
            re.compile(r'^(\d+)x?\s+(.+?)\s+\(([A-Z0-9]+)\)\s+\d+(?:\s+\*[A-Z]*\*)?$', re.IGNORECASE),
            # "1 Card Name (SET)" - format with set but no collector number
            re.compile(r'^(\d+)x?\s+(.+?)\s+\(([A-Z0-9]+)\)$', re.IGNORECASE),
            # "1 Card Name" or "1x Card Name"
            re.compile(r'^(\d+)x?\s+(.+)$', re.IGNORECASE),
            # "Card Name" (assumes quantity 1)
            re.compile(r'^([^0-9]+)$'),
        ]

        # Lines to ignore (comments, empty lines)
        self.ignore_patterns = [
            re.compile(r'^\s*$'),
            re.compile(r'^\s*#'),
            re.compile(r'^\s*//'),
        ]

        # "Commander", "Deck:", "Sideboard" ... optionally followed by "Commander: Name"
        self.section_pattern = re.compile(
            r'^(commanders?|deck|main|mainboard|sideboard|maybeboard)\s*:?\s*(.*)$', re.IGNORECASE
        )

    def parse_file(self, file_path: Union[str, Path]) -> DecklistEntries:
        """
        Parse a decklist file.

        Args:
            file_path: Path to the decklist file

        Returns:
            DecklistEntries with the deck name taken from the file name

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If no cards could be parsed
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Decklist file not found: {file_path}")

        try:
            text = path.read_text(encoding='utf-8')
        except UnicodeDecodeError:
            text = path.read_text(encoding='latin-1')

        # Deck name from file name, removing extension and replacing underscores/hyphens
        deck_name = path.stem.replace('_', ' ').replace('-', ' ').title()
        return self.parse_text(text, name=deck_name, source=str(file_path))

    def parse_text(self, text: str, name: Optional[str] = None, source: str = "decklist") -> DecklistEntries:
        """
        Parse decklist text.

        Cards listed under a "Commander" header (or on a "Commander: Name"
        line) set the commander; sideboard and maybeboard sections are skipped.

        Raises:
            ValueError: If no cards could be parsed
        """
        cards: Dict[str, int] = {}
        card_sets: Dict[str, str] = {}
        commanders: List[str] = []
        section = "main"

        for line_num, raw_line in enumerate(text.splitlines(), 1):
            line = raw_line.strip()
            if self._should_ignore_line(line):
                continue

            header = self.section_pattern.match(line)
            if header and not header.group(2):
                section = self._section_name(header.group(1))
                continue
            if header and line.lower().startswith("commander") and ":" in line:
                line = header.group(2).strip()
                section_for_line = "commander"
            else:
                section_for_line = section

            if section_for_line == "skip":
                continue

            parsed = self._parse_line(line)
            if parsed is None:
                logger.warning("%s line %d: could not parse %r", source, line_num, raw_line)
                continue

            if len(parsed) == 3:
                quantity, card_name, set_code = parsed
                card_sets[card_name] = set_code
            else:
                quantity, card_name = parsed

            if section_for_line == "commander":
                commanders.append(card_name)
                continue

            cards[card_name] = cards.get(card_name, 0) + quantity

        if not cards:
            raise ValueError(f"No valid cards found in {source}")
        if len(commanders) > 1:
            logger.warning("%s lists %d commanders; using %s", source, len(commanders), commanders[0])

        return DecklistEntries(
            cards=cards,
            commander=commanders[0] if commanders else None,
            name=name,
            card_sets=card_sets,
        )

    @staticmethod
    def _section_name(header: str) -> str:
        header = header.lower()
        if header.startswith("commander"):
            return "commander"
        if header in ("sideboard", "maybeboard"):
            return "skip"
        return "main"

    def _should_ignore_line(self, line: str) -> bool:
        """Check if a line should be ignored during parsing."""
        for pattern in self.ignore_patterns:
            if pattern.match(line):
                return True
        return False

    def _parse_line(self, line: str) -> Optional[tuple]:
        """
        Parse a single line of a decklist.

        Returns:
            Tuple of (quantity, card_name, set_code) when a set is given
            or (quantity, card_name) otherwise
            or None if parsing failed
        """
        line = line.strip()

        # Try format with set and collector number first
        match = self.patterns[0].match(line)
        if match:
            return int(match.group(1)), self._clean_card_name(match.group(2)), match.group(3).upper()

        # Try format with just set code
        match = self.patterns[1].match(line)
        if match:
            return int(match.group(1)), self._clean_card_name(match.group(2)), match.group(3).upper()

        # Try "1 Card Name" format
        match = self.patterns[2].match(line)
        if match:
            quantity = int(match.group(1))
            if quantity < 1:
                return None
            return quantity, self._clean_card_name(match.group(2))

        # Try "Card Name" format (quantity = 1)
        match = self.patterns[3].match(line)
        if match:
            card_name = self._clean_card_name(match.group(1))
            # Skip very short names (likely parsing errors)
            if len(card_name) >= 2:
                return 1, card_name

        return None

    def _clean_card_name(self, name: str) -> str:
        """Clean up card name by removing extra whitespace."""
        return re.sub(r'\s+', ' ', name).strip()


def parse_decklist(file_path: Union[str, Path]) -> DecklistEntries:
    """
    Convenience function to parse a decklist file.

    Args:
        file_path: Path to the decklist file

    Returns:
        DecklistEntries
    """
    parser = DeckParser()
    return parser.parse_file(file_path)

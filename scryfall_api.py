"""
Scryfall API client for fetching Magic: The Gathering card information.
"""

import logging
import random
import time
from typing import Dict, List, Optional, Tuple

import requests

from deck_parser import DecklistEntries
from models import Card, Deck, InvalidCardError

logger = logging.getLogger(__name__)


class ScryfallAPI:
    """Client for interacting with the Scryfall API."""

    def __init__(self, base_url: str = "https://api.scryfall.com", min_delay: float = 0.1):
        self.base_url = base_url
        self.headers = {
            'User-Agent': 'EDHPowerAnalyzer/1.0',
            'Accept': 'application/json;q=0.9,*/*;q=0.8'
        }
        self.cache: Dict[str, Dict] = {}
        self.last_request_time = 0.0
        self.min_delay = min_delay  # 100ms between requests (10 req/sec max)

    def _make_request_with_retry(self, url: str, params: Dict, max_retries: int = 3) -> Optional[requests.Response]:
        """
        Make a request with exponential backoff retry for rate limiting.

        Args:
            url: The URL to request
            params: Query parameters
            max_retries: Maximum number of retry attempts

        Returns:
            Response object for 200/404, None if all retries failed
        """
        for attempt in range(max_retries + 1):
            # Rate limiting - ensure we don't exceed our request rate
            time_since_last = time.time() - self.last_request_time
            if time_since_last < self.min_delay:
                time.sleep(self.min_delay - time_since_last)

            try:
                self.last_request_time = time.time()
                response = requests.get(url, headers=self.headers, params=params, timeout=10)
            except requests.RequestException as e:
                if attempt < max_retries:
                    wait_time = 2 ** attempt + random.uniform(0, 1)
                    logger.debug("Request error (%s); retrying in %.1fs", e, wait_time)
                    time.sleep(wait_time)
                    continue
                logger.warning("Giving up on %s %s after %d attempts: %s", url, params, attempt + 1, e)
                return None

            if response.status_code in (200, 404):
                return response

            if response.status_code == 429 and attempt < max_retries:
                retry_after = response.headers.get('Retry-After')
                try:
                    wait_time = float(retry_after) if retry_after else 2 ** attempt + random.uniform(0, 1)
                except ValueError:
                    wait_time = 2 ** attempt
                logger.debug("Rate limited by Scryfall; waiting %.1fs", wait_time)
                time.sleep(wait_time)
                continue

            logger.warning("Scryfall returned HTTP %d for %s", response.status_code, params)
            return None

        return None

    def _fetch_card_data(self, card_name: str, set_code: Optional[str] = None) -> Optional[Dict]:
        params = {'exact': card_name}
        if set_code:
            params['set'] = set_code.lower()
        response = self._make_request_with_retry(f"{self.base_url}/cards/named", params)
        if response is None or response.status_code != 200:
            return None
        return response.json()

    def get_card_data(self, card_name: str, set_code: Optional[str] = None) -> Optional[Dict]:
        """
        Raw Scryfall card object, cached per (name, set).

        A set-specific lookup falls back to the general lookup by name.
        """
        cache_key = f"{card_name}|{set_code}" if set_code else card_name
        if cache_key in self.cache:
            return self.cache[cache_key]

        data = None
        if set_code:
            data = self._fetch_card_data(card_name, set_code)
        if data is None:
            data = self._fetch_card_data(card_name)

        if data is not None:
            self.cache[cache_key] = data
        return data

    def get_card(self, card_name: str, set_code: Optional[str] = None, quantity: int = 1) -> Optional[Card]:
        """
        Fetch a card record from Scryfall.

        Args:
            card_name: The exact name of the card to fetch
            set_code: Optional set code for a specific printing
            quantity: Copies the returned record stands for

        Returns:
            Card if found, None otherwise
        """
        data = self.get_card_data(card_name, set_code)
        if data is None:
            logger.info("Card not found on Scryfall: %s", card_name)
            return None
        try:
            return Card.from_scryfall(data, quantity=quantity)
        except (InvalidCardError, KeyError) as e:
            logger.warning("Skipping malformed Scryfall data for %s: %s", card_name, e)
            return None

    def build_deck(self, entries: DecklistEntries, format: str = "commander") -> Tuple[Deck, List[str]]:
        """
        Look up every entry and assemble a Deck.

        Returns:
            (deck, names that could not be found)
        """
        cards: List[Card] = []
        missing: List[str] = []
        for card_name, quantity in entries.cards.items():
            card = self.get_card(card_name, entries.card_sets.get(card_name), quantity=quantity)
            if card is None:
                missing.append(card_name)
            else:
                cards.append(card)

        commander = None
        if entries.commander:
            commander = self.get_card(entries.commander, entries.card_sets.get(entries.commander))
            if commander is None:
                missing.append(entries.commander)

        if missing:
            logger.warning("%d cards could not be found: %s", len(missing), ", ".join(missing))
        return Deck(cards=cards, commander=commander, format=format, name=entries.name), missing

"""
Brand to client matching.

Brand text in client spreadsheets rarely matches the company name on file
("ACME", "Acme Co.", "Acme Wines LLC"). Suggestions are resolved in order:

    exact  - normalized brand equals normalized company name
    alias  - normalized brand equals a previously confirmed alias
    fuzzy  - substring, shared first word, or token_set_ratio >= threshold
    none   - operator must pick a client or create one

Read-only: aliases are written by the reconciliation step once the operator
confirms a mapping.
"""

from typing import Iterable, Optional
import structlog
from rapidfuzz import fuzz

from models.client import BrandAlias, ClientForMatching
from models.spreadsheet_import import BrandConfidence, BrandSuggestion, ParsedRow
from utils.text_utils import normalize_brand

logger = structlog.get_logger(__name__)

DEFAULT_FUZZY_THRESHOLD = 85

# Shorter keys match too many company names
MIN_FUZZY_KEY_LENGTH = 3


def unique_brands(rows: Iterable[ParsedRow]) -> list[str]:
    """
    Distinct non-blank brands in order of first appearance.

    Spelling variants that normalize to the same key collapse to the first
    one seen.
    """
    seen: set[str] = set()
    brands = []
    for row in rows:
        key = normalize_brand(row.brand)
        if key and key not in seen:
            seen.add(key)
            brands.append(row.brand)
    return brands


def match_brands(
    brands: list[str],
    clients: list[ClientForMatching],
    aliases: Optional[list[BrandAlias]] = None,
    fuzzy_threshold: int = DEFAULT_FUZZY_THRESHOLD,
) -> list[BrandSuggestion]:
    """
    Suggest a client for each brand.

    Args:
        brands: Distinct brand strings from the sheet
        clients: Active clients
        aliases: Stored brand aliases
        fuzzy_threshold: Minimum token_set_ratio for a fuzzy match

    Returns:
        One BrandSuggestion per brand, same order
    """
    clients_by_key: dict[str, ClientForMatching] = {}
    for client in sorted(clients, key=lambda c: c.company_name.casefold()):
        clients_by_key.setdefault(normalize_brand(client.company_name), client)

    active_ids = {c.id: c for c in clients}
    alias_clients: dict[str, ClientForMatching] = {}
    for alias in aliases or []:
        client = active_ids.get(alias.client_id)
        if client is not None:
            alias_clients[normalize_brand(alias.alias)] = client

    suggestions = [
        _match_one(brand, clients_by_key, alias_clients, fuzzy_threshold)
        for brand in brands
    ]

    logger.info(
        "brands_matched",
        total=len(suggestions),
        matched=sum(1 for s in suggestions if s.client_id),
    )

    return suggestions


def _match_one(
    brand: str,
    clients_by_key: dict[str, ClientForMatching],
    alias_clients: dict[str, ClientForMatching],
    fuzzy_threshold: int,
) -> BrandSuggestion:
    key = normalize_brand(brand)
    if not key:
        return BrandSuggestion(brand=brand)

    client = clients_by_key.get(key)
    if client:
        return _suggestion(brand, client, BrandConfidence.EXACT, 100.0)

    client = alias_clients.get(key)
    if client:
        return _suggestion(brand, client, BrandConfidence.ALIAS, 100.0)

    if len(key) < MIN_FUZZY_KEY_LENGTH:
        return BrandSuggestion(brand=brand)

    best: Optional[tuple[float, str, ClientForMatching]] = None
    for client_key, client in clients_by_key.items():
        score = float(fuzz.token_set_ratio(key, client_key))
        if not (score >= fuzzy_threshold or _partial_match(key, client_key)):
            continue
        # Highest score, then alphabetical client name
        candidate = (-score, client.company_name.casefold(), client)
        if best is None or candidate[:2] < best[:2]:
            best = candidate

    if best:
        return _suggestion(brand, best[2], BrandConfidence.FUZZY, round(-best[0], 1))

    return BrandSuggestion(brand=brand)


def _partial_match(brand_key: str, client_key: str) -> bool:
    """Substring either way, or same first word."""
    if brand_key in client_key:
        return True
    if len(client_key) >= MIN_FUZZY_KEY_LENGTH and client_key in brand_key:
        return True
    brand_first = brand_key.split(" ")[0]
    client_first = client_key.split(" ")[0]
    return len(brand_first) >= MIN_FUZZY_KEY_LENGTH and brand_first == client_first


def _suggestion(
    brand: str,
    client: ClientForMatching,
    confidence: BrandConfidence,
    score: float,
) -> BrandSuggestion:
    return BrandSuggestion(
        brand=brand,
        client_id=client.id,
        client_name=client.company_name,
        confidence=confidence,
        score=score,
    )

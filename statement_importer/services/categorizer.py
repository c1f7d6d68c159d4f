"""Keyword and lookup-table transaction categorization."""

import logging
import re
import unicodedata
from typing import Optional

from statement_importer.models import TransactionCategory

logger = logging.getLogger(__name__)


# Known subscription services - these should always be categorized as Subscriptions
KNOWN_SUBSCRIPTIONS = [
    # Streaming - Video
    "netflix", "disney+", "disney plus", "hbo max", "globoplay", "paramount+",
    "prime video", "amazon prime", "apple tv", "crunchyroll", "youtube premium",
    "star+", "telecine", "mubi",

    # Streaming - Music
    "spotify", "deezer", "apple music", "youtube music", "tidal", "audible",

    # Software/Cloud
    "adobe", "microsoft 365", "office 365", "dropbox", "google one", "icloud",
    "github", "notion", "canva", "1password", "chatgpt", "openai",

    # Education
    "duolingo", "coursera", "udemy", "alura",

    # Gaming
    "xbox game pass", "playstation plus", "ps plus", "nintendo switch online",
]


# Keyword heuristics, checked in order. Short tokens are matched as whole words.
KEYWORD_CATEGORIES: dict[str, TransactionCategory] = {
    # Transport
    "uber": TransactionCategory.TRANSPORT,
    "99": TransactionCategory.TRANSPORT,
    "99pop": TransactionCategory.TRANSPORT,
    "taxi": TransactionCategory.TRANSPORT,
    "táxi": TransactionCategory.TRANSPORT,
    "metro": TransactionCategory.TRANSPORT,
    "metrô": TransactionCategory.TRANSPORT,
    "estacionamento": TransactionCategory.TRANSPORT,
    "pedagio": TransactionCategory.TRANSPORT,
    "pedágio": TransactionCategory.TRANSPORT,
    "sem parar": TransactionCategory.TRANSPORT,
    "lyft": TransactionCategory.TRANSPORT,

    # Fuel
    "posto": TransactionCategory.FUEL,
    "gasolina": TransactionCategory.FUEL,
    "combustivel": TransactionCategory.FUEL,
    "combustível": TransactionCategory.FUEL,
    "shell": TransactionCategory.FUEL,
    "ipiranga": TransactionCategory.FUEL,
    "petrobras": TransactionCategory.FUEL,

    # Food
    "ifood": TransactionCategory.FOOD,
    "rappi": TransactionCategory.FOOD,
    "restaurante": TransactionCategory.FOOD,
    "lanchonete": TransactionCategory.FOOD,
    "pizzaria": TransactionCategory.FOOD,
    "delivery": TransactionCategory.FOOD,
    "padaria": TransactionCategory.FOOD,
    "cafeteria": TransactionCategory.FOOD,
    "mcdonald": TransactionCategory.FOOD,
    "burger king": TransactionCategory.FOOD,
    "starbucks": TransactionCategory.FOOD,

    # Groceries
    "supermercado": TransactionCategory.GROCERIES,
    "mercado": TransactionCategory.GROCERIES,
    "hortifruti": TransactionCategory.GROCERIES,
    "açougue": TransactionCategory.GROCERIES,
    "acougue": TransactionCategory.GROCERIES,
    "atacadão": TransactionCategory.GROCERIES,
    "assai": TransactionCategory.GROCERIES,
    "carrefour": TransactionCategory.GROCERIES,
    "pão de açúcar": TransactionCategory.GROCERIES,

    # Health
    "farmacia": TransactionCategory.HEALTH,
    "farmácia": TransactionCategory.HEALTH,
    "drogaria": TransactionCategory.HEALTH,
    "drogasil": TransactionCategory.HEALTH,
    "hospital": TransactionCategory.HEALTH,
    "clinica": TransactionCategory.HEALTH,
    "clínica": TransactionCategory.HEALTH,
    "medico": TransactionCategory.HEALTH,
    "médico": TransactionCategory.HEALTH,
    "laboratorio": TransactionCategory.HEALTH,
    "academia": TransactionCategory.HEALTH,
    "gym": TransactionCategory.HEALTH,
    "smart fit": TransactionCategory.HEALTH,

    # Education
    "livraria": TransactionCategory.EDUCATION,
    "livro": TransactionCategory.EDUCATION,
    "curso": TransactionCategory.EDUCATION,
    "faculdade": TransactionCategory.EDUCATION,
    "escola": TransactionCategory.EDUCATION,

    # Leisure
    "cinema": TransactionCategory.LEISURE,
    "cinemark": TransactionCategory.LEISURE,
    "teatro": TransactionCategory.LEISURE,
    "show": TransactionCategory.LEISURE,
    "ingresso": TransactionCategory.LEISURE,
    "steam": TransactionCategory.LEISURE,

    # Travel
    "hotel": TransactionCategory.TRAVEL,
    "airbnb": TransactionCategory.TRAVEL,
    "booking.com": TransactionCategory.TRAVEL,
    "latam": TransactionCategory.TRAVEL,
    "gol linhas": TransactionCategory.TRAVEL,
    "azul linhas": TransactionCategory.TRAVEL,
    "decolar": TransactionCategory.TRAVEL,

    # Housing / Home
    "aluguel": TransactionCategory.HOUSING,
    "condominio": TransactionCategory.HOUSING,
    "condomínio": TransactionCategory.HOUSING,
    "leroy merlin": TransactionCategory.HOME,
    "tok&stok": TransactionCategory.HOME,

    # Services
    "energia": TransactionCategory.SERVICES,
    "enel": TransactionCategory.SERVICES,
    "sabesp": TransactionCategory.SERVICES,
    "internet": TransactionCategory.SERVICES,
    "vivo": TransactionCategory.SERVICES,
    "claro": TransactionCategory.SERVICES,
    "tim": TransactionCategory.SERVICES,

    # Clothing
    "renner": TransactionCategory.CLOTHING,
    "riachuelo": TransactionCategory.CLOTHING,
    "c&a": TransactionCategory.CLOTHING,
    "zara": TransactionCategory.CLOTHING,
    "centauro": TransactionCategory.CLOTHING,

    # Electronics
    "kabum": TransactionCategory.ELECTRONICS,
    "fast shop": TransactionCategory.ELECTRONICS,
    "apple store": TransactionCategory.ELECTRONICS,

    # Shopping
    "amazon": TransactionCategory.SHOPPING,
    "mercadolivre": TransactionCategory.SHOPPING,
    "mercado livre": TransactionCategory.SHOPPING,
    "magalu": TransactionCategory.SHOPPING,
    "shopee": TransactionCategory.SHOPPING,
    "aliexpress": TransactionCategory.SHOPPING,
}

# "mercado livre" must win over "mercado"
_ORDERED_KEYWORDS = sorted(KEYWORD_CATEGORIES.items(), key=lambda item: -len(item[0]))

_SHORT_TOKEN_LENGTH = 3


def _keyword_in(keyword: str, text: str) -> bool:
    if len(keyword) <= _SHORT_TOKEN_LENGTH:
        return re.search(rf"(?<!\w){re.escape(keyword)}(?!\w)", text) is not None
    return keyword in text


def _check_known_subscription(description: str) -> Optional[TransactionCategory]:
    """Check if the transaction is a known subscription service."""
    desc_lower = description.lower()

    for subscription in KNOWN_SUBSCRIPTIONS:
        if _keyword_in(subscription, desc_lower):
            return TransactionCategory.SUBSCRIPTIONS

    return None


def _check_keywords(description: str) -> Optional[TransactionCategory]:
    """Match the description against the merchant keyword table."""
    desc_lower = description.lower()

    for keyword, category in _ORDERED_KEYWORDS:
        if _keyword_in(keyword, desc_lower):
            return category

    return None


def categorize_description(description: str) -> TransactionCategory:
    """Infer a category from free text. Subscriptions win over merchant keywords."""
    if not description:
        return TransactionCategory.OTHER

    return (
        _check_known_subscription(description)
        or _check_keywords(description)
        or TransactionCategory.OTHER
    )


def _normalize_label(label: str) -> str:
    label = " ".join(label.strip().lower().split())
    return unicodedata.normalize("NFC", label)


def map_raw_category(raw_category: str, table: dict[str, TransactionCategory]) -> TransactionCategory:
    """
    Map an institution's own category label to the internal taxonomy.

    Args:
        raw_category: Label as written in the statement
        table: Institution lookup table keyed by lower-case label

    Returns:
        The mapped category, or Other
    """
    if raw_category:
        mapped = table.get(_normalize_label(raw_category))
        if mapped is not None:
            return mapped
        logger.debug(f"Unmapped category label: {raw_category}")

    return TransactionCategory.OTHER


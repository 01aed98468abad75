"""Static geography tables used when the gazetteer has to grow."""

from __future__ import annotations

from typing import Dict, Optional

DEFAULT_CURRENCY = "EUR"

COUNTRY_CURRENCIES: Dict[str, str] = {
    # Eurozone
    "ES": "EUR",
    "PT": "EUR",
    "DE": "EUR",
    "FR": "EUR",
    "IT": "EUR",
    "NL": "EUR",
    "BE": "EUR",
    "AT": "EUR",
    "IE": "EUR",
    "FI": "EUR",
    "GR": "EUR",
    # Rest of Europe
    "GB": "GBP",
    "CH": "CHF",
    "SE": "SEK",
    "NO": "NOK",
    "DK": "DKK",
    "PL": "PLN",
    "CZ": "CZK",
    "HU": "HUF",
    "RO": "RON",
    # Americas
    "US": "USD",
    "CA": "CAD",
    "MX": "MXN",
    "AR": "ARS",
    "BR": "BRL",
    "CO": "COP",
    "CL": "CLP",
    "PE": "PEN",
    "VE": "VES",
    "EC": "USD",
    "BO": "BOB",
    "UY": "UYU",
    "PY": "PYG",
    "CR": "CRC",
    "PA": "USD",
    "GT": "GTQ",
    "HN": "HNL",
    "SV": "USD",
    "NI": "NIO",
    "DO": "DOP",
    "CU": "CUP",
    "PR": "USD",
    # Asia and Oceania
    "JP": "JPY",
    "KR": "KRW",
    "CN": "CNY",
    "IN": "INR",
    "TH": "THB",
    "ID": "IDR",
    "MY": "MYR",
    "SG": "SGD",
    "PH": "PHP",
    "VN": "VND",
    "AU": "AUD",
    "NZ": "NZD",
    # Middle East
    "AE": "AED",
    "SA": "SAR",
    "QA": "QAR",
    "KW": "KWD",
    "IL": "ILS",
    "TR": "TRY",
}

COUNTRY_NAMES: Dict[str, str] = {
    "ES": "España",
    "PT": "Portugal",
    "FR": "France",
    "DE": "Germany",
    "IT": "Italy",
    "GB": "United Kingdom",
    "NL": "Netherlands",
    "BE": "Belgium",
    "AT": "Austria",
    "CH": "Switzerland",
    "IE": "Ireland",
    "FI": "Finland",
    "SE": "Sweden",
    "NO": "Norway",
    "DK": "Denmark",
    "PL": "Poland",
    "GR": "Greece",
    "CZ": "Czech Republic",
    "HU": "Hungary",
    "RO": "Romania",
    "US": "United States",
    "CA": "Canada",
    "MX": "México",
    "AR": "Argentina",
    "BR": "Brasil",
    "CO": "Colombia",
    "CL": "Chile",
    "PE": "Perú",
    "VE": "Venezuela",
    "EC": "Ecuador",
    "BO": "Bolivia",
    "UY": "Uruguay",
    "PY": "Paraguay",
    "CR": "Costa Rica",
    "PA": "Panamá",
    "GT": "Guatemala",
    "HN": "Honduras",
    "SV": "El Salvador",
    "NI": "Nicaragua",
    "DO": "República Dominicana",
    "CU": "Cuba",
    "PR": "Puerto Rico",
    "JP": "Japan",
    "KR": "South Korea",
    "CN": "China",
    "IN": "India",
    "TH": "Thailand",
    "ID": "Indonesia",
    "MY": "Malaysia",
    "SG": "Singapore",
    "PH": "Philippines",
    "VN": "Vietnam",
    "AU": "Australia",
    "NZ": "New Zealand",
    "AE": "United Arab Emirates",
    "SA": "Saudi Arabia",
    "QA": "Qatar",
    "KW": "Kuwait",
    "IL": "Israel",
    "TR": "Turkey",
}

# Keys are normalized city names (see city_resolver.normalize_city_name)
WELL_KNOWN_CITIES: Dict[str, str] = {
    "bangkok": "TH",
    "กรุงเทพ": "TH",
    "กรุงเทพมหานคร": "TH",
    "phuket": "TH",
    "chiang mai": "TH",
    "pattaya": "TH",
    "tokyo": "JP",
    "東京": "JP",
    "osaka": "JP",
    "kyoto": "JP",
    "seoul": "KR",
    "서울": "KR",
    "busan": "KR",
    "beijing": "CN",
    "shanghai": "CN",
    "madrid": "ES",
    "barcelona": "ES",
    "valencia": "ES",
    "sevilla": "ES",
    "malaga": "ES",
    "lisboa": "PT",
    "lisbon": "PT",
    "porto": "PT",
    "paris": "FR",
    "lyon": "FR",
    "marseille": "FR",
    "berlin": "DE",
    "munich": "DE",
    "munchen": "DE",
    "frankfurt": "DE",
    "roma": "IT",
    "rome": "IT",
    "milano": "IT",
    "milan": "IT",
    "amsterdam": "NL",
    "rotterdam": "NL",
    "london": "GB",
    "manchester": "GB",
    "new york": "US",
    "los angeles": "US",
    "chicago": "US",
    "miami": "US",
    "austin": "US",
    "mexico city": "MX",
    "ciudad de mexico": "MX",
    "buenos aires": "AR",
    "sao paulo": "BR",
    "rio de janeiro": "BR",
    "sydney": "AU",
    "melbourne": "AU",
    "dubai": "AE",
    "abu dhabi": "AE",
}


def default_currency(code: str) -> str:
    return COUNTRY_CURRENCIES.get(code.upper(), DEFAULT_CURRENCY)


def default_country_name(code: str) -> str:
    code = code.upper()
    return COUNTRY_NAMES.get(code, code)


def well_known_country(normalized_name: str) -> Optional[str]:
    """Country code for a normalized well-known city name, exact then substring match."""

    if not normalized_name:
        return None
    exact = WELL_KNOWN_CITIES.get(normalized_name)
    if exact:
        return exact
    for city, country in WELL_KNOWN_CITIES.items():
        if city in normalized_name:
            return country
        if len(normalized_name) >= 3 and normalized_name in city:
            return country
    return None


__all__ = [
    "COUNTRY_CURRENCIES",
    "COUNTRY_NAMES",
    "DEFAULT_CURRENCY",
    "WELL_KNOWN_CITIES",
    "default_country_name",
    "default_currency",
    "well_known_country",
]

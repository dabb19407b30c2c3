"""Default delegations seeded into every new session's roster."""

from __future__ import annotations

FLAG_URL_TEMPLATE = "https://flagcdn.com/w80/{code}.png"

# (country name, ISO 3166-1 alpha-2 code used for the flag image)
DEFAULT_DELEGATIONS: tuple[tuple[str, str], ...] = (
    ("United States", "us"),
    ("United Kingdom", "gb"),
    ("France", "fr"),
    ("Russia", "ru"),
    ("China", "cn"),
    ("Germany", "de"),
    ("Japan", "jp"),
    ("India", "in"),
    ("Brazil", "br"),
    ("South Africa", "za"),
    ("Australia", "au"),
    ("Canada", "ca"),
    ("Italy", "it"),
    ("Spain", "es"),
    ("Mexico", "mx"),
    ("South Korea", "kr"),
    ("Indonesia", "id"),
    ("Saudi Arabia", "sa"),
    ("Turkey", "tr"),
    ("Argentina", "ar"),
    ("Nigeria", "ng"),
    ("Egypt", "eg"),
    ("Pakistan", "pk"),
    ("Bangladesh", "bd"),
)


def flag_url(code: str) -> str:
    return FLAG_URL_TEMPLATE.format(code=code.lower())

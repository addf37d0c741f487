"""
Localized message bundles.

Each package that reports violations ships a ``messages.yaml`` file mapping
locale names to ``key -> template`` tables::

    en:
      name.invalidPattern: "Name '{0}' must match pattern '{1}'."
    de:
      name.invalidPattern: "Name '{0}' entspricht nicht dem Muster '{1}'."

Templates use positional ``str.format`` placeholders. Lookup tries the full
locale (``de_CH``), then the language (``de``), then ``en``.
"""

import logging
from functools import lru_cache
from importlib import resources
from typing import Dict, Optional, Sequence

import yaml

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"

_current_locale = DEFAULT_LOCALE


def set_locale(language: Optional[str], country: Optional[str] = None) -> None:
    """Select the locale used when violations are rendered."""
    global _current_locale
    if not language:
        _current_locale = DEFAULT_LOCALE
    elif country:
        _current_locale = f"{language.lower()}_{country.upper()}"
    else:
        _current_locale = language.lower()


def get_locale() -> str:
    return _current_locale


@lru_cache(maxsize=None)
def load_bundle(bundle: str) -> Dict[str, Dict[str, str]]:
    """Load ``messages.yaml`` of the package named ``bundle``."""
    try:
        content = resources.files(bundle).joinpath("messages.yaml").read_text(encoding="utf-8")
    except (FileNotFoundError, ModuleNotFoundError) as e:
        logger.warning("No message bundle for %s: %s", bundle, e)
        return {}
    data = yaml.safe_load(content) or {}
    return {str(locale): {str(k): str(v) for k, v in (table or {}).items()}
            for locale, table in data.items()}


def get_template(bundle: str, key: str, locale: Optional[str] = None) -> Optional[str]:
    tables = load_bundle(bundle)
    locale = locale or _current_locale
    candidates = [locale]
    if "_" in locale:
        candidates.append(locale.split("_", 1)[0])
    candidates.append(DEFAULT_LOCALE)
    for candidate in candidates:
        template = tables.get(candidate, {}).get(key)
        if template is not None:
            return template
    return None


def format_message(bundle: str, key: str, args: Sequence[object] = (),
                   custom_template: Optional[str] = None,
                   locale: Optional[str] = None) -> str:
    """
    Render a message.

    Args:
        bundle: package holding the ``messages.yaml`` file
        key: message key
        args: positional substitution arguments
        custom_template: template configured by the user, takes precedence
        locale: overrides the current locale

    Returns:
        The formatted text. Unknown keys render as the key itself.
    """
    template = custom_template or get_template(bundle, key, locale)
    if template is None:
        return key
    try:
        return template.format(*args)
    except (IndexError, KeyError, ValueError):
        logger.debug("Could not format %s/%s with %r", bundle, key, args)
        return template

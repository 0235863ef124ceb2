"""
valorhub/features/i18n/locales.py

Locale bundle registry.

Bundles live at valorhub/locales/<locale>/<namespace>.json and are read once,
at startup, into an immutable (locale, namespace) -> messages table. Each
namespace is loaded on its own: a missing or malformed file only affects its
own pair, which then resolves to an empty bundle. With strict loading any
failure aborts startup instead.
"""

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from valorhub.core.config import settings
from valorhub.core.logging import log_event
from valorhub.features.i18n.translation import interpolate, is_plural_forms, pluralize

SUPPORTED_LOCALES = ("en", "es")
LOCALE_NAMES = MappingProxyType({"en": "English", "es": "Español"})
NAMESPACES = ("common", "navigation", "dashboard", "profile", "setup", "subscription", "missions", "errors")
LOCALES_DIR = Path(__file__).resolve().parents[2] / "locales"

_EMPTY: Mapping[str, Any] = MappingProxyType({})


def default_locale() -> str:
    configured = settings.DEFAULT_LOCALE
    return configured if configured in SUPPORTED_LOCALES else "es"


def resolve_locale(requested: Optional[str]) -> str:
    """Return requested when supported, else the default locale."""
    if requested and requested in SUPPORTED_LOCALES:
        return requested
    return default_locale()


class LocaleLoadError(RuntimeError):
    pass


class LocaleRegistry:
    """Immutable table of message bundles keyed by (locale, namespace)."""

    def __init__(self, base_dir: Optional[Path] = None, locales=SUPPORTED_LOCALES, namespaces=NAMESPACES):
        self.base_dir = Path(base_dir) if base_dir else LOCALES_DIR
        self.locales = tuple(locales)
        self.namespaces = tuple(namespaces)
        self._bundles: Mapping[Tuple[str, str], Mapping[str, Any]] = _EMPTY
        self.errors: Dict[Tuple[str, str], str] = {}
        self.loaded = False

    def _load_pair(self, locale: str, namespace: str) -> Dict[str, Any]:
        path = self.base_dir / locale / f"{namespace}.json"
        with path.open(encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"{path.name} must contain a JSON object")
        return data

    def load(self, strict: Optional[bool] = None) -> "LocaleRegistry":
        """
        Read every (locale, namespace) pair.

        Raises:
            LocaleLoadError: strict mode and at least one pair failed
        """
        strict_mode = settings.I18N_STRICT if strict is None else strict
        bundles = {}
        errors = {}
        for locale in self.locales:
            for namespace in self.namespaces:
                try:
                    bundles[(locale, namespace)] = self._load_pair(locale, namespace)
                except (OSError, ValueError) as e:
                    errors[(locale, namespace)] = str(e)
                    log_event(
                        "warning",
                        "i18n.bundle_load_failed",
                        event_type="i18n.bundle_load_failed",
                        extra={"locale": locale, "namespace": namespace, "error": e},
                    )

        if errors and strict_mode:
            failed = ", ".join(f"{locale}/{namespace}" for locale, namespace in sorted(errors))
            raise LocaleLoadError(f"Failed to load locale bundles: {failed}")

        self._bundles = MappingProxyType(bundles)
        self.errors = errors
        self.loaded = True
        log_event("info", "i18n.loaded", event_type="i18n.loaded", extra={"bundles": len(bundles), "failed": len(errors)})
        return self

    def bundle(self, locale: Optional[str], namespace: str) -> Mapping[str, Any]:
        if not self.loaded:
            self.load()
        return self._bundles.get((resolve_locale(locale), namespace), _EMPTY)

    def messages(self, locale: Optional[str]) -> Dict[str, Dict[str, Any]]:
        resolved = resolve_locale(locale)
        return {namespace: dict(self.bundle(resolved, namespace)) for namespace in self.namespaces}

    def translate(
        self,
        locale: Optional[str],
        key: str,
        variables: Optional[Mapping[str, Any]] = None,
        count: Optional[int] = None,
    ) -> str:
        """
        Look up "namespace.path.to.key" for a locale.

        Plural entries ({zero?, one, other}) are resolved with count, which is
        also made available to the template as {count}. Unknown keys return
        the key itself.
        """
        namespace, _, path = key.partition(".")
        node: Any = self.bundle(locale, namespace)
        for part in path.split(".") if path else ():
            if not isinstance(node, Mapping) or part not in node:
                return key
            node = node[part]

        if count is not None and is_plural_forms(node):
            node = pluralize(count, node)
        if not isinstance(node, str):
            return key

        values = dict(variables or {})
        if count is not None:
            values.setdefault("count", count)
        return interpolate(node, values)


registry = LocaleRegistry()


def get_messages(locale: Optional[str]) -> Dict[str, Dict[str, Any]]:
    return registry.messages(locale)


def translate(locale: Optional[str], key: str, variables: Optional[Mapping[str, Any]] = None, count: Optional[int] = None) -> str:
    return registry.translate(locale, key, variables=variables, count=count)

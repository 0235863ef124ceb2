"""
Locale bundles for the frontend.

- GET /api/i18n: supported locales with display names
- GET /api/i18n/{locale}: every namespace
- GET /api/i18n/{locale}/{namespace}: one namespace

Unsupported locales are served the default locale's bundles.
"""

from fastapi import APIRouter, Path

from valorhub.core.errors import NotFoundError
from valorhub.features.i18n.locales import (
    LOCALE_NAMES,
    NAMESPACES,
    SUPPORTED_LOCALES,
    default_locale,
    get_messages,
    registry,
    resolve_locale,
)

router = APIRouter(prefix="/api/i18n", tags=["i18n"])


@router.get("")
def supported_locales():
    return {
        "default": default_locale(),
        "locales": [{"code": code, "name": LOCALE_NAMES[code]} for code in SUPPORTED_LOCALES],
    }


@router.get("/{locale}")
def locale_messages(locale: str = Path(..., description="Requested locale, e.g. en")):
    resolved = resolve_locale(locale)
    return {"locale": resolved, "messages": get_messages(resolved)}


@router.get("/{locale}/{namespace}")
def namespace_messages(locale: str, namespace: str):
    if namespace not in NAMESPACES:
        raise NotFoundError(f"Unknown namespace: {namespace}")
    resolved = resolve_locale(locale)
    return {"locale": resolved, "namespace": namespace, "messages": dict(registry.bundle(resolved, namespace))}

from __future__ import annotations

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from core.i18n import set_locale


def _pick_from_accept_language(al: str) -> str:
    """Return the highest weighted tag of an Accept-Language header.

    Examples:
      'de-DE,de;q=0.9,en;q=0.8' -> 'de-DE'
    """
    items = []
    for part in al.split(','):
        p = part.strip()
        if not p:
            continue
        lang, _, params = p.partition(';')
        q = 1.0
        params = params.strip()
        if params.startswith('q='):
            try:
                q = float(params[2:])
            except ValueError:
                q = 0.0
        items.append((lang.strip(), q))
    if not items:
        return 'en'
    # sort by q desc, keep order for ties
    items.sort(key=lambda x: x[1], reverse=True)
    return items[0][0]


def _normalize(lang: str) -> str:
    """Map browser tags to catalog names ('de-AT' -> 'de')."""
    return (lang or 'en').replace('_', '-').split('-')[0].lower() or 'en'


class LocaleMiddleware(BaseHTTPMiddleware):
    """Parse locale from query/header and set into context.

    Priority: ?lang=xx > X-Lang > Accept-Language > default 'en'.
    """

    async def dispatch(self, request: Request, call_next):
        lang = request.query_params.get("lang") or request.headers.get("X-Lang")
        if not lang:
            al = request.headers.get("Accept-Language", "")
            lang = _pick_from_accept_language(al) if al else "en"
        locale = _normalize(lang)
        set_locale(locale)
        request.state.locale = locale
        return await call_next(request)

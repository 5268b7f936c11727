from __future__ import annotations

# Origins the SPA is served from.
DEFAULT_ORIGINS: tuple[str, ...] = (
    "http://localhost:5173",
    "http://localhost:5174",
    "https://opportunest9.web.app",
    "https://opportunest9.firebaseapp.com",
)


def build_allowed_origins(*, frontend_urls: str | None) -> list[str]:
    allowed: set[str] = set(DEFAULT_ORIGINS)

    if frontend_urls:
        for origin in [s.strip() for s in str(frontend_urls).split(",") if s.strip()]:
            allowed.add(origin.rstrip("/"))

    return sorted(allowed)

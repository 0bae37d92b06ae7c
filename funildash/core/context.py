"""FunilDash — Request-scoped caller context."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    """Who is calling, resolved once per request and passed down explicitly."""

    user_id: str
    company_id: str

"""Provider dispatch by credential shape.

``ROUTES`` is the single source of truth for which provider a credential
selects.  Prefixes overlap as raw strings (every ``sk-ant-`` key also starts
with ``sk-``), so the table is evaluated top to bottom and the more specific
prefixes come first; URL schemes are tested last.
"""

from typing import Callable

from paperblog.models import CredentialError, ProviderKind

Route = tuple[Callable[[str], bool], ProviderKind]

ROUTES: list[Route] = [
    (lambda key: key.startswith("pplx-"), ProviderKind.PERPLEXITY),
    (lambda key: key.startswith("sk-ant-"), ProviderKind.CLAUDE),
    (lambda key: key.startswith("sk-"), ProviderKind.OPENAI),
    (lambda key: key.startswith(("http://", "https://")), ProviderKind.LOCAL),
]

SUPPORTED_FORMATS = (
    "Perplexity (pplx-), Claude (sk-ant-), OpenAI (sk-), Local (http://...)"
)


def resolve_provider(credential: str) -> ProviderKind:
    """Return the provider selected by ``credential``.

    Raises:
        CredentialError: if the credential is empty or matches no route.
    """
    key = (credential or "").strip()
    if not key:
        raise CredentialError("API key required")
    for matches, kind in ROUTES:
        if matches(key):
            return kind
    raise CredentialError(f"Unknown API key format. Supported: {SUPPORTED_FORMATS}")

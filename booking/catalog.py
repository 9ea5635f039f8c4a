"""Provider discovery: providers joined with their active services, and search."""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from models.provider import ProviderProfile, ProviderWithServices
from models.service import Service


def attach_services(
    providers: Iterable[ProviderProfile], services: Iterable[Service]
) -> List[ProviderWithServices]:
    """Attach each provider's active services to its profile."""
    by_provider: Dict[str, List[Service]] = defaultdict(list)
    for service in services:
        if service.active:
            by_provider[service.provider_id].append(service)

    return [
        ProviderWithServices(
            **provider.model_dump(),
            services=by_provider.get(provider.id, []),
        )
        for provider in providers
    ]


def service_names(services: Iterable[Service]) -> List[str]:
    """Unique service names in first-seen order, for the service filter."""
    seen = dict.fromkeys(service.name for service in services)
    return list(seen)


def _matches_term(provider: ProviderWithServices, term: str) -> bool:
    if not term:
        return True
    needle = term.lower()
    if needle in provider.business_name.lower():
        return True
    return bool(provider.description) and needle in provider.description.lower()


def _offers_service(provider: ProviderWithServices, service_name: str) -> bool:
    if not service_name:
        return True
    wanted = service_name.lower()
    return any(service.name.lower() == wanted for service in provider.services)


def search_providers(
    providers: Iterable[ProviderWithServices],
    term: Optional[str] = "",
    service_name: Optional[str] = "",
) -> List[ProviderWithServices]:
    """
    Filter providers for the search page.

    ``term`` matches anywhere in the business name or description;
    ``service_name`` must equal one of the provider's service names. Both
    comparisons ignore case, and an empty value matches everything.
    """
    term = (term or "").strip()
    service_name = (service_name or "").strip()
    return [
        provider
        for provider in providers
        if _matches_term(provider, term) and _offers_service(provider, service_name)
    ]

"""
Payment provider registry.

Providers are declared in `payment_settings.provider_configs()` as
`{resolve, id, options}`; `resolve` is a "module:Class" path. Each provider's
options are validated by its `validate_options` before it is instantiated.
"""
from __future__ import annotations

import importlib
from typing import Any, Iterable, Mapping, Optional

from application.ports.payment_provider import AbstractPaymentProvider
from core.logging_config import get_logger
from core.settings import PaymentProviderConfig, payment_settings
from domain.payment.exceptions import PaymentProviderNotRegisteredError


logger = get_logger(__name__)

# Global registry: provider id -> live provider instance
_providers: dict[str, AbstractPaymentProvider] = {}


def resolve_provider_class(path: str) -> type[AbstractPaymentProvider]:
    module_path, _, attr = path.partition(":")
    module = importlib.import_module(module_path)
    provider_cls = getattr(module, attr or "default")
    if not (isinstance(provider_cls, type) and issubclass(provider_cls, AbstractPaymentProvider)):
        raise TypeError(f"{path} is not a payment provider")
    return provider_cls


def register_payment_provider(provider_id: str, provider: AbstractPaymentProvider) -> None:
    _providers[provider_id.lower()] = provider
    logger.info("payment_provider_registered", provider_id=provider_id, identifier=provider.identifier)


def load_payment_providers(
    configs: Optional[Iterable[PaymentProviderConfig]] = None,
    container: Optional[Mapping[str, Any]] = None,
) -> dict[str, AbstractPaymentProvider]:
    for cfg in configs if configs is not None else payment_settings.provider_configs():
        provider_cls = resolve_provider_class(cfg.resolve)
        provider_cls.validate_options(cfg.options)
        register_payment_provider(cfg.id, provider_cls(container or {}, cfg.options))
    return dict(_providers)


def get_payment_provider(provider_id: Optional[str] = None) -> AbstractPaymentProvider:
    name = (provider_id or payment_settings.default_provider).lower()
    if not _providers:
        load_payment_providers()
    provider = _providers.get(name)
    if provider is None:
        raise PaymentProviderNotRegisteredError(name, sorted(_providers))
    return provider


async def shutdown_payment_providers() -> None:
    for provider_id, provider in list(_providers.items()):
        try:
            await provider.aclose()
        except Exception as exc:
            logger.error("payment_provider_close_failed", provider_id=provider_id, error=str(exc))
    _providers.clear()


__all__ = [
    "get_payment_provider",
    "load_payment_providers",
    "register_payment_provider",
    "resolve_provider_class",
    "shutdown_payment_providers",
]

"""Lifecycle of the optional paid tier attached to an extension.

An extension is either unmonetized or holds a reference to a recurring price
on the payment platform. Provisioning only acts on a change of presence:
supplying a premium descriptor for an unmonetized extension creates a product
and a price, and omitting it for a monetized extension deletes the product.
Repeating a publish with the same presence is a no-op, which keeps the
provisioner idempotent.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import logging
import typing as typ

import stripe

from extension_docs.errors import ProvisioningError

if typ.TYPE_CHECKING:
    from extension_docs.models import PremiumDescriptor

logger = logging.getLogger(__name__)

STRIPE_API_VERSION = "2020-08-27"
DEFAULT_USAGE = "licensed"
DEFAULT_INTERVAL = "month"
USAGE_TYPES = frozenset({DEFAULT_USAGE, "metered"})


class MonetizationState(enum.StrEnum):
    """Where an extension's paid tier sits in its lifecycle."""

    NONE = "none"
    PENDING_CREATE = "pending-create"
    ACTIVE = "active"
    PENDING_DELETE = "pending-delete"


@dc.dataclass(slots=True, frozen=True)
class ProvisioningOutcome:
    """Resulting state and price reference after :meth:`apply`."""

    state: MonetizationState
    monetization_ref: str | None
    changed: bool = False


class PaymentGateway(typ.Protocol):
    """Payment platform calls used by the provisioner."""

    def create_product(self, *, name: str, description: str | None) -> str: ...

    def create_price(
        self,
        *,
        product: str,
        unit_amount: int,
        currency: str,
        interval: str,
        usage_type: str,
        divide_by: int | None,
    ) -> str: ...

    def retrieve_price_product(self, price_id: str) -> str: ...

    def delete_product(self, product_id: str) -> None: ...


class StripeGateway:
    """:class:`PaymentGateway` backed by a dedicated Stripe client.

    The client is built on first use so that publishes without a paid tier
    never need a secret key. Retries and the API version are set on the
    client itself and leave the ``stripe`` module globals alone.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        max_network_retries: int = 3,
        client: stripe.StripeClient | None = None,
    ) -> None:
        self._api_key = api_key
        self.max_network_retries = max_network_retries
        self._client = client

    @property
    def client(self) -> stripe.StripeClient:
        if self._client is None:
            if not self._api_key:
                msg = "A Stripe secret key is required to provision a paid tier"
                raise ProvisioningError(msg)
            self._client = stripe.StripeClient(
                self._api_key,
                stripe_version=STRIPE_API_VERSION,
                max_network_retries=self.max_network_retries,
            )
        return self._client

    def create_product(self, *, name: str, description: str | None) -> str:
        params: dict[str, typ.Any] = {"name": name}
        if description:
            params["description"] = description
        try:
            product = self.client.products.create(params=params)
        except stripe.StripeError as exc:
            msg = f"Failed to create product {name!r}: {exc}"
            raise ProvisioningError(msg) from exc
        return product.id

    def create_price(
        self,
        *,
        product: str,
        unit_amount: int,
        currency: str,
        interval: str,
        usage_type: str,
        divide_by: int | None,
    ) -> str:
        params: dict[str, typ.Any] = {
            "product": product,
            "unit_amount": unit_amount,
            "currency": currency,
            "recurring": {"interval": interval, "usage_type": usage_type},
        }
        if divide_by:
            params["transform_quantity"] = {"divide_by": divide_by, "round": "up"}
        try:
            price = self.client.prices.create(params=params)
        except stripe.StripeError as exc:
            msg = f"Failed to create price for product {product}: {exc}"
            raise ProvisioningError(msg) from exc
        return price.id

    def retrieve_price_product(self, price_id: str) -> str:
        try:
            price = self.client.prices.retrieve(price_id)
        except stripe.StripeError as exc:
            msg = f"Failed to retrieve price {price_id}: {exc}"
            raise ProvisioningError(msg) from exc
        product = price.product
        return product if isinstance(product, str) else product.id

    def delete_product(self, product_id: str) -> None:
        try:
            self.client.products.delete(product_id)
        except stripe.StripeError as exc:
            msg = f"Failed to delete product {product_id}: {exc}"
            raise ProvisioningError(msg) from exc


class MonetizationProvisioner:
    """Create or tear down an extension's product/price pair on transitions."""

    def __init__(self, gateway: PaymentGateway, *, currency: str = "usd") -> None:
        self.gateway = gateway
        self.currency = currency

    @staticmethod
    def current_state(monetization_ref: str | None) -> MonetizationState:
        return MonetizationState.ACTIVE if monetization_ref else MonetizationState.NONE

    def apply(
        self,
        path: str,
        monetization_ref: str | None,
        premium: PremiumDescriptor | None,
    ) -> ProvisioningOutcome:
        """Move ``path``'s paid tier toward the presence of ``premium``.

        Raises
        ------
        ProvisioningError
            If the descriptor is invalid or the payment platform rejects a
            call. The stored reference must then be left unchanged.
        """
        state = self.current_state(monetization_ref)
        if state is MonetizationState.NONE and premium is not None:
            return self._create(path, premium)
        if state is MonetizationState.ACTIVE and premium is None:
            return self._delete(path, typ.cast("str", monetization_ref))
        return ProvisioningOutcome(state=state, monetization_ref=monetization_ref)

    def _create(self, path: str, premium: PremiumDescriptor) -> ProvisioningOutcome:
        # The dashboard sends an empty usage when the author leaves it unset.
        usage = premium.usage or DEFAULT_USAGE
        if usage not in USAGE_TYPES:
            msg = f"Unsupported premium usage {usage!r}; expected licensed or metered"
            raise ProvisioningError(msg)
        if premium.price <= 0:
            msg = f"Premium price must be positive, got {premium.price}"
            raise ProvisioningError(msg)
        logger.info("Provisioning %s: %s", path, MonetizationState.PENDING_CREATE)
        product = self.gateway.create_product(
            name=premium.name or path,
            description=" ".join(premium.description) or None,
        )
        price = self.gateway.create_price(
            product=product,
            unit_amount=premium.price * 100,
            currency=self.currency,
            interval=premium.interval or DEFAULT_INTERVAL,
            usage_type=usage,
            divide_by=premium.quantity if premium.quantity and premium.quantity > 1 else None,
        )
        logger.info("Created price %s for %s", price, path)
        return ProvisioningOutcome(
            state=MonetizationState.ACTIVE, monetization_ref=price, changed=True
        )

    def _delete(self, path: str, price_id: str) -> ProvisioningOutcome:
        logger.info("Provisioning %s: %s", path, MonetizationState.PENDING_DELETE)
        product = self.gateway.retrieve_price_product(price_id)
        self.gateway.delete_product(product)
        logger.info("Deleted product %s for %s", product, path)
        return ProvisioningOutcome(
            state=MonetizationState.NONE, monetization_ref=None, changed=True
        )


__all__ = [
    "DEFAULT_USAGE",
    "STRIPE_API_VERSION",
    "MonetizationProvisioner",
    "MonetizationState",
    "PaymentGateway",
    "ProvisioningOutcome",
    "StripeGateway",
]

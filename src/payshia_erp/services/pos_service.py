from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Optional

from payshia_erp.domain.errors import NotFoundError, ValidationError
from payshia_erp.domain.models import PosCartLine, PosOrder, Product

log = logging.getLogger("payshia_erp.sales")

SERVICE_CHARGE_RATE = 0.10
WALK_IN_CUSTOMER_ID = "4"
ORDER_TYPES = ("Dine-In", "Take Away", "Retail", "Delivery")


@dataclass(frozen=True)
class PosTotals:
    subtotal: float
    item_discounts: float
    service_charge: float
    discount: float
    total: float


def order_totals(order: PosOrder) -> PosTotals:
    subtotal = sum(line.unit_price * line.quantity for line in order.cart)
    item_discounts = sum(line.item_discount for line in order.cart)
    service_charge = subtotal * SERVICE_CHARGE_RATE if order.service_charge_enabled else 0.0
    total = subtotal - item_discounts + service_charge - order.discount
    return PosTotals(
        subtotal=subtotal,
        item_discounts=item_discounts,
        service_charge=service_charge,
        discount=order.discount,
        total=total,
    )


class PosService:
    """Open tabs at the till. Orders live in memory until checkout turns them into invoices."""

    def __init__(self, sales_service, inventory_service=None):
        self.sales = sales_service
        self.inventory = inventory_service
        self.orders: dict[str, PosOrder] = {}
        self._ids = itertools.count(1)

    def open_order(
        self,
        order_type: str = "Take Away",
        table_name: Optional[str] = None,
        steward: Optional[str] = None,
    ) -> PosOrder:
        if order_type not in ORDER_TYPES:
            raise ValidationError(f"Unknown order type: {order_type}")
        order_id = f"order-{next(self._ids):04d}"
        name = table_name or f"{order_type} #{order_id[-4:]}"
        order = PosOrder(
            id=order_id,
            name=name,
            customer_id=WALK_IN_CUSTOMER_ID,
            order_type=order_type,
            table_name=table_name,
            steward=steward,
        )
        self.orders[order_id] = order
        return order

    def get_order(self, order_id: str) -> PosOrder:
        order = self.orders.get(order_id)
        if order is None:
            raise NotFoundError("No Active Order")
        return order

    def open_orders(self) -> list[PosOrder]:
        return [o for o in self.orders.values() if not o.held]

    def held_orders(self) -> list[PosOrder]:
        return [o for o in self.orders.values() if o.held]

    def add_to_cart(
        self,
        order_id: str,
        product: Product,
        variant_id: str,
        quantity: int = 1,
        discount: float = 0.0,
        batch: Optional[str] = None,
    ) -> PosOrder:
        order = self.get_order(order_id)
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1.")
        if discount < 0:
            raise ValidationError("Discount must be positive.")

        for line in order.cart:
            if line.variant_id == variant_id:
                line.quantity += quantity
                line.item_discount += discount
                break
        else:
            order.cart.append(PosCartLine(
                product=product,
                variant_id=variant_id,
                quantity=quantity,
                item_discount=discount,
                batch=batch,
            ))
        order.held = False
        return order

    def batches_for(self, product: Product, variant_id: str) -> list:
        if self.inventory is None:
            return []
        location = self.sales.location_id
        return self.inventory.available_batches(product.id, variant_id, str(location) if location is not None else None)

    def update_quantity(self, order_id: str, variant_id: str, quantity: int) -> PosOrder:
        order = self.get_order(order_id)
        if quantity <= 0:
            return self.remove_from_cart(order_id, variant_id)
        for line in order.cart:
            if line.variant_id == variant_id:
                line.quantity = quantity
        return order

    def remove_from_cart(self, order_id: str, variant_id: str) -> PosOrder:
        order = self.get_order(order_id)
        order.cart = [line for line in order.cart if line.variant_id != variant_id]
        return order

    def set_discount(self, order_id: str, discount: float) -> PosOrder:
        if discount < 0:
            raise ValidationError("Discount must be positive.")
        order = self.get_order(order_id)
        order.discount = float(discount)
        return order

    def toggle_service_charge(self, order_id: str, enabled: bool) -> PosOrder:
        order = self.get_order(order_id)
        order.service_charge_enabled = bool(enabled)
        return order

    def set_customer(self, order_id: str, customer_id: str) -> PosOrder:
        order = self.get_order(order_id)
        order.customer_id = str(customer_id) or WALK_IN_CUSTOMER_ID
        return order

    def totals(self, order_id: str) -> PosTotals:
        return order_totals(self.get_order(order_id))

    def hold(self, order_id: str) -> PosOrder:
        order = self.get_order(order_id)
        if not order.cart:
            raise ValidationError("Cannot Hold Empty Order")
        order.held = True
        log.info("pos_order_held order_id=%s items=%s", order.id, len(order.cart))
        return order

    def resume(self, order_id: str) -> PosOrder:
        order = self.get_order(order_id)
        order.held = False
        return order

    def clear(self, order_id: str) -> None:
        self.orders.pop(order_id, None)

    def send_to_kitchen(self, order_id: str) -> PosOrder:
        order = self.get_order(order_id)
        if not order.cart:
            raise ValidationError("Cannot send an empty order to the kitchen.")
        log.info("pos_kot_sent order_id=%s items=%s", order.id, len(order.cart))
        return order

    def checkout(self, order_id: str) -> str:
        """Close the order as a Paid POS invoice and return its invoice number."""
        order = self.get_order(order_id)
        if not order.cart:
            raise ValidationError("Cart is empty")

        totals = order_totals(order)
        items = [
            {
                "product_id": line.product.id,
                "quantity": line.quantity,
                "unit_price": line.unit_price,
                "cost_price": line.product.cost_price,
                "discount": line.item_discount,
                "batch": line.batch,
            }
            for line in order.cart
        ]
        invoice_number = self.sales.create_invoice(
            customer_id=order.customer_id,
            items=items,
            status="Paid",
            bill_discount=order.discount,
            service_charge=totals.service_charge,
            remark=order.name,
            channel="POS",
        )
        self.orders.pop(order_id, None)
        log.info("pos_checkout order_id=%s invoice_number=%s total=%.2f", order_id, invoice_number, totals.total)
        return invoice_number

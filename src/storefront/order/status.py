"""UpdateOrderStatus: admin fulfilment update.

Status, payment status and tracking can be changed in one call. Each part
is optional and validated against its own state machine.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order
from storefront.shared.errors import OrderNotFound


@storefront.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(max_length=20)
    payment_status = String(max_length=20)
    tracking_number = String(max_length=100)
    carrier = String(max_length=100)


@storefront.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        if not any((command.status, command.payment_status, command.tracking_number, command.carrier)):
            raise ValidationError({"status": ["Nothing to update"]})

        repo = current_domain.repository_for(Order)
        try:
            order = repo.get(command.order_id)
        except ObjectNotFoundError:
            raise OrderNotFound(command.order_id) from None

        if command.status:
            order.change_status(command.status)
        if command.payment_status:
            order.change_payment_status(command.payment_status)
        if command.tracking_number or command.carrier:
            order.record_tracking(tracking_number=command.tracking_number, carrier=command.carrier)

        repo.add(order)
        return str(order.id)

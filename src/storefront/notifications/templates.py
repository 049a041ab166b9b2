"""New-order email rendered for the store admin."""


class NewOrderTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        currency = context.get("currency", "NGN")
        lines = "\n".join(
            f"  - {item['title']} x{item['quantity']} @ {currency} {item['unit_price']:,.2f} = "
            f"{currency} {item['line_total']:,.2f}"
            for item in context.get("items", [])
        )
        address = context.get("shipping_address") or {}
        return {
            "subject": f"New Order Received - {order_number}",
            "body": (
                f"A new order {order_number} was placed by {context.get('customer_name') or 'a customer'}"
                f" ({context.get('customer_email') or 'no email'}).\n\n"
                f"Items:\n{lines}\n\n"
                f"Subtotal: {currency} {context.get('subtotal', 0):,.2f}\n"
                f"Tax: {currency} {context.get('tax', 0):,.2f}\n"
                f"Shipping: {currency} {context.get('shipping', 0):,.2f}\n"
                f"Total: {currency} {context.get('total', 0):,.2f}\n\n"
                f"Payment method: {context.get('payment_method', 'N/A')}\n"
                f"Ship to: {address.get('address', '')}, {address.get('city', '')} {address.get('state') or ''}\n"
            ),
        }

"""
Command-line entry point for the shop.

``python cli.py`` runs the demo sequence: it builds a shop, places one
order, pays for it and prints the order total, statuses, receipt and the
customer's order count.  ``python cli.py interactive`` opens a small menu
over the same seeded shop.  The domain classes stay free of I/O; this
module only wires them together and prints.
"""

import sys
from typing import Callable, List, Optional, Tuple

from config import ShopConfig
from logging_config import configure_logging
from metrics import generate_metrics_text
from models import Customer, OrderStatus, PaymentMethod, Product, ProductCategory
from payment_service import PaymentService
from shop import Shop


def seed_shop(config: ShopConfig) -> Tuple[Shop, Customer]:
    """Build the demo shop with three products and one registered customer."""
    shop = Shop.from_config(config)
    shop.add_product(Product(1, "iPhone 15", 15000000, 10, ProductCategory.ELECTRONICS))
    shop.add_product(Product(2, "White T-shirt", 100000, 20, ProductCategory.CLOTHING))
    shop.add_product(Product(3, "Non", 3000, 50, ProductCategory.FOOD))

    customer = Customer(101, "Marko", "mark@mail.com", "+998901234567")
    shop.register_customer(customer)
    return shop, customer


def run_demo(config: Optional[ShopConfig] = None, out: Callable[[str], None] = print) -> List[str]:
    """Run the demo purchase and return the printed lines."""
    config = config or ShopConfig()
    lines: List[str] = []

    def emit(line: str) -> None:
        lines.append(line)
        out(line)

    shop, customer = seed_shop(config)
    payments = PaymentService(
        first_payment_id=config.payment_id_start,
        enforce_transitions=config.enforce_transitions,
        strict=config.strict_mode,
    )

    order = shop.create_order(customer)
    shop.add_item(order, 1, 1)
    shop.add_item(order, 2, 2)
    shop.add_item(order, 3, 3)
    shop.process_order(order)
    emit(f"Buyurtma summasi: {order.calculate_total()} so'm")

    shop.update_order_status(order, OrderStatus.PROCESSING)
    emit(f"Buyurtma holati: {order.status.value}")

    payment = payments.create_payment(order, PaymentMethod.CARD, order.calculate_total())
    payments.process(payment)
    emit(f"To'lov holati: {payment.status.value}")

    receipt = payment.generate_receipt()
    if receipt:
        emit(receipt)

    emit(f"Mijozning jami buyurtmalari: {customer.get_total_orders()}")
    return lines


def interactive_cli(config: Optional[ShopConfig] = None) -> None:
    """Provide a simple menu to browse the catalogue and place orders."""
    config = config or ShopConfig()
    shop, customer = seed_shop(config)
    payments = PaymentService(
        first_payment_id=config.payment_id_start,
        enforce_transitions=config.enforce_transitions,
        strict=config.strict_mode,
    )
    order = shop.create_order(customer)
    methods = list(PaymentMethod)

    def print_menu() -> None:
        print(f"\n-- {shop.name} --")
        print("1. List Products")
        print("2. Search Products")
        print("3. Add Product to Order")
        print("4. View Order")
        print("5. Checkout")
        print("6. Show Metrics")
        print("0. Exit")

    while True:
        print_menu()
        choice = input("Select an option: ").strip()
        if choice == "1":
            for p in shop.products:
                print(f"{p.id}. {p.name} - {p.price} so'm (Stock: {p.stock}, {p.category.value})")
        elif choice == "2":
            query = input("Name contains: ").strip()
            result = shop.search_products(query)
            print(f"{result.total_count} found in {result.search_time * 1000:.2f} ms")
            for p in result.products:
                print(f"{p.id}. {p.name} - {p.price} so'm")
        elif choice == "3":
            try:
                pid = int(input("Enter Product ID: "))
                qty = int(input("Enter quantity: "))
            except ValueError:
                print("Please enter valid numeric values.")
                continue
            result = shop.add_item(order, pid, qty)
            print("Added." if result else result.error_message)
        elif choice == "4":
            if order.is_empty():
                print("Order is empty.")
                continue
            for item in order.items:
                print(f"#{item.product_id} x {item.quantity} @ {item.unit_price} = {item.total_price}")
            print(f"Total: {order.calculate_total()} so'm")
        elif choice == "5":
            result = shop.process_order(order)
            if not result:
                print(f"Checkout failed: {result.error_message}")
                continue
            print("Select payment method:")
            for idx, method in enumerate(methods, start=1):
                print(f"{idx}. {method.value}")
            try:
                method = methods[int(input("Choice: ").strip()) - 1]
            except (ValueError, IndexError):
                method = PaymentMethod.CARD
                print(f"Invalid choice, using {method.value}.")
            payment = payments.pay_order(order, method)
            print(payment.generate_receipt() or f"Payment status: {payment.status.value}")
            order = shop.create_order(customer)
        elif choice == "6":
            print(generate_metrics_text())
        elif choice == "0":
            print("Exiting.")
            break
        else:
            print("Invalid option. Please try again.")


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    config = ShopConfig.from_env()
    configure_logging(config.log_dir, config.log_level)
    if argv and argv[0] == "interactive":
        try:
            interactive_cli(config)
        except KeyboardInterrupt:
            print("\nInterrupted by user. Exiting.")
    else:
        run_demo(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())

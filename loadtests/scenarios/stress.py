"""Stress scenarios for the conditional stock and coupon writes.

StockContentionUser has every simulated user buy from the same small batch
of products. Once a product sells out, orders for it must be rejected with
a stock error; any other failure, or a product ending with negative stock,
means the conditional decrement leaked.
"""

from locust import HttpUser, constant_pacing, task

from loadtests.data_generators import (
    admin_headers,
    coupon_data,
    extract_error_detail,
    order_data,
    product_data,
    review_data,
    user_headers,
)

_HOT_PRODUCTS = 3
_HOT_STOCK = 25


class StockContentionUser(HttpUser):
    """Many buyers, few units. Rejections for stock are the expected outcome."""

    wait_time = constant_pacing(0.1)
    product_ids: list[str] = []
    coupon_code: str | None = None

    def on_start(self):
        cls = type(self)
        if cls.product_ids:
            return
        for _ in range(_HOT_PRODUCTS):
            resp = self.client.post(
                "/products",
                json=product_data(stock=_HOT_STOCK),
                headers=admin_headers(),
                name="[STRESS] seed product",
            )
            cls.product_ids.append(resp.json()["id"])

        coupon = coupon_data(usage_limit=10)
        self.client.post("/coupons", json=coupon, headers=admin_headers(), name="[STRESS] seed coupon")
        cls.coupon_code = coupon["code"]

    @task(5)
    def buy_hot_product(self):
        with self.client.post(
            "/orders",
            json=order_data(self.product_ids, quantity=1),
            headers=user_headers(),
            catch_response=True,
            name="[STRESS] POST /orders",
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 400 and "stock" in resp.text:
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code} - {extract_error_detail(resp)}")

    @task(2)
    def race_for_coupon(self):
        with self.client.post(
            "/orders",
            json=order_data(self.product_ids, coupon_code=self.coupon_code, quantity=1),
            headers=user_headers(),
            catch_response=True,
            name="[STRESS] POST /orders (coupon)",
        ) as resp:
            if resp.status_code == 201 or (resp.status_code == 400 and ("coupon" in resp.text or "stock" in resp.text)):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code} - {extract_error_detail(resp)}")

    @task(1)
    def check_stock(self):
        for product_id in self.product_ids:
            with self.client.get(
                f"/products/{product_id}", catch_response=True, name="[STRESS] GET /products/{id}"
            ) as resp:
                if resp.status_code == 200 and resp.json()["stock"] < 0:
                    resp.failure(f"Product {product_id} oversold: stock {resp.json()['stock']}")

    @task(1)
    def review_hot_product(self):
        self.client.post(
            "/reviews",
            json=review_data(self.product_ids[0]),
            headers=user_headers(),
            name="[STRESS] POST /reviews",
        )

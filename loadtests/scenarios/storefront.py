"""Storefront load test scenarios.

Two stateful journeys: a shopper who browses, orders and reviews, and an
admin who walks orders through fulfilment and moderates reviews. Each
journey seeds its own products so users do not depend on each other.
"""

import random
from dataclasses import dataclass, field

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    SORTS,
    admin_headers,
    coupon_data,
    extract_error_detail,
    order_data,
    product_data,
    review_data,
    user_headers,
)


@dataclass
class ShopperState:
    headers: dict = field(default_factory=user_headers)
    product_ids: list[str] = field(default_factory=list)
    coupon_code: str | None = None
    order_id: str | None = None
    review_id: str | None = None


class ShopperJourney(SequentialTaskSet):
    """Seed products -> Browse reviews -> Place order -> Review -> React.

    Exercises pricing, conditional stock decrements, coupon usage and the
    rating recompute on every approved review.
    """

    def on_start(self):
        self.state = ShopperState()

    @task
    def seed_catalog(self):
        for _ in range(3):
            with self.client.post(
                "/products",
                json=product_data(),
                headers=admin_headers(),
                catch_response=True,
                name="POST /products",
            ) as resp:
                if resp.status_code == 201:
                    self.state.product_ids.append(resp.json()["id"])
                else:
                    resp.failure(f"Add product failed: {resp.status_code} - {extract_error_detail(resp)}")
                    self.interrupt()

        coupon = coupon_data()
        with self.client.post(
            "/coupons", json=coupon, headers=admin_headers(), catch_response=True, name="POST /coupons"
        ) as resp:
            if resp.status_code == 201:
                # Half the shoppers redeem the code
                self.state.coupon_code = coupon["code"] if random.random() < 0.5 else None
            else:
                resp.failure(f"Create coupon failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def browse_reviews(self):
        product_id = random.choice(self.state.product_ids)
        with self.client.get(
            f"/reviews/product/{product_id}",
            params={"sort": random.choice(SORTS)},
            catch_response=True,
            name="GET /reviews/product/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"List reviews failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def place_order(self):
        with self.client.post(
            "/orders",
            json=order_data(self.state.product_ids, coupon_code=self.state.coupon_code),
            headers=self.state.headers,
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["id"]
            else:
                resp.failure(f"Place order failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def view_order(self):
        with self.client.get(
            f"/orders/{self.state.order_id}",
            headers=self.state.headers,
            catch_response=True,
            name="GET /orders/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"View order failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def write_review(self):
        with self.client.post(
            "/reviews",
            json=review_data(self.state.product_ids[0]),
            headers=self.state.headers,
            catch_response=True,
            name="POST /reviews",
        ) as resp:
            if resp.status_code == 201:
                self.state.review_id = resp.json()["id"]
            else:
                resp.failure(f"Create review failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def mark_helpful(self):
        with self.client.post(
            f"/reviews/{self.state.review_id}/helpful",
            headers=user_headers(),
            catch_response=True,
            name="POST /reviews/{id}/helpful",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Toggle helpful failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class FulfilmentJourney(SequentialTaskSet):
    """Place an order, then walk it to delivered as an admin."""

    def on_start(self):
        self.state = ShopperState()

    @task
    def place_order(self):
        with self.client.post(
            "/products", json=product_data(), headers=admin_headers(), name="POST /products"
        ) as resp:
            if resp.status_code != 201:
                self.interrupt()
            self.state.product_ids.append(resp.json()["id"])

        with self.client.post(
            "/orders",
            json=order_data(self.state.product_ids),
            headers=self.state.headers,
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["id"]
            else:
                resp.failure(f"Place order failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def fulfil(self):
        for status in ("confirmed", "preparing", "shipped", "delivered"):
            body = {"status": status}
            if status == "shipped":
                body.update(tracking_number=f"LT-{random.randint(100000, 999999)}", carrier="DHL")
            if status == "delivered":
                body["payment_status"] = "paid"
            with self.client.put(
                f"/orders/{self.state.order_id}/status",
                json=body,
                headers=admin_headers(),
                catch_response=True,
                name="PUT /orders/{id}/status",
            ) as resp:
                if resp.status_code != 200:
                    resp.failure(f"Move to {status} failed: {resp.status_code} - {extract_error_detail(resp)}")
                    self.interrupt()

    @task
    def verified_review(self):
        with self.client.post(
            "/reviews",
            json=review_data(self.state.product_ids[0]),
            headers=self.state.headers,
            catch_response=True,
            name="POST /reviews (verified)",
        ) as resp:
            if resp.status_code == 201 and not resp.json()["verified"]:
                resp.failure("Review after delivery was not marked verified")
            elif resp.status_code != 201:
                resp.failure(f"Create review failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class StorefrontUser(HttpUser):
    """Mixed storefront traffic. Shoppers outnumber fulfilment runs."""

    tasks = {ShopperJourney: 4, FulfilmentJourney: 1}
    wait_time = between(0.5, 2.0)

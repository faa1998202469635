from locust import HttpUser, task, between
import random

SORTS = ["newest", "oldest", "name-asc", "name-desc"]


class ShopperUser(HttpUser):
    wait_time = between(0.1, 0.5)

    def on_start(self):
        # Learn the category slugs once per simulated client
        r = self.client.get("/api/categories")
        if r.status_code == 200:
            self.slugs = [c["slug"] for c in r.json()["categories"]]
        else:
            self.slugs = []

    @task(4)
    def browse_products(self):
        params = {"sort": random.choice(SORTS), "page": random.randint(1, 3)}
        if self.slugs and random.random() < 0.5:
            params["category"] = random.choice(self.slugs)
        self.client.get("/api/products", params=params, name="/api/products")

    @task(2)
    def search(self):
        self.client.get("/api/products", params={"search": random.choice(["watch", "quartz", "18"])},
                        name="/api/products?search")

    @task(1)
    def contact(self):
        self.client.post("/api/contact", json={
            "name": "Load Tester",
            "email": f"load{random.randint(1, 1_000_000)}@example.com",
            "subject": "Stock question",
            "message": "Is this model available?",
        })

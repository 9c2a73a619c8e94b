#!/usr/bin/env python3
"""
Smoke check against a running dashboard API
Run from the project root: python scripts/check_dashboard_api.py

Environment:
- DASHBOARD_URL (default http://localhost:8000/api/v1)
- DASHBOARD_PASSWORD (one of the AUTH_PASSWORD entries)
"""

import asyncio
import os

import httpx

BASE_URL = os.getenv("DASHBOARD_URL", "http://localhost:8000/api/v1")
PASSWORD = os.getenv("DASHBOARD_PASSWORD", "")


class DashboardChecker:
    def __init__(self, base_url: str = BASE_URL, password: str = PASSWORD, transport=None):
        self.client = httpx.AsyncClient(base_url=base_url, timeout=120, transport=transport)
        self.password = password
        self.first_dealer_id = None

    async def sign_in(self) -> bool:
        print("🔐 Signing in...")
        response = await self.client.post("/auth/sign-in-json", json={"password": self.password})
        if response.status_code != 200:
            print(f"❌ Sign-in failed: {response.status_code} {response.text}")
            return False

        # The cookie is Secure outside DEBUG; httpx would not send it back over plain http
        for name, value in response.cookies.items():
            self.client.cookies.set(name, value)
        print("✅ Signed in")
        return True

    async def check_dealers(self) -> bool:
        print("\n📋 Dealers with stats")
        response = await self.client.get("/dealers", params={"pageSize": 25, "sort": "expired", "order": "desc"})
        if response.status_code != 200:
            print(f"❌ Error fetching dealers: {response.status_code} {response.text}")
            return False

        dealers = response.json()
        without_stats = sum(1 for d in dealers if d.get("listingOverview") is None)
        print(f"✅ {len(dealers)} dealers, {without_stats} without stats")
        if dealers:
            self.first_dealer_id = dealers[0]["marketcheckDealerId"]
        return True

    async def check_summary(self) -> bool:
        print("\n📋 Dashboard totals")
        response = await self.client.get("/dealers/summary")
        if response.status_code != 200:
            print(f"❌ Error fetching summary: {response.status_code}")
            return False
        for key, value in response.json().items():
            print(f"   {key}: {value}")
        return True

    async def check_dealer_drilldown(self) -> bool:
        if not self.first_dealer_id:
            print("\n⚠️ No dealers, skipping drill-down")
            return True

        print(f"\n📋 Drill-down for dealer {self.first_dealer_id}")
        issues = await self.client.get(f"/dealers/{self.first_dealer_id}/issues")
        if issues.status_code == 200:
            print(f"✅ Issues: {issues.json()['total']}")
        else:
            print(f"⚠️ Issues unavailable: {issues.status_code}")

        export = await self.client.get("/export", params={"type": "dealer-issues", "dealerId": self.first_dealer_id})
        print(f"{'✅' if export.status_code == 200 else '⚠️'} dealer-issues export: {export.status_code}")
        return True

    async def cleanup(self):
        await self.client.post("/auth/sign-out")
        await self.client.aclose()


async def main():
    checker = DashboardChecker()
    try:
        if not await checker.sign_in():
            return
        results = [
            await checker.check_dealers(),
            await checker.check_summary(),
            await checker.check_dealer_drilldown(),
        ]
        print("\n🎉 ALL CHECKS PASSED" if all(results) else "\n❌ SOME CHECKS FAILED")
    except KeyboardInterrupt:
        print("\n⚠️ Interrupted")
    finally:
        await checker.cleanup()


if __name__ == "__main__":
    print("🧪 Dashboard API smoke check")
    print(f"   - Target: {BASE_URL}")
    print()
    asyncio.run(main())

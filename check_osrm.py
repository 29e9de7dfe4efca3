#!/usr/bin/env python3
"""Check that the configured OSRM server answers route and table requests."""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from delivery_engine.config import settings
from delivery_engine.services.routing.distance import DistanceProvider
from delivery_engine.services.routing.osrm_client import check_health

WAREHOUSE = (28.6139, 77.2090)  # Connaught Place, New Delhi
CUSTOMERS = [
    (28.5355, 77.3910),  # Noida
    (28.4595, 77.0266),  # Gurugram
]


def main():
    print("=" * 60)
    print("OSRM Connection Check")
    print("=" * 60)
    print()

    print("1. Checking OSRM configuration...")
    if not settings.osrm_base_url:
        print("   [ERROR] OSRM base URL is not configured")
        print("   Please set DELIVERY_OSRM_BASE_URL in your .env file")
        return 1
    print(f"   [OK] OSRM Base URL: {settings.osrm_base_url}")
    print(f"   [OK] OSRM Profile: {settings.osrm_profile}")
    print()

    print("2. Testing OSRM health check...")
    if not check_health():
        print("   [ERROR] OSRM service is not responding; quotes will use the haversine estimate")
        return 1
    print("   [OK] OSRM service is healthy and accessible!")
    print()

    print("3. Resolving warehouse to customer distances...")
    provider = DistanceProvider(use_routing=True)
    results = provider.matrix(WAREHOUSE, CUSTOMERS)
    for customer, result in zip(CUSTOMERS, results):
        print(
            f"   [{'OK' if not result.is_fallback else 'WARN'}] {customer}: "
            f"{result.distance_km:.2f} km, {result.duration_minutes:.1f} min ({result.method})"
        )
    if any(result.is_fallback for result in results):
        print("   [ERROR] Some distances fell back to the haversine estimate")
        return 1
    print()

    print("=" * 60)
    print("[SUCCESS] OSRM is connected and working!")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())

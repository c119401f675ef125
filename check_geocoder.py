#!/usr/bin/env python3
"""Manual check of geocoding and IP geolocation connectivity."""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from geoengine.config import settings
from geoengine.errors import ServiceFailure
from geoengine.services.geocoding.nominatim_client import NominatimClient, check_health
from geoengine.services.location.ip_geolocation import IPGeolocationClient


def main():
    print("=" * 60)
    print("Geocoding Connection Test")
    print("=" * 60)
    print()

    print("1. Checking geocoder configuration...")
    print(f"   [OK] Nominatim Base URL: {settings.nominatim_base_url}")
    print(f"   [OK] User-Agent: {settings.geocoder_user_agent}")
    print()

    print("2. Testing geocoder status endpoint...")
    if check_health():
        print("   [OK] Geocoding service is healthy and accessible!")
    else:
        print("   [ERROR] Geocoding service is not responding")
        return 1
    print()

    print("3. Testing forward geocoding...")
    client = NominatimClient()
    try:
        matches = client.search("Brandenburger Tor, Berlin", limit=1)
    except ServiceFailure as e:
        print(f"   [ERROR] Search failed: {e}")
        return 1
    if not matches:
        print("   [ERROR] No match returned")
        return 1
    best = matches[0]
    print(f"   [OK] {best.display_name}")
    print(f"   [OK] ({best.coordinate.lat:.5f}, {best.coordinate.lng:.5f})")
    print()

    print("4. Testing IP geolocation providers...")
    for provider in IPGeolocationClient().providers:
        try:
            coordinate = IPGeolocationClient(providers=[provider], max_retries=0).lookup()
            print(f"   [OK] {provider.name}: ({coordinate.lat:.4f}, {coordinate.lng:.4f})")
        except ServiceFailure as e:
            print(f"   [WARN] {provider.name}: {e}")
    print()

    print("=" * 60)
    print("Geocoding connectivity checks passed")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())

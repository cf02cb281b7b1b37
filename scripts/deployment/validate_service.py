#!/usr/bin/env python3
"""
Validation script for the qui-vive service.
Exercises every route of a running service to check that it behaves correctly.
"""

import sys
import time
import requests
from typing import Optional
from datetime import datetime
from urllib.parse import urlsplit, parse_qs


class ServiceValidator:
    """Validates qui-vive service functionality."""

    def __init__(self, base_url: str = "http://localhost:8080", max_value_size: int = 65536):
        self.base_url = base_url.rstrip("/")
        self.max_value_size = max_value_size
        self.session = requests.Session()
        self.test_results = []

    def print_header(self, text: str):
        """Print a formatted header."""
        print(f"\n{'='*60}")
        print(f"  {text}")
        print(f"{'='*60}\n")

    def print_test(self, name: str, passed: bool, details: str = ""):
        """Print test result."""
        status = "✅ PASS" if passed else "❌ FAIL"
        self.test_results.append((name, passed))
        print(f"{status} - {name}")
        if details:
            print(f"       {details}")

    @staticmethod
    def id_from_link(link: str) -> str:
        """The identifier is the last path segment of a returned link."""
        return urlsplit(link.strip()).path.rstrip("/").rsplit("/", 1)[-1]

    def test_health_check(self) -> bool:
        """Test health check endpoint."""
        try:
            response = self.session.get(f"{self.base_url}/health", timeout=5)
            is_healthy = response.status_code == 200
            self.print_test("Health Check", is_healthy, f"Status: {response.status_code}")
            return is_healthy
        except Exception as e:
            self.print_test("Health Check", False, f"Error: {str(e)}")
            return False

    def test_key_round_trip(self) -> Optional[str]:
        """Store a payload and read it back."""
        try:
            payload = f"validation payload {int(time.time())}"
            response = self.session.post(f"{self.base_url}/key", data=payload.encode("utf-8"), timeout=5)
            if response.status_code != 200:
                self.print_test("Key Round Trip", False, f"Create status: {response.status_code}")
                return None

            identifier = self.id_from_link(response.text)
            response = self.session.get(f"{self.base_url}/key/{identifier}", timeout=5)

            matches = response.status_code == 200 and response.text == payload
            headers_ok = (
                response.headers.get("X-Robots-Tag") == "noindex"
                and response.headers.get("X-Content-Type-Options") == "nosniff"
            )
            self.print_test("Key Round Trip", matches and headers_ok, f"Id: {identifier}")
            return identifier if matches else None
        except Exception as e:
            self.print_test("Key Round Trip", False, f"Error: {str(e)}")
            return None

    def test_generic_lookup_hides_keys(self, identifier: str) -> bool:
        """A key entry has no URL, so GET /{id} must be 404."""
        try:
            response = self.session.get(f"{self.base_url}/{identifier}", allow_redirects=False, timeout=5)
            is_not_found = response.status_code == 404
            self.print_test(
                "Generic Lookup Hides Keys",
                is_not_found,
                f"Status: {response.status_code} (expected 404)"
            )
            return is_not_found
        except Exception as e:
            self.print_test("Generic Lookup Hides Keys", False, f"Error: {str(e)}")
            return False

    def test_delete(self, identifier: str) -> bool:
        """Delete an entry twice; both answer 200 and the entry is gone."""
        try:
            first = self.session.delete(f"{self.base_url}/key/{identifier}", timeout=5)
            second = self.session.delete(f"{self.base_url}/key/{identifier}", timeout=5)
            lookup = self.session.get(f"{self.base_url}/key/{identifier}", timeout=5)
            passed = first.status_code == 200 and second.status_code == 200 and lookup.status_code == 404
            self.print_test(
                "Delete",
                passed,
                f"Statuses: {first.status_code}, {second.status_code}, lookup {lookup.status_code}"
            )
            return passed
        except Exception as e:
            self.print_test("Delete", False, f"Error: {str(e)}")
            return False

    def test_url_redirect(self) -> bool:
        """Store a redirect and follow it through /url/{id} and /{id}."""
        try:
            destination = f"https://example.com/validate/{int(time.time())}"
            response = self.session.post(f"{self.base_url}/url", data=destination, timeout=5)
            if response.status_code != 200:
                self.print_test("URL Redirect", False, f"Create status: {response.status_code}")
                return False

            identifier = self.id_from_link(response.text)
            passed = True
            for path in (f"/url/{identifier}", f"/{identifier}"):
                response = self.session.get(f"{self.base_url}{path}", allow_redirects=False, timeout=5)
                passed = passed and response.status_code == 301 and response.headers.get("Location") == destination

            self.print_test("URL Redirect", passed, f"Id: {identifier}")
            return passed
        except Exception as e:
            self.print_test("URL Redirect", False, f"Error: {str(e)}")
            return False

    def test_referral(self) -> bool:
        """Store a referral and check the identifier lands in the query string."""
        try:
            response = self.session.post(
                f"{self.base_url}/inv",
                headers={"Destination-Url": "https://example.com/landing", "Id-Param-Name": "ref"},
                timeout=5
            )
            if response.status_code != 200:
                self.print_test("Referral", False, f"Create status: {response.status_code}")
                return False

            identifier = self.id_from_link(response.text)
            response = self.session.get(f"{self.base_url}/inv/{identifier}", allow_redirects=False, timeout=5)
            location = response.headers.get("Location", "")
            passed = response.status_code == 301 and parse_qs(urlsplit(location).query).get("ref") == [identifier]
            self.print_test("Referral", passed, f"Redirects to: {location}")
            return passed
        except Exception as e:
            self.print_test("Referral", False, f"Error: {str(e)}")
            return False

    def test_referral_requires_destination(self) -> bool:
        """POST /inv without Destination-Url is rejected."""
        try:
            response = self.session.post(f"{self.base_url}/inv", timeout=5)
            is_rejected = response.status_code == 400
            self.print_test(
                "Referral Needs Destination",
                is_rejected,
                f"Status: {response.status_code} (expected 400)"
            )
            return is_rejected
        except Exception as e:
            self.print_test("Referral Needs Destination", False, f"Error: {str(e)}")
            return False

    def test_payload_too_large(self) -> bool:
        """A body one byte over the limit is rejected."""
        try:
            response = self.session.post(
                f"{self.base_url}/key",
                data=b"x" * (self.max_value_size + 1),
                timeout=10
            )
            is_rejected = response.status_code == 413
            self.print_test(
                "Payload Too Large",
                is_rejected,
                f"Status: {response.status_code} (expected 413)"
            )
            return is_rejected
        except Exception as e:
            self.print_test("Payload Too Large", False, f"Error: {str(e)}")
            return False

    def test_nonexistent_id(self) -> bool:
        """Test accessing a non-existent identifier."""
        try:
            response = self.session.get(f"{self.base_url}/key/nonexistent999", timeout=5)

            is_not_found = response.status_code == 404
            self.print_test(
                "Non-existent Id",
                is_not_found,
                f"Status: {response.status_code} (expected 404)"
            )
            return is_not_found
        except Exception as e:
            self.print_test("Non-existent Id", False, f"Error: {str(e)}")
            return False

    def run_all_tests(self) -> bool:
        """Run all validation tests."""
        self.print_header("qui-vive Service Validation")
        print(f"Testing service at: {self.base_url}")
        print(f"Timestamp: {datetime.now().isoformat()}\n")

        # Basic connectivity
        if not self.test_health_check():
            print("\n❌ Health check failed. Service may not be running.")
            print(f"   Make sure the service is accessible at {self.base_url}")
            return False

        print()

        identifier = self.test_key_round_trip()
        if identifier:
            self.test_generic_lookup_hides_keys(identifier)
            self.test_delete(identifier)

        self.test_url_redirect()
        self.test_referral()

        print()

        self.test_referral_requires_destination()
        self.test_payload_too_large()
        self.test_nonexistent_id()

        self.print_summary()

        return all(passed for _, passed in self.test_results)

    def print_summary(self):
        """Print test summary."""
        total = len(self.test_results)
        passed = sum(1 for _, p in self.test_results if p)
        failed = total - passed

        self.print_header("Test Summary")
        print(f"Total Tests:  {total}")
        print(f"✅ Passed:     {passed}")
        print(f"❌ Failed:     {failed}")
        print(f"Success Rate: {(passed/total*100):.1f}%")

        if failed > 0:
            print("\n⚠️  Failed tests:")
            for name, passed in self.test_results:
                if not passed:
                    print(f"   - {name}")

        print()


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Validate qui-vive service functionality"
    )
    parser.add_argument(
        "--url",
        default="http://localhost:8080",
        help="Base URL of the service (default: http://localhost:8080)"
    )
    parser.add_argument(
        "--max-value-size",
        type=int,
        default=65536,
        help="MAX_VALUE_SIZE the service runs with (default: 65536)"
    )

    args = parser.parse_args()

    validator = ServiceValidator(args.url, args.max_value_size)

    try:
        success = validator.run_all_tests()
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\n\n⚠️  Validation interrupted by user")
        sys.exit(2)
    except Exception as e:
        print(f"\n\n❌ Validation failed with error: {str(e)}")
        sys.exit(3)


if __name__ == "__main__":
    main()

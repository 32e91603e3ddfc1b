#!/usr/bin/env python3
"""
Example demonstrating the logging done by oasrouter.

This example shows what each log level carries:
- DEBUG: Path matching and pipeline flow
- INFO: Handler resolution, dispatch and validation steps
- WARNING: Responses that break their contract (wrong data, wrong status code)
- ERROR: Routing failures and handler exceptions (500)
"""

import logging
from pathlib import Path

from oasrouter import HTTPMethod, OASApplication, Request, Specification

HERE = Path(__file__).parent / "petstore"


def setup_logging():
    """Set up logging configuration."""
    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def report_violation(violation):
    print(f"   Violation reported: {violation.status_code} {violation.message or 'undeclared status'}")


def create_app():
    """Create the pet store application with a violation callback."""
    spec = Specification.from_file(HERE / "openapi.yaml")
    return OASApplication(
        spec,
        controllers=str(HERE / "controllers"),
        on_violation=report_violation,
    )


if __name__ == "__main__":
    # Set up logging to see all messages
    setup_logging()

    app = create_app()

    print("=== Logging Example for oasrouter ===\n")

    # Example 1: Valid response (DEBUG and INFO logs)
    print("1. Valid response - shows resolution and validation:")
    response = app.execute(Request(method=HTTPMethod.GET, path="/pets"))
    print(f"   Response: {response.status_code}\n")

    # Example 2: A pet with a string id breaks the Pet schema (WARNING logs)
    print("2. Contract violation - the client still gets the payload:")
    app.execute(Request(method=HTTPMethod.POST, path="/pets", body='{"id": "3", "name": "Odd"}'))
    response = app.execute(Request(method=HTTPMethod.GET, path="/pets"))
    print(f"   Response: {response.status_code} {response.body}\n")

    # Example 3: Unknown path (DEBUG logs)
    print("3. Unknown path:")
    response = app.execute(Request(method=HTTPMethod.GET, path="/cats"))
    print(f"   Response: {response.status_code}\n")

    # Example 4: Bad request body answered with a declared error (no warning)
    print("4. Declared error response:")
    response = app.execute(Request(method=HTTPMethod.POST, path="/pets", body="not json"))
    print(f"   Response: {response.status_code} {response.body}\n")

#!/usr/bin/env python3
"""
Déclencher un cycle de smart charging sur un site via l'API
"""

import argparse
import json
import logging
import sys

import requests

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def trigger(api_url: str, site_id: str, excluded: list) -> int:
    url = f"{api_url}/sites/{site_id}/smart-charging"
    logger.info(f"POST {url}")
    try:
        response = requests.post(url, json={"excludedChargingStations": excluded}, timeout=60)
    except requests.exceptions.RequestException as e:
        logger.error(f"API not reachable: {e}")
        return 1

    if response.status_code != 200:
        logger.error(f"Smart charging failed ({response.status_code}): {response.text}")
        return 1

    data = response.json()
    profiles = data.get("chargingProfiles", [])
    logger.info(f"{len(profiles)} charging profiles built for site {site_id}")
    for profile in profiles:
        schedule = profile["profile"]["chargingSchedule"]
        limits = [period["limit"] for period in schedule["chargingSchedulePeriod"]]
        logger.info(f"  {profile['chargingStationID']} connector {profile['connectorID']}: {limits} A")
    print(json.dumps(data, indent=2))
    return 0


def check_connection(api_url: str) -> int:
    response = requests.post(f"{api_url}/smart-charging/check-connection", timeout=60)
    logger.info(f"Check connection: {response.status_code} {response.text}")
    return 0 if response.status_code == 200 else 1


def main():
    parser = argparse.ArgumentParser(description="Trigger a smart charging cycle")
    parser.add_argument("site_id", nargs="?", help="Site ID")
    parser.add_argument("--api-url", default="http://localhost:8000/api/v1",
                        help="Smart charging API base URL")
    parser.add_argument("--exclude", action="append", default=[],
                        help="Charging station ID to exclude (repeatable)")
    parser.add_argument("--check-connection", action="store_true",
                        help="Only check the optimizer connection")

    args = parser.parse_args()

    if args.check_connection:
        sys.exit(check_connection(args.api_url))
    if not args.site_id:
        parser.error("site_id is required")
    sys.exit(trigger(args.api_url, args.site_id, args.exclude))


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Call a cloud API action from the command line.

Usage:
  python run.py DetectFace --params '{"Url": "https://example.com/me.jpg"}'
  python run.py DescribeInstances --endpoint cvm.tencentcloudapi.com --version 2017-03-12
  python run.py DetectFace --params '{"Url": "..."}' --dry-run   # print signed request only

Credentials and defaults come from the environment (see config.py).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from config import load_config, Config
from cloudapi.abstract_client import AbstractClient
from cloudapi.auth import build_credential, build_profile
from cloudapi.errors import CloudSDKError
from cloudapi.face import FACE_API_VERSION, FACE_ENDPOINT
from cloudapi.profile import SIGN_METHODS
from monitor.logger import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Signed cloud API caller")
    parser.add_argument("action", help="API action name, e.g. DetectFace")
    parser.add_argument("--params", type=str, default="{}", help="Request parameters as a JSON object")
    parser.add_argument("--endpoint", type=str, default=FACE_ENDPOINT, help=f"Service host (default: {FACE_ENDPOINT})")
    parser.add_argument("--version", type=str, default=FACE_API_VERSION, help=f"API version (default: {FACE_API_VERSION})")
    parser.add_argument("--region", type=str, default=None, help="Region (default: TENCENTCLOUD_REGION)")
    parser.add_argument("--sign-method", type=str, choices=SIGN_METHODS, default=None, help="Override SIGN_METHOD")
    parser.add_argument("--dry-run", action="store_true", help="Print the signed request without sending it")
    parser.add_argument("--json-log", type=str, default=None, help="Path to JSON log file for machine-readable output")
    parser.add_argument("--log-dir", type=str, default=None, help="Directory for verbose debug logs")
    return parser.parse_args(argv)


def build_client(args: argparse.Namespace, cfg: Config) -> AbstractClient:
    if args.sign_method:
        cfg = cfg.model_copy(update={"sign_method": args.sign_method})
    region = cfg.tencentcloud_region if args.region is None else args.region
    return AbstractClient(
        endpoint=args.endpoint,
        version=args.version,
        credential=build_credential(cfg),
        region=region,
        profile=build_profile(cfg),
    )


def describe_request(client: AbstractClient, action: str, params: dict) -> dict:
    """Signed request as a printable dict."""
    request = client.build_request(action, params)
    return {
        "method": request.method,
        "url": str(request.url),
        "headers": {k: v for k, v in request.headers.items()},
        "body": request.content.decode("utf-8"),
    }


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    cfg = load_config()
    setup_logging(cfg.log_level, json_log_file=args.json_log, log_dir=args.log_dir)

    try:
        params = json.loads(args.params)
    except json.JSONDecodeError as e:
        logger.error("--params is not valid JSON: %s", e)
        return 2
    if not isinstance(params, dict):
        logger.error("--params must be a JSON object")
        return 2

    try:
        client = build_client(args, cfg)
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        return 2

    with client:
        if args.dry_run:
            print(json.dumps(describe_request(client, args.action, params), indent=2, ensure_ascii=False))
            return 0
        try:
            payload = client.call(args.action, params)
        except CloudSDKError as e:
            logger.error("%s failed: %s", args.action, e)
            return 1

    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())

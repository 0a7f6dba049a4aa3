#!/usr/bin/env python3
"""
CLI entrypoint for one-off niche analyses.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys

from dotenv import load_dotenv

from config import ScoutConfig
from connectors import get_default_user_id
from logging_utils import log_exception, setup_run_logging
from models import AnalysisResult
from niche_agent import NicheAnalysisAgent


def enable_debug_logging() -> None:
    logging.getLogger().setLevel(logging.DEBUG)
    for logger_name in ("niche_agent", "connectors", "chart_data", "connections"):
        logging.getLogger(logger_name).setLevel(logging.DEBUG)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Analyze an e-commerce product niche.")
    parser.add_argument("product", type=str, help="Product or niche to analyze.")
    parser.add_argument("--mock", action="store_true", help="Use canned demo data instead of live connectors.")
    parser.add_argument("--user", type=str, default=None, help="Connector user id (defaults to DEFAULT_USER_ID).")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON.")
    parser.add_argument("--log-dir", type=str, default=ScoutConfig.LOG_DIR, help="Directory for run logs.")
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging.")
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Emit step-by-step traces (filtered tools, tool results).",
    )
    return parser.parse_args()


def print_summary(result: AnalysisResult) -> None:
    print(f"\n📦 {result.product_name}")
    print(f"📈 Demand score: {result.demand_score}/100 ({result.opportunity_level.value})")
    print(f"💰 Revenue: {result.revenue}")
    print(f"🧭 Trend: {result.trend.value}")
    if result.competitors:
        print("🏁 Competitors:")
        for competitor in result.competitors:
            print(f"   - {competitor.domain} [{competitor.traffic_source.value}] {competitor.traffic}")
    print("\n" + result.recommendation)


def main() -> None:
    args = parse_args()
    load_dotenv()

    if not args.mock and not os.getenv("OPENAI_API_KEY"):
        print("❌ Missing OPENAI_API_KEY. Set it in your environment or .env file, or pass --mock.")
        sys.exit(1)

    run_logger, log_path = setup_run_logging(args.log_dir, args.product)
    if args.debug:
        enable_debug_logging()
        run_logger.debug("Debug logging enabled.")

    user_id = args.user or get_default_user_id()
    mode = "demo" if args.mock else "live"
    run_logger.info(f"🔎 Analyzing '{args.product}' ({mode} mode, user {user_id})")

    try:
        agent = NicheAnalysisAgent(trace_mode=args.trace)
        result = asyncio.run(agent.analyze_product(args.product, use_mock_data=args.mock, user_id=user_id))
    except Exception as exc:
        log_exception(run_logger, exc, context="analyze_product", product=args.product, mode=mode)
        print(f"❌ Analysis failed. Details in {log_path}")
        sys.exit(1)

    if args.json:
        print(json.dumps(result.to_payload(), ensure_ascii=False, indent=2))
    else:
        print_summary(result)


if __name__ == "__main__":
    main()

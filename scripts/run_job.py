#!/usr/bin/env python3
"""
Scheduled Job Runner

Runs one poll or summary cycle and prints the JSON result. Meant to be
called by cron, a systemd timer or any other scheduler.

Usage:
    python scripts/run_job.py poll
    python scripts/run_job.py summary [--dry-run] [--channel C0123]
"""

import sys
import json
import logging
import argparse
import os
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run one AIWatch job cycle")
    parser.add_argument("job", choices=["poll", "summary"], help="Job to run")
    parser.add_argument("--dry-run", action="store_true",
                        help="summary only: print thread summaries without posting or consuming")
    parser.add_argument("--channel", action="append", default=[],
                        help="summary --dry-run only: channel id to inspect (repeatable)")
    args = parser.parse_args(argv)

    from dotenv import load_dotenv

    load_dotenv()
    logging.basicConfig(
        level=os.getenv("AIWATCH_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from aiwatch.common.config import load_config, resolve_config_secrets, validate_config
    from aiwatch.common.errors import ConfigError
    from aiwatch.runtime import build_runtime, run_poll_job, run_summary_job

    try:
        config = resolve_config_secrets(load_config())
        validate_config(config, args.job)
    except ConfigError as e:
        print(f"[AIWatch] ERROR: {e}", file=sys.stderr)
        return 1

    runtime = build_runtime(config)

    if args.job == "poll":
        status_code, body = run_poll_job(runtime)
    elif args.dry_run:
        status_code, body = _dry_run_summary(runtime, args.channel)
    else:
        status_code, body = run_summary_job(runtime)

    print(json.dumps(body, indent=2, ensure_ascii=False))
    return 0 if status_code < 400 else 1


def _dry_run_summary(runtime, channel_ids):
    """Judge stored threads and report them without touching Slack or the store"""
    if not channel_ids:
        channels = runtime.workspace.list_member_channels(
            exclude=runtime.config.slack.target_channel_id,
            types=runtime.config.slack.channel_types,
        )
        channel_ids = [ch["id"] for ch in channels]

    report = {}
    for channel_id in channel_ids:
        summaries = runtime.publisher.summarize_channel(channel_id)
        report[channel_id] = [s.model_dump() for s in summaries]
    return 200, {"dry_run": True, "channels": report}


if __name__ == "__main__":
    sys.exit(main())

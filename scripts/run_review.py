#!/usr/bin/env python3
"""Run a PR review locally against a pull request reference."""
import argparse
import asyncio
import sys

from dotenv import load_dotenv

load_dotenv()

from src.core.exceptions import ReviewerError
from src.core.pr_parser import parse_pr_reference
from src.services.reviewer.service import review_pull_request


async def main(reference: str) -> int:
    ref = parse_pr_reference(reference)
    if ref is None:
        print(f"Could not parse PR reference: {reference}", file=sys.stderr)
        return 2
    try:
        report = await review_pull_request(ref.owner, ref.repo, ref.pr_number)
    except ReviewerError as e:
        print(f"Review failed: {e}", file=sys.stderr)
        return 1
    print(report.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("reference", help="owner/repo#123, a PR URL, or #123 with GITHUB_REPOSITORY set")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.reference)))

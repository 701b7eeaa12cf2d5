#!/usr/bin/env python3
"""
Example: Update the micro-CCD per euro exchange rate.

This example:
1. Loads update keys from key files
2. Reads the chain's update keys and next sequence number at the last finalized block
3. Signs an update setting the exchange rate to 1/1, effective on finalization
4. Submits it and prints its status until it is finalized

Usage:
    python update_exchange_rate.py --node http://localhost:20000 --key key-0.json --key key-1.json
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from ledger_client import (
    BlockIdentifier, BlockItem, ChannelConfig, Client, Committed, ExchangeRate,
    LedgerClientError, MicroCCDPerEuroUpdate, SubmissionTracker, TrackerConfig,
    TransactionTime, UpdateType, construct_update_signer, load_update_keys, update,
)
from ledger_client.transport import DEFAULT_ENDPOINT, ENDPOINT_ENV_VAR
from ledger_client.tx import EFFECTIVE_IMMEDIATELY

logger = logging.getLogger(__name__)

EXPIRY_SECONDS = 300


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Update the micro-CCD per euro exchange rate")
    parser.add_argument(
        "--node",
        default=os.environ.get(ENDPOINT_ENV_VAR, DEFAULT_ENDPOINT),
        help=f"Node endpoint URL (default: ${ENDPOINT_ENV_VAR} or {DEFAULT_ENDPOINT})"
    )
    parser.add_argument(
        "--key",
        dest="keys",
        action="append",
        default=[],
        required=True,
        help="Update key file; repeat for each key"
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=1.0,
        help="Seconds between status queries"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )
    return parser.parse_args(argv)


def _blocks(blocks) -> List[str]:
    return [str(b) for b in sorted(blocks)]


async def run(args: argparse.Namespace) -> None:
    key_pairs = load_update_keys(args.keys)

    async with await Client.connect(ChannelConfig(endpoint=args.node)) as client:
        params = await client.get_block_chain_parameters(BlockIdentifier.last_final())
        authorizations = params.response.common_update_keys()
        signer = construct_update_signer(
            authorizations, authorizations.access_structure(UpdateType.MICRO_CCD_PER_EURO), key_pairs
        )

        numbers = await client.get_next_update_sequence_numbers(BlockIdentifier.last_final())
        sequence_number = numbers.response.micro_ccd_per_euro

        expiry = TransactionTime.expiry_in(EXPIRY_SECONDS)
        instruction = update(
            signer,
            sequence_number,
            EFFECTIVE_IMMEDIATELY,
            expiry,
            MicroCCDPerEuroUpdate(ExchangeRate(numerator=1, denominator=1)),
        )

        submission_id = await client.send_block_item(BlockItem(instruction))
        print(f"Submitted update with hash {submission_id}")

        tracker = SubmissionTracker(client, submission_id, expiry, TrackerConfig(poll_interval=args.poll_interval))
        async for status in tracker.statuses():
            if status.is_finalized:
                print(f"Submission is finalized in blocks {_blocks(status.blocks)}")
            elif isinstance(status, Committed):
                print(f"Submission is committed to blocks {_blocks(status.blocks)}")
            else:
                print("Submission is received.")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        asyncio.run(run(args))
    except LedgerClientError as e:
        logger.error(f"Update failed: {e}")
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())

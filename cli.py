#!/usr/bin/env python3
"""
TON Bridge - Command Line Interface

Manual commands for operators:
- Status: Redis health and queue depth
- Queue: List withdrawal requests
- Balance: Show a user's ledger record
- Payout: Advance a batch of queued withdrawals
- Scan: Show which recent transaction would match a claimed amount

Usage:
    python cli.py status                 # Service status
    python cli.py queue                  # Queued withdrawals
    python cli.py queue --status done    # Settled withdrawals
    python cli.py balance <uid>          # User balance
    python cli.py payout                 # Advance one batch (asks first)
    python cli.py scan 5                 # Dry-run deposit match for 5 TON
"""

import asyncio
import argparse
import sys
import time
from datetime import datetime

import redis.asyncio as redis

from api.config import ConfigError, ServiceConfig
from db import RedisLedger, RedisWithdrawalStore, DEFAULT_KEYS
from ingestion import TonApiClient
from logic.deposits import compute_credit, find_match
from logic.money import parse_amount, to_number
from logic.withdrawals import WithdrawalQueue, WithdrawalStatus, LoggingPayoutExecutor


class Colors:
    """ANSI color codes for terminal output."""
    HEADER = '\033[95m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'


def color(text: str, c: str) -> str:
    """Apply color to text."""
    return f"{c}{text}{Colors.ENDC}"


def fmt_ms(ms) -> str:
    if not ms:
        return "-"
    return datetime.fromtimestamp(int(ms) / 1000).strftime("%Y-%m-%d %H:%M:%S")


def get_redis(config: ServiceConfig):
    return redis.from_url(config.redis_url, decode_responses=True)


async def cmd_status(config: ServiceConfig, args):
    """Display service status."""
    print(color("\n===========================================", Colors.CYAN))
    print(color("  TON BRIDGE - STATUS", Colors.BOLD))
    print(color("===========================================\n", Colors.CYAN))

    r = get_redis(config)
    try:
        await r.ping()
        print(f"  Redis:           {color('[CONNECTED]', Colors.GREEN)} {config.masked_redis_url}")
        queued = await r.zcard(DEFAULT_KEYS.QUEUED_INDEX)
        total = await r.zcard(DEFAULT_KEYS.ALL_INDEX)
        print(f"  Queued:          {color(str(queued), Colors.YELLOW)}")
        print(f"  Total requests:  {total}")
    except Exception as e:
        print(f"  Redis:           {color('[ERROR]', Colors.RED)} {e}")
    finally:
        await r.aclose()

    print(f"  Wallet:          {config.owner_wallet}")
    print(f"  tonapi key:      {'set' if config.tonapi_key else 'not set (public endpoint)'}")
    print()


async def cmd_queue(config: ServiceConfig, args):
    """List withdrawal requests."""
    status = WithdrawalStatus(args.status) if args.status != "all" else None
    r = get_redis(config)
    try:
        queue = WithdrawalQueue(RedisWithdrawalStore(r), admin_secret=config.admin_secret)
        requests = await queue.list_requests(status=status, limit=args.limit)
    finally:
        await r.aclose()

    if not requests:
        print("\nNo withdrawal requests.")
        return

    print(f"\n  {'ID':<34} {'UID':<16} {'Amount':>12}  {'Status':<7} {'Created':<19}  Processed")
    for req in requests:
        status_color = Colors.YELLOW if req.is_queued else Colors.GREEN
        print(
            f"  {req.request_id:<34} {req.uid[:16]:<16} {to_number(req.amount):>12.6f}  "
            f"{color(f'{req.status.value:<7}', status_color)} {fmt_ms(req.created_at):<19}  "
            f"{fmt_ms(req.processed_at)}"
        )
    print()


async def cmd_balance(config: ServiceConfig, args):
    """Show a user's ledger record."""
    r = get_redis(config)
    try:
        ledger = RedisLedger(r)
        balance = await ledger.get_balance(args.uid)
        first = await ledger.get_first_deposit_at(args.uid)
    finally:
        await r.aclose()

    print(f"\n  User:            {args.uid}")
    print(f"  Balance:         {color(f'{balance} TON', Colors.GREEN)}")
    print(f"  First deposit:   {fmt_ms(first)}\n")


async def cmd_payout(config: ServiceConfig, args):
    """Advance one batch of queued withdrawals to done."""
    if not args.confirm:
        response = input("\nMark up to 10 queued withdrawals as done? Type 'CONFIRM' to proceed: ")
        if response != "CONFIRM":
            print("Aborted.")
            return

    r = get_redis(config)
    try:
        queue = WithdrawalQueue(
            RedisWithdrawalStore(r),
            admin_secret=config.admin_secret,
            payout_executor=LoggingPayoutExecutor(),
        )
        batch = await queue.advance_batch(config.admin_secret)
    finally:
        await r.aclose()

    print(color(f"\n[OK] {batch.processed} withdrawal(s) marked done", Colors.GREEN))
    for request_id in batch.request_ids:
        print(f"   {request_id}")


async def cmd_scan(config: ServiceConfig, args):
    """Dry-run the deposit matcher without crediting anyone."""
    amount = parse_amount(args.amount)
    if amount is None:
        print(color("Amount must be a positive number", Colors.RED))
        return

    async with TonApiClient(
        account=config.owner_wallet,
        api_key=config.tonapi_key,
        base_url=config.tonapi_base_url,
    ) as client:
        transactions = await client.get_transactions()

    if transactions is None:
        print(color("\ntonapi unavailable", Colors.RED))
        return

    now = int(time.time())
    match = find_match(transactions, amount, now)

    print(f"\n  Scanned {len(transactions)} transaction(s) for {amount} TON")
    for tx in transactions[:args.show]:
        marker = color("<- match", Colors.GREEN) if tx is match else ""
        age = now - tx.occurred_at(now)
        print(f"   {str(tx.value):>14} TON  age {age:>7}s  {(tx.tx_hash or '?')[:16]}  {marker}")

    if match is None:
        print(color("\n  No matching transaction", Colors.YELLOW))
    else:
        print(color(f"\n  Would credit {compute_credit(amount)} TON", Colors.GREEN))
    print()


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="TON Bridge CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Status command
    subparsers.add_parser("status", help="Display service status")

    # Queue command
    queue_parser = subparsers.add_parser("queue", help="List withdrawal requests")
    queue_parser.add_argument("--status", choices=["queued", "done", "all"], default="queued")
    queue_parser.add_argument("--limit", type=int, default=50)

    # Balance command
    balance_parser = subparsers.add_parser("balance", help="Show a user's balance")
    balance_parser.add_argument("uid", help="User id")

    # Payout command
    payout_parser = subparsers.add_parser("payout", help="Advance a batch of queued withdrawals")
    payout_parser.add_argument("--confirm", action="store_true", help="Skip confirmation")

    # Scan command
    scan_parser = subparsers.add_parser("scan", help="Dry-run deposit match for an amount")
    scan_parser.add_argument("amount", help="Claimed amount in TON")
    scan_parser.add_argument("--show", type=int, default=10, help="Transactions to print")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    try:
        config = ServiceConfig.from_env()
    except ConfigError as e:
        print(color(f"Configuration error: {e}", Colors.RED))
        sys.exit(1)

    # Route to command handler
    handlers = {
        "status": cmd_status,
        "queue": cmd_queue,
        "balance": cmd_balance,
        "payout": cmd_payout,
        "scan": cmd_scan,
    }

    handler = handlers.get(args.command)
    if handler:
        asyncio.run(handler(config, args))


if __name__ == "__main__":
    main()

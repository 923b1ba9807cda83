"""Command line entry point: ``tbachat run|keys|networks``."""

import argparse
import asyncio
import logging
import signal
import sys

from .agent import run_agent
from .config import XMTP_ENVS, load_settings
from .errors import AgentError
from .keys import env_block, generate_keys, write_env_file
from .logging_config import setup_logging
from .tokens import Registry

log = logging.getLogger("tbachat.cli")


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="tbachat", description="Chat agent that builds token transfer requests")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Connect to the messaging bridge and answer commands")
    run.add_argument("--env-file", help="Path to a .env file (default: ./.env)")
    run.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    keys = sub.add_parser("keys", help="Generate a wallet key and an encryption key")
    keys.add_argument("--env-file", default=".env", help="File to append the keys to (default: .env)")
    keys.add_argument("--xmtp-env", default="dev", choices=XMTP_ENVS)
    keys.add_argument("--network", default="base-sepolia", choices=Registry().list_networks())

    sub.add_parser("networks", help="List supported networks and tokens")
    return parser.parse_args(argv)


def _shutdown(signum, frame):
    log.info("Shutting down TBA Chat Example Bot...")
    sys.exit(0)


def cmd_run(args) -> int:
    try:
        settings = load_settings(env_file=args.env_file)
    except AgentError as e:
        setup_logging("INFO")
        log.error("Invalid configuration: %s", e)
        return 1

    setup_logging("DEBUG" if args.verbose else settings.log_level,
                  secrets=(settings.wallet_key, settings.encryption_key))
    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    log.info("Starting TBA Chat Example Bot...")
    try:
        asyncio.run(run_agent(settings))
    except AgentError as e:
        log.error("Initialization error: %s", e)
        log.error("Bot failed to initialize. Please check your configuration and try again.")
        return 1
    return 0


def cmd_keys(args) -> int:
    keys = generate_keys()
    block = env_block(keys, xmtp_env=args.xmtp_env, network_id=args.network)
    print("Generating XMTP keys...")
    try:
        existed = write_env_file(args.env_file, block)
    except OSError as e:
        print(f"Error writing to {args.env_file}: {e}")
        print("\nGenerated keys (add these to your .env file manually):")
        print(block)
        return 1

    print(f"Keys appended to existing {args.env_file}" if existed else f"Created {args.env_file} with new keys")
    print(f"\nAgent address: {keys['ADDRESS']}")
    print("WALLET_KEY:", keys["WALLET_KEY"])
    print("ENCRYPTION_KEY:", keys["ENCRYPTION_KEY"])
    print("\nKeep these keys secure and never share them publicly!")
    print("You can now run the bot with: tbachat run")
    return 0


def cmd_networks(args) -> int:
    registry = Registry()
    for network_id in registry.list_networks():
        network = registry.resolve_network(network_id)
        print(f"{network.id:<18} {network.name:<18} chain {network.chain_id:<10} {', '.join(network.tokens)}")
    return 0


COMMANDS = {"run": cmd_run, "keys": cmd_keys, "networks": cmd_networks}


def main(argv=None) -> int:
    args = _parse_args(argv)
    return COMMANDS[args.command](args)


if __name__ == "__main__":
    sys.exit(main())

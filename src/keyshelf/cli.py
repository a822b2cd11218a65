#!/usr/bin/env python3
"""
Command-line interface for keyshelf.

This module provides the main entry point for managing Autocrypt secret
keys when installed as a package (via `pip install keyshelf`).

Usage:
    keyshelf [OPTIONS] COMMAND [ARGS]

Commands:
    list                    List secret keys, keys in use first
    show FPR                Show details of a key
    backup FPR [-o FILE]    Write an Autocrypt setup message backup
    import FILE             Import a setup message or secret key
    forget FPR [--yes]      Delete an archived secret key
    use EMAIL FPR           Use a key for an address
    unuse EMAIL             Stop using a key for an address

Exit Codes:
    0 - Success
    1 - General error
    2 - Configuration error
    3 - Key not found
    4 - Backup creation error
    5 - File system error
    6 - Action refused or content rejected
"""

import argparse
import asyncio
import getpass
import logging
import sys
from typing import Optional

from pydantic import ValidationError

from keyshelf import __version__

from client.crypto.keyring import create_keyring
from client.services.date_format_service import DateFormatService
from client.services.key_workflow import KeyWorkflow
from client.services.setup_message import (
    DEFAULT_BACKUP_FILENAME,
    SetupMessageCodec,
    SetupMessageImporter,
    read_import_file,
    write_backup_file,
)
from common.autocrypt_store import AutocryptSettingsStore, create_autocrypt_store
from common.config import LoggingSettings, Settings, get_settings
from common.exceptions import (
    BackupFailedError,
    ConfigurationError,
    ForgetNotAllowedError,
    KeyBusyError,
    KeyNotFoundError,
    KeyshelfError,
)
from common.interfaces import ConfirmationPrompt
from common.models import KeyDetail, KeySummary, format_fingerprint

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_NOT_FOUND = 3
EXIT_BACKUP_ERROR = 4
EXIT_FS_ERROR = 5
EXIT_REFUSED = 6


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    @classmethod
    def disable(cls) -> None:
        """Disable colors (for non-TTY output)."""
        cls.RESET = ""
        cls.RED = ""
        cls.GREEN = ""
        cls.YELLOW = ""
        cls.BLUE = ""
        cls.BOLD = ""
        cls.DIM = ""


def print_success(text: str) -> None:
    """Print a success message."""
    print(f"{Colors.GREEN}[OK]{Colors.RESET} {text}")


def print_warning(text: str) -> None:
    """Print a warning message."""
    print(f"{Colors.YELLOW}[WARN]{Colors.RESET} {text}")


def print_error(text: str) -> None:
    """Print an error message."""
    print(f"{Colors.RED}[ERROR]{Colors.RESET} {text}", file=sys.stderr)


def print_info(text: str) -> None:
    """Print an info message."""
    print(f"{Colors.BLUE}[INFO]{Colors.RESET} {text}")


class TerminalConfirmationPrompt(ConfirmationPrompt):
    """Asks for the confirmation token on the terminal."""

    def ask(self, expected_token: str) -> bool:
        print_warning("This permanently deletes the secret key.")
        try:
            entered = input(f"Type '{expected_token}' to confirm: ")
        except EOFError:
            return False
        return entered.strip().lower() == expected_token


class AssumeYesPrompt(ConfirmationPrompt):
    """Confirms without asking (--yes)."""

    def ask(self, expected_token: str) -> bool:
        return True


def prompt_setup_code(passphrase_begin: Optional[str]) -> Optional[str]:
    """Ask for the setup code of a setup message."""
    hint = f" (starts with {passphrase_begin})" if passphrase_begin else ""
    try:
        return getpass.getpass(f"Setup code{hint}: ")
    except (EOFError, KeyboardInterrupt):
        return None


def setup_logging(settings: LoggingSettings, debug: bool = False) -> None:
    """
    Configure logging for the command-line tool.

    Args:
        settings: Logging settings.
        debug: Enable debug logging regardless of the configured level.
    """
    log_level = logging.DEBUG if debug else getattr(logging, settings.level)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.file:
        handlers.append(logging.FileHandler(settings.file))

    logging.basicConfig(
        level=log_level,
        format=settings.format,
        handlers=handlers,
        force=True,
    )

    if not debug:
        logging.getLogger("gnupg").setLevel(logging.WARNING)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="keyshelf",
        description="keyshelf - Autocrypt secret key manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    List keys:
        keyshelf list

    Back up a key to a setup message:
        keyshelf backup 1A2B3C4D... -o AutocryptKeyBackup.htm

Environment Variables:
    KEYSHELF_CONFIG_FILE    TOML configuration file
    KEYSHELF_DEBUG          Enable debug mode (true/false)
    GNUPG_HOME              GnuPG home directory
        """,
    )

    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--config", metavar="FILE", help="TOML configuration file")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument(
        "--version",
        action="version",
        version=f"keyshelf {__version__}",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="List secret keys")

    show = commands.add_parser("show", help="Show details of a key")
    show.add_argument("fingerprint")

    backup = commands.add_parser("backup", help="Write a setup message backup")
    backup.add_argument("fingerprint")
    backup.add_argument(
        "-o", "--output", default=DEFAULT_BACKUP_FILENAME, help="Output file"
    )

    import_ = commands.add_parser("import", help="Import a backup or secret key")
    import_.add_argument("file")

    forget = commands.add_parser("forget", help="Delete an archived secret key")
    forget.add_argument("fingerprint")
    forget.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    use = commands.add_parser("use", help="Use a key for an address")
    use.add_argument("email")
    use.add_argument("fingerprint")
    use.add_argument(
        "--prefer-encrypt",
        choices=["mutual", "nopreference"],
        default="nopreference",
    )

    unuse = commands.add_parser("unuse", help="Stop using a key for an address")
    unuse.add_argument("email")

    return parser.parse_args(argv)


def load_settings(config_file: Optional[str]) -> Settings:
    """Load settings from an explicit file or the environment."""
    if config_file:
        return Settings.from_toml(config_file)
    return get_settings()


def build_workflow(settings: Settings, store: AutocryptSettingsStore) -> KeyWorkflow:
    """Wire the key workflow to GnuPG and the Autocrypt store."""
    keyring = create_keyring(settings.gnupg)
    return KeyWorkflow(
        key_store=keyring,
        autocrypt_store=store,
        backup_codec=SetupMessageCodec(keyring),
        import_codec=SetupMessageImporter(keyring, prompt_setup_code),
        date_format=DateFormatService(settings.display.date_format),
    )


def print_key_list(summaries: list[KeySummary]) -> None:
    if not summaries:
        print_info("No secret keys found")
        return

    print(f"{Colors.BOLD}{'In use':<8}{'Fingerprint':<52}{'Created'}{Colors.RESET}")
    for summary in summaries:
        in_use = "Yes" if summary.is_active else ""
        print(f"{in_use:<8}{summary.formatted_fingerprint:<52}{summary.created_date}")


def print_key_detail(detail: KeyDetail) -> None:
    summary = detail.summary
    print(f"Status:       {summary.status}")
    print(f"Fingerprint:  {summary.formatted_fingerprint}")
    print(f"Created:      {summary.created_full}")

    used_for = summary.used_for
    if detail.used_for_more:
        used_for += f" {Colors.DIM}{detail.used_for_more.label}{Colors.RESET}"
    print(f"Used for:     {used_for}")

    created_for = summary.created_for
    if detail.created_for_more:
        created_for += f" {Colors.DIM}{detail.created_for_more.label}{Colors.RESET}"
    print(f"Created for:  {created_for}")

    if summary.error:
        print(f"Error:        {summary.error}")


async def run_command(
    args: argparse.Namespace,
    workflow: KeyWorkflow,
    store: AutocryptSettingsStore,
) -> int:
    """
    Execute a command against the key workflow.

    Returns:
        Exit code.
    """
    summaries = await workflow.refresh()

    if args.command == "list":
        print_key_list(summaries)
        return EXIT_SUCCESS

    if args.command == "show":
        print_key_detail(workflow.describe(args.fingerprint))
        return EXIT_SUCCESS

    if args.command == "backup":
        workflow.describe(args.fingerprint)
        setup_message = await workflow.backup()
        try:
            path = write_backup_file(args.output, setup_message.message)
        except OSError as e:
            print_error(f"Failed to write backup file: {e}")
            return EXIT_FS_ERROR

        print_success(f"Backup written to {path}")
        print_info(f"Setup code: {setup_message.passphrase}")
        return EXIT_SUCCESS

    if args.command == "import":
        try:
            content = read_import_file(args.file)
        except OSError as e:
            print_error(f"Failed to read {args.file}: {e}")
            return EXIT_FS_ERROR

        if not await workflow.import_backup(content):
            print_error("File format could not be recognized!")
            return EXIT_REFUSED

        print_success("Key imported")
        print_key_list(await workflow.refresh())
        return EXIT_SUCCESS

    if args.command == "forget":
        workflow.describe(args.fingerprint)
        prompt = AssumeYesPrompt() if args.yes else TerminalConfirmationPrompt()
        task = workflow.confirm_and_forget(prompt)
        if task is None:
            print_info("Cancelled")
            return EXIT_REFUSED

        print_info(f"{args.fingerprint}: Removing…")
        if not await task:
            failed = workflow.selected_summary
            print_error(failed.error if failed and failed.error else "Failed to remove key")
            return EXIT_ERROR

        print_success("Key removed!")
        return EXIT_SUCCESS

    if args.command == "use":
        detail = workflow.describe(args.fingerprint)
        previous = store.get(args.email)
        if previous is not None and previous.fingerprint != detail.fingerprint:
            print_info(f"{args.email} was using {format_fingerprint(previous.fingerprint)}")
        store.set_key(args.email, detail.fingerprint, args.prefer_encrypt)
        print_success(f"{args.email} now uses {detail.summary.formatted_fingerprint}")
        return EXIT_SUCCESS

    if args.command == "unuse":
        if not store.remove(args.email):
            print_warning(f"No key configured for {args.email}")
            return EXIT_REFUSED
        print_success(f"{args.email} no longer uses a key")
        return EXIT_SUCCESS

    print_error(f"Unknown command: {args.command}")
    return EXIT_ERROR


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the keyshelf CLI.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    args = parse_args(argv)

    if args.no_color or not sys.stdout.isatty():
        Colors.disable()

    try:
        settings = load_settings(args.config)
    except (ConfigurationError, ValidationError) as e:
        print_error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    debug = args.debug or settings.debug
    setup_logging(settings.logging, debug)
    logger.debug("Starting keyshelf v%s", __version__)

    try:
        store = create_autocrypt_store(settings.store.autocrypt_path)
        logger.debug("Using Autocrypt settings from %s", store.path)
        workflow = build_workflow(settings, store)
        return asyncio.run(run_command(args, workflow, store))

    except KeyboardInterrupt:
        print("\nCancelled")
        return EXIT_REFUSED

    except KeyNotFoundError as e:
        print_error(str(e))
        return EXIT_NOT_FOUND

    except BackupFailedError as e:
        print_error(str(e))
        return EXIT_BACKUP_ERROR

    except (ForgetNotAllowedError, KeyBusyError) as e:
        print_error(str(e))
        return EXIT_REFUSED

    except OSError as e:
        print_error(f"File system error: {e}")
        return EXIT_FS_ERROR

    except (KeyshelfError, ValidationError) as e:
        print_error(str(e))
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())

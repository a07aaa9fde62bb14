#!/usr/bin/env python3

import sys
import os
import argparse
import logging

from rich.console import Console
from rich.logging import RichHandler

from .config.manager import ConfigManager
from .exceptions import InstallError
from .storage.manager import StorageManager
from .systemd.service_generator import SystemdServiceGenerator
from .updater import MirrorlistUpdater, UP_TO_DATE

def setup_logging(level: str = "INFO"):
    """Configure logging for the application"""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Determine log file path
    if os.geteuid() == 0:
        log_file = "/var/log/pacman-mirrorlist.log"
    else:
        log_file = os.path.expanduser("~/.local/log/pacman-mirrorlist.log")
        # Ensure the log directory exists
        os.makedirs(os.path.dirname(log_file), exist_ok=True)

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(logging.Formatter(log_format))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(message)s",
        handlers=[
            RichHandler(console=Console(file=sys.stdout), show_path=False),
            file_handler
        ]
    )

def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser"""
    parser = argparse.ArgumentParser(
        prog="pacman-mirrorlist",
        description="Pacman Mirror List Updater",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                    # Update the mirrorlist if a newer one exists
  %(prog)s --backup                           # Same, keeping /etc/pacman.d/mirrorlist.bak
  %(prog)s check                              # Only report whether a newer list exists
  %(prog)s status                             # Show the installed mirrorlist and backup
  %(prog)s restore                            # Put the backup back in place
  %(prog)s setup-systemd --enable             # Install and start a systemd timer
        """
    )

    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
        default=None
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set logging level (default: from config, INFO)"
    )

    parser.add_argument(
        "--backup", "-b",
        action="store_true",
        help="Backup existing mirrorlist"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("update", help="Replace the mirrorlist if a newer one is available")
    subparsers.add_parser("check", help="Check for a newer mirrorlist without installing it")
    subparsers.add_parser("status", help="Show the installed mirrorlist and backup")
    subparsers.add_parser("restore", help="Restore the mirrorlist from its backup")

    systemd_parser = subparsers.add_parser("setup-systemd", help="Setup systemd service and timer")
    systemd_parser.add_argument(
        "--user", "-u",
        action="store_true",
        help="Create user-level systemd units"
    )
    systemd_parser.add_argument(
        "--no-timer",
        action="store_true",
        help="Don't create the timer unit"
    )
    systemd_parser.add_argument(
        "--enable",
        action="store_true",
        help="Reload systemd and enable the timer after writing the units"
    )

    return parser

def cmd_update(args, config_manager: ConfigManager, updater: MirrorlistUpdater):
    """Handle update command"""
    make_backup = args.backup or config_manager.get_config().make_backup
    result = updater.update(make_backup=make_backup)

    if result.succeeded:
        print(f"✓ Mirrorlist updated to {result.new_date} ({result.server_count} servers)")
        if result.backup_path:
            print(f"  Previous mirrorlist saved to {result.backup_path}")
        return 0
    elif result.status == UP_TO_DATE:
        print(f"= Mirrorlist already current ({result.new_date})")
        return 1
    else:
        print(f"✗ Update failed: {result.error}")
        return 1

def cmd_check(args, updater: MirrorlistUpdater):
    """Handle check command"""
    result = updater.check()

    if result.succeeded:
        print(f"Newer mirrorlist available: {result.new_date} ({result.server_count} servers)")
        return 0
    elif result.status == UP_TO_DATE:
        print(f"Mirrorlist is current ({result.new_date})")
        return 1
    else:
        print(f"Check failed: {result.error}")
        return 1

def cmd_status(args, storage_manager: StorageManager):
    """Handle status command"""
    info = storage_manager.get_mirrorlist_info()

    print("=== Pacman Mirrorlist Status ===\n")
    print(f"Mirrorlist: {info['path']}")
    if info['exists']:
        print(f"  Generated on: {info['generated_on'] or 'unknown'}")
        print(f"  Active servers: {info['server_count']}")
        print(f"  Last modified: {info['last_modified']}")
    else:
        print("  Not found")

    print(f"\nBackup: {info['backup_path']}")
    if info['backup_exists']:
        print(f"  Generated on: {info['backup_generated_on'] or 'unknown'}")
        print(f"  Last modified: {info['backup_last_modified']}")
    else:
        print("  Not found")

    return 0

def cmd_restore(args, storage_manager: StorageManager):
    """Handle restore command"""
    try:
        restored = storage_manager.restore_backup()
    except InstallError as e:
        print(f"Error: {e}")
        return 1

    print(f"Restored {restored} from {storage_manager.backup_path}")
    return 0

def cmd_setup_systemd(args, config_manager: ConfigManager):
    """Handle setup-systemd command"""
    service_gen = SystemdServiceGenerator(config_manager)

    try:
        created = service_gen.create_service_files(
            user_mode=args.user,
            enable_timer=not args.no_timer
        )
    except PermissionError as e:
        print(f"Error creating systemd units: {e}")
        return 1

    print(f"Created {created['service_file']}")
    if created['timer_file']:
        print(f"Created {created['timer_file']}")

    systemctl = "systemctl --user" if args.user else "sudo systemctl"
    if args.enable and created['timer_file']:
        if not service_gen.start_timer(user_mode=args.user):
            print("Failed to enable the timer, see the log for details")
            return 1
        print(f"Enabled {created['service_name']}.timer")
    elif created['timer_file']:
        print("\nTo enable and start the timer, run:")
        print(f"  {systemctl} daemon-reload")
        print(f"  {systemctl} enable --now {created['service_name']}.timer")

    return 0

def main(argv=None):
    """Main entry point"""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        config_manager = ConfigManager(args.config)
        config = config_manager.get_config()
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    log_level = args.log_level or config.log_level
    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    try:
        command = args.command or "update"

        if command == "update":
            return cmd_update(args, config_manager, MirrorlistUpdater(config_manager))

        elif command == "check":
            return cmd_check(args, MirrorlistUpdater(config_manager))

        elif command == "status":
            return cmd_status(args, StorageManager(config_manager))

        elif command == "restore":
            return cmd_restore(args, StorageManager(config_manager))

        elif command == "setup-systemd":
            return cmd_setup_systemd(args, config_manager)

        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if log_level.upper() == "DEBUG":
            import traceback
            traceback.print_exc()
        return 1

if __name__ == "__main__":
    sys.exit(main())

"""Signal MCP setup and health check.

Validates that Signal Desktop's data directory, database and key material are
reachable from this environment and prints a health report.

Usage:
    signal-mcp-setup                          # Check and write config
    signal-mcp-setup --check                  # Just check, don't modify
    signal-mcp-setup --source-dir ~/Signal    # Use and remember a data directory
"""

from __future__ import annotations

import argparse
import logging
import os
import platform
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from integrations.signal.keys import KEY_ENV, read_key_material
from integrations.signal.paths import database_path, resolve_source_dir
from integrations.signal.reader import SignalDBReader
from signal_mcp.config import SignalMCPConfig, default_config_path, load_config, save_config
from signal_mcp.errors import (
    DatabaseLockedError,
    DatabaseOpenError,
    ErrorCode,
    KeyResolutionError,
    SecretStoreAccessError,
    SignalMCPError,
)
from signal_mcp.utils.logging import setup_logging

logger = logging.getLogger(__name__)

SUPPORTED_PLATFORMS = ("Darwin", "Linux", "Windows")


class CheckStatus(Enum):
    """Status of a setup check."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


@dataclass
class CheckResult:
    """Result of a single setup check."""

    name: str
    status: CheckStatus
    message: str
    details: str | None = None
    fix_instructions: str | None = None


@dataclass
class SetupResult:
    """Result of the full setup process."""

    success: bool
    checks: list[CheckResult] = field(default_factory=list)
    config_saved: bool = False
    config_path: Path | None = None


class SetupWizard:
    """Signal MCP environment check.

    Each check appends one CheckResult; later checks are skipped when an
    earlier prerequisite failed.
    """

    def __init__(
        self,
        console: Console | None = None,
        source_dir: str | Path | None = None,
        config: SignalMCPConfig | None = None,
        config_path: Path | None = None,
    ) -> None:
        """Initialize the setup wizard.

        Args:
            console: Rich console for output. Creates default if not provided.
            source_dir: Signal data directory override.
            config: Configuration. Loaded from disk if not provided.
            config_path: Where to save configuration.
        """
        self.console = console or Console()
        self.source_dir_override = source_dir
        self.config_path = config_path or default_config_path()
        self.config = config or load_config(self.config_path)
        self._checks: list[CheckResult] = []

    @property
    def checks(self) -> list[CheckResult]:
        return list(self._checks)

    def run(self, check_only: bool = False) -> SetupResult:
        """Run all checks and print the report.

        Args:
            check_only: If True, only check status without saving configuration.
        """
        self._checks = []

        self.console.print()
        self.console.print(
            Panel.fit(
                "[bold blue]Signal MCP Setup[/bold blue]\n"
                "Read-only access to Signal Desktop chats",
                border_style="blue",
            )
        )
        self.console.print()

        self._check_platform()
        source_dir = self._check_source_dir()
        if source_dir is not None and self._check_database_file(source_dir):
            if self._check_key_material(source_dir):
                self._check_decryption(source_dir)

        config_saved = False
        if not check_only and source_dir is not None:
            config_saved = self._save_config(source_dir)

        self._print_health_report()

        failures = [c for c in self._checks if c.status == CheckStatus.FAIL]
        return SetupResult(
            success=not failures,
            checks=self._checks,
            config_saved=config_saved,
            config_path=self.config_path if config_saved else None,
        )

    def _check_platform(self) -> None:
        system = platform.system()
        if system in SUPPORTED_PLATFORMS:
            details = None
            if system == "Darwin":
                details = "encryptedKey is unwrapped with the login Keychain"
            self._checks.append(
                CheckResult(name="Platform", status=CheckStatus.PASS, message=system, details=details)
            )
        else:
            self._checks.append(
                CheckResult(
                    name="Platform",
                    status=CheckStatus.FAIL,
                    message=f"Unsupported OS: {system}",
                    fix_instructions="Set SIGNAL_SOURCE_DIR or pass --source-dir",
                )
            )

    def _check_source_dir(self) -> Path | None:
        try:
            source_dir = resolve_source_dir(self.source_dir_override, self.config.source_dir)
        except SignalMCPError as e:
            self._checks.append(
                CheckResult(
                    name="Data Directory",
                    status=CheckStatus.FAIL,
                    message=e.message,
                    fix_instructions="Pass --source-dir with the Signal Desktop data directory",
                )
            )
            return None

        if source_dir.is_dir():
            self._checks.append(
                CheckResult(
                    name="Data Directory",
                    status=CheckStatus.PASS,
                    message="Found",
                    details=str(source_dir),
                )
            )
        else:
            self._checks.append(
                CheckResult(
                    name="Data Directory",
                    status=CheckStatus.FAIL,
                    message="Not found",
                    details=str(source_dir),
                    fix_instructions=(
                        "Install Signal Desktop and run it at least once, "
                        "or pass --source-dir"
                    ),
                )
            )
        return source_dir

    def _check_database_file(self, source_dir: Path) -> bool:
        db_path = database_path(source_dir)
        if db_path.is_file():
            size_mb = db_path.stat().st_size / (1024 * 1024)
            self._checks.append(
                CheckResult(
                    name="Database File",
                    status=CheckStatus.PASS,
                    message=f"{size_mb:.1f} MB",
                    details=str(db_path),
                )
            )
            return True

        self._checks.append(
            CheckResult(
                name="Database File",
                status=CheckStatus.FAIL,
                message="Database not found",
                details=f"Expected at {db_path}",
                fix_instructions="Make sure Signal Desktop has been run at least once",
            )
        )
        return False

    def _check_key_material(self, source_dir: Path) -> bool:
        material = read_key_material(source_dir)
        if os.environ.get(KEY_ENV):
            message = f"{KEY_ENV} set in environment"
        elif material.key:
            message = "Plaintext key in config.json"
        elif material.encrypted_key:
            message = "encryptedKey in config.json"
        else:
            self._checks.append(
                CheckResult(
                    name="Key Material",
                    status=CheckStatus.FAIL,
                    message="No key in config.json",
                    details=str(source_dir / "config.json"),
                    fix_instructions="Provide the database key with SIGNAL_KEY",
                )
            )
            return False

        self._checks.append(CheckResult(name="Key Material", status=CheckStatus.PASS, message=message))
        return True

    def _check_decryption(self, source_dir: Path) -> None:
        reader = SignalDBReader(source_dir=source_dir, config=self.config)
        try:
            chats = reader.list_conversations(include_empty=True)
        except SecretStoreAccessError as e:
            self._checks.append(
                CheckResult(
                    name="Decryption",
                    status=CheckStatus.FAIL,
                    message="Secret store denied access",
                    fix_instructions=(
                        f"Run: {e.manual_command}\n  and set SIGNAL_PASSWORD to its output"
                        if e.manual_command
                        else "Set SIGNAL_KEY or SIGNAL_PASSWORD"
                    ),
                )
            )
            return
        except DatabaseLockedError:
            self._checks.append(
                CheckResult(
                    name="Decryption",
                    status=CheckStatus.WARN,
                    message="Database is locked",
                    fix_instructions="Close Signal Desktop and run the check again",
                )
            )
            return
        except (KeyResolutionError, DatabaseOpenError) as e:
            key_rejected = getattr(e, "code", None) == ErrorCode.DB_KEY_REJECTED
            self._checks.append(
                CheckResult(
                    name="Decryption",
                    status=CheckStatus.FAIL,
                    message="Key rejected" if key_rejected else "Cannot open database",
                    details=e.message,
                    fix_instructions="Check SIGNAL_KEY / SIGNAL_PASSWORD or close Signal Desktop",
                )
            )
            return
        except SignalMCPError as e:
            self._checks.append(
                CheckResult(
                    name="Decryption", status=CheckStatus.FAIL, message=e.message
                )
            )
            return
        finally:
            reader.close()

        self._checks.append(
            CheckResult(
                name="Decryption",
                status=CheckStatus.PASS,
                message=f"{len(chats)} chats readable",
            )
        )

    def _save_config(self, source_dir: Path) -> bool:
        """Remember an explicitly chosen data directory."""
        if self.source_dir_override is None and self.config_path.exists():
            return False

        if self.source_dir_override is not None:
            self.config.source_dir = str(source_dir)

        if save_config(self.config, self.config_path):
            self._checks.append(
                CheckResult(
                    name="Configuration",
                    status=CheckStatus.PASS,
                    message="Config saved",
                    details=str(self.config_path),
                )
            )
            return True

        self._checks.append(
            CheckResult(
                name="Configuration",
                status=CheckStatus.WARN,
                message="Failed to save config",
                details=str(self.config_path),
                fix_instructions=f"Ensure write permission for {self.config_path.parent}",
            )
        )
        return False

    def _print_health_report(self) -> None:
        """Print the health report summary."""
        table = Table(title="Signal MCP Health Check", show_header=True, header_style="bold")
        table.add_column("Check", style="cyan")
        table.add_column("Status", justify="center")
        table.add_column("Details")

        status_icons = {
            CheckStatus.PASS: "[green]PASS[/green]",
            CheckStatus.WARN: "[yellow]WARN[/yellow]",
            CheckStatus.FAIL: "[red]FAIL[/red]",
        }

        for check in self._checks:
            details = check.message
            if check.details:
                details += f"\n[dim]{check.details}[/dim]"
            table.add_row(check.name, status_icons[check.status], details)

        self.console.print(table)
        self.console.print()

        needs_attention = [
            c
            for c in self._checks
            if c.status in (CheckStatus.FAIL, CheckStatus.WARN) and c.fix_instructions
        ]
        for check in needs_attention:
            colour = "red" if check.status == CheckStatus.FAIL else "yellow"
            self.console.print(f"[{colour}]{check.name}:[/{colour}] {check.fix_instructions}")
        if needs_attention:
            self.console.print()

        if any(c.status == CheckStatus.FAIL for c in self._checks):
            self.console.print(
                Panel.fit(
                    "[red]Setup incomplete[/red]\nResolve the issues above before using the server.",
                    border_style="red",
                )
            )
        else:
            self.console.print(
                Panel.fit("[green]Ready[/green]\nRun `signal-mcp` to start the server.", border_style="green")
            )


def run_setup(check_only: bool = False, source_dir: str | None = None) -> SetupResult:
    """Run the setup checks with a default console."""
    return SetupWizard(source_dir=source_dir).run(check_only=check_only)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the setup command.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    parser = argparse.ArgumentParser(
        prog="signal-mcp-setup",
        description="Signal MCP Setup - validate access to the Signal Desktop database",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only check status without saving configuration",
    )
    parser.add_argument(
        "--source-dir",
        help="Signal Desktop data directory (saved to config unless --check)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)
    setup_logging(logging.WARNING, verbose=args.verbose)

    result = run_setup(check_only=args.check, source_dir=args.source_dir)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())

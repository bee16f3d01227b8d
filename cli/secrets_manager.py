#!/usr/bin/env python3

VERSION = "v0.1.0/2026-10-19"

# Usage Information:
# secrets_manager.py -h

"""
Create, update, delete and list AWS Secrets Manager secrets and SSM
parameters, tagged with who created them and when.

Exit codes:
    0  success (including "nothing to delete")
    1  validation, authorization, provider or unexpected error
    2  value updated but tags could not be updated
    3  cancelled by the user
"""

import argparse
import getpass
import json
import sys
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

import click
from botocore.exceptions import BotoCoreError, ClientError

from secretops.aws_session import AWSSessionManager, TokenRetrievalError
from secretops.coordinator import UpsertCoordinator
from secretops.logger import Log, ScriptLogger, log_for_severity
from secretops.records import (
    PartialTagUpdate,
    RecordKind,
    RecordValue,
    Severity,
    StoreError,
)
from secretops.settings import SettingsLoader
from secretops.stores import ParameterStore, SecretsManagerStore
from secretops.tags import PROVENANCE_KEYS, Clock, TagUtils, utc_now
from secretops.tools import Colorize, Strings

if sys.version_info[0] < 3:
    sys.stderr.write("Error: Python 3 is required\n")
    sys.exit(1)

SCRIPT_NAME = "secrets-manager"

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_PARTIAL = 2
EXIT_CANCELLED = 3

KIND_CHOICES = [kind.value for kind in RecordKind]


def build_coordinator(session_manager: AWSSessionManager, settings: dict, actor: str,
                      clock: Clock = utc_now, parameter_type: Optional[str] = None) -> UpsertCoordinator:
    """Wire the store gateways to boto3 clients from the session"""
    secret_settings = settings["secrets"]
    parameter_settings = settings["parameters"]

    secrets = SecretsManagerStore(
        session_manager.get_client('secretsmanager'),
        kms_key_id=secret_settings.get("kms_key_id") or None,
        recovery_window_days=int(secret_settings.get("recovery_window_days", 30)),
    )
    parameters = ParameterStore(
        session_manager.get_client('ssm'),
        parameter_type=parameter_type or parameter_settings.get("type", "String"),
        tier=parameter_settings.get("tier", "Standard"),
        kms_key_id=parameter_settings.get("kms_key_id") or None,
    )
    return UpsertCoordinator(
        {RecordKind.SECRET: secrets, RecordKind.PARAMETER: parameters},
        actor=actor,
        clock=clock,
        force_delete=bool(secret_settings.get("force_delete", True)),
    )


def read_value_file(path: str) -> RecordValue:
    """Read a value from disk. Text when it decodes as UTF-8, bytes otherwise."""
    data = Path(path).read_bytes()
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data


class SecretsManagerCli:
    """
    Runs the create, delete, list, menu and setup commands against a coordinator.
    """

    def __init__(self, coordinator: UpsertCoordinator, settings: dict, actor: str,
                 clock: Clock = utc_now, secure_coordinator: Optional[UpsertCoordinator] = None):
        self.coordinator = coordinator
        self.secure_coordinator = secure_coordinator or coordinator
        self.settings = settings
        self.actor = actor
        self.clock = clock

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    def report(self, outcome) -> int:
        """Print and log an outcome, returning the exit code it maps to"""
        summary = outcome.summary()
        click.echo(Colorize.severity(outcome.severity, summary))
        log_for_severity(outcome.severity)(summary)
        if isinstance(outcome, PartialTagUpdate):
            click.echo(Colorize.info("Run the same command again to retry updating the tags."))
            return EXIT_PARTIAL
        return EXIT_SUCCESS

    def report_error(self, e: StoreError) -> int:
        summary = e.summary()
        click.echo(Colorize.severity(Severity.ERROR, summary))
        Log.error(summary)
        if e.retryable:
            click.echo(Colorize.info("This may be temporary. It is safe to run the same command again."))
        return EXIT_ERROR

    @staticmethod
    def combine(exit_codes: Iterable[int]) -> int:
        """Overall exit code for several operations: any error wins over a partial update"""
        exit_codes = list(exit_codes)
        if EXIT_ERROR in exit_codes:
            return EXIT_ERROR
        if EXIT_PARTIAL in exit_codes:
            return EXIT_PARTIAL
        return EXIT_SUCCESS

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def create(self, name: str, value: RecordValue, kind: RecordKind, description: Optional[str] = None,
               retag: bool = False, coordinator: Optional[UpsertCoordinator] = None) -> int:
        """Create or update one record, tagged with CreatedBy/CreatedAt

        Existing CreatedBy/CreatedAt tags are kept on update unless retag is set.
        """
        coordinator = coordinator or self.coordinator
        tags = TagUtils.created_tags(self.actor, self.clock)
        preserve_keys = () if retag else PROVENANCE_KEYS

        click.echo(Colorize.output(f"Creating or updating {kind.label.lower()} {name}..."))
        Log.info(f"Upsert {kind.label} {name} tags={tags} preserve={preserve_keys}")
        try:
            outcome = coordinator.upsert(name, value, kind, tags,
                                         description=description, preserve_keys=preserve_keys)
        except StoreError as e:
            return self.report_error(e)
        return self.report(outcome)

    def delete(self, targets: List[Tuple[str, RecordKind]], assume_yes: bool = False) -> int:
        """Delete records after confirmation"""
        click.echo(Colorize.warning("You are about to delete:"))
        for name, kind in targets:
            click.echo(Colorize.output_with_value(f"  - {kind.label}:", name))

        if not assume_yes:
            if not click.confirm(Colorize.question("Are you sure you want to delete these?"), default=False):
                click.echo(Colorize.info("Deletion canceled."))
                Log.info(f"Deletion canceled by user: {targets}")
                return EXIT_CANCELLED

        exit_codes = []
        for name, kind in targets:
            try:
                exit_codes.append(self.report(self.coordinator.delete(name, kind)))
            except StoreError as e:
                exit_codes.append(self.report_error(e))

        exit_code = self.combine(exit_codes)
        if exit_code == EXIT_SUCCESS:
            click.echo(Colorize.success("Deletion complete."))
        return exit_code

    def list(self, actor: str, kinds: Optional[List[RecordKind]] = None) -> int:
        """Print every record tagged CreatedBy=<actor>"""
        kinds = kinds or list(RecordKind)
        click.echo(Colorize.output_bold(f"Listing AWS resources tagged with CreatedBy={actor}"))
        Log.info(f"Listing records for {actor} in {[kind.value for kind in kinds]}")

        for kind in kinds:
            print()
            click.echo(Colorize.output_bold(f"{kind.label}s:"))
            count = 0
            try:
                for ref in self.coordinator.list(actor, [kind]):
                    count += 1
                    click.echo(Colorize.output_with_value(f"  {ref.name}", ref.arn or ""))
            except StoreError as e:
                return self.report_error(e)
            if count == 0:
                click.echo(Colorize.warning(f"No {kind.label.lower()}s found."))
            Log.info(f"Found {count} {kind.label.lower()}(s) for {actor}")
        return EXIT_SUCCESS

    # -------------------------------------------------------------------------
    # Interactive
    # -------------------------------------------------------------------------

    def menu(self, prompt: Callable = Colorize.prompt) -> int:
        """Interactive menu: Create, Delete, Exit, List"""
        defaults = self.settings["defaults"]

        click.echo(Colorize.output_bold("What do you want to do?"))
        for number, label in [("1", "Create"), ("2", "Delete"), ("3", "Exit"), ("4", "List")]:
            click.echo(Colorize.option(f"{number}) {label}"))
        choice = str(prompt("#?", "", str)).strip()

        if choice == "1":
            secret_name = prompt("Enter the secret name for the AWS Secret Key", defaults["secret_name"])
            secret_value = prompt(f"Enter value for {secret_name}", defaults["secret_value"])
            parameter_name = prompt("Enter the parameter name for the AWS Access Key", defaults["parameter_name"])
            parameter_value = prompt(f"Enter value for {parameter_name}", defaults["parameter_value"])
            pem_secret = prompt("Enter the secret name for the PEM file", defaults["pem_secret_name"])
            pem_file = prompt("Enter path to PEM file", defaults["pem_file"])

            if Path(pem_file).is_file():
                pem_value = read_value_file(pem_file)
            else:
                click.echo(Colorize.warning(f"File not found: {pem_file}, using dummy value"))
                Log.warning(f"PEM file not found: {pem_file}")
                pem_value = defaults["pem_dummy_value"]

            click.echo(Colorize.output("Creating AWS secrets and parameters with tags..."))
            return self.combine([
                self.create(secret_name, secret_value, RecordKind.SECRET),
                self.create(parameter_name, parameter_value, RecordKind.PARAMETER),
                self.create(pem_secret, pem_value, RecordKind.SECRET),
            ])

        if choice == "2":
            secret_name = prompt("Enter the secret name for the AWS Secret Key", defaults["secret_name"])
            parameter_name = prompt("Enter the parameter name for the AWS Access Key", defaults["parameter_name"])
            pem_secret = prompt("Enter the secret name for the PEM file", defaults["pem_secret_name"])
            return self.delete([
                (secret_name, RecordKind.SECRET),
                (parameter_name, RecordKind.PARAMETER),
                (pem_secret, RecordKind.SECRET),
            ])

        if choice == "3":
            click.echo(Colorize.output("Bye!"))
            return EXIT_SUCCESS

        if choice == "4":
            return self.list(self.actor)

        click.echo(Colorize.error("Invalid choice."))
        Log.error(f"Invalid menu choice: {choice}")
        return EXIT_ERROR

    def setup(self, prompt: Callable = Colorize.prompt) -> int:
        """Store the credentials Terraform needs and print the tfvars to use them

        The secret access key is stored as JSON {"secret_key": ...}, the access
        key id as a SecureString parameter, and the PEM file as a secret.
        """
        defaults = self.settings["defaults"]

        click.echo(Colorize.output_bold("Setting up AWS Secrets Manager and Parameter Store for Terraform..."))
        access_key = prompt("Enter your AWS Access Key ID", "")
        secret_key = prompt("Enter your AWS Secret Access Key", "", hide_input=True)
        pem_file = prompt("Enter the path to your PEM file", "")
        secret_name = prompt("Enter a name for the secret key secret", defaults["secret_name"])
        parameter_name = prompt("Enter a name for the access key parameter", defaults["parameter_name"])
        pem_secret = prompt("Enter a name for the PEM file secret", defaults["pem_secret_name"])

        if not Path(pem_file).is_file():
            click.echo(Colorize.severity(Severity.ERROR, f"PEM file not found at: {pem_file}"))
            Log.error(f"PEM file not found at: {pem_file}")
            return EXIT_ERROR

        Log.info(f"Setup using access key {Strings.mask(access_key)}")
        exit_code = self.combine([
            self.create(secret_name, json.dumps({"secret_key": secret_key}), RecordKind.SECRET,
                        description="AWS secret key for Terraform EC2 deployment"),
            self.create(parameter_name, access_key, RecordKind.PARAMETER,
                        description="AWS access key ID for Terraform EC2 deployment",
                        coordinator=self.secure_coordinator),
            self.create(pem_secret, read_value_file(pem_file), RecordKind.SECRET,
                        description="EC2 Key Pair PEM file for SSH access"),
        ])
        if exit_code == EXIT_ERROR:
            return exit_code

        print()
        click.echo(Colorize.output_bold("Update your terraform.tfvars with the following:"))
        click.echo(Colorize.divider())
        click.echo("use_secrets_manager = true")
        click.echo(f'aws_credentials_secret_name = "{secret_name}"')
        click.echo(f'aws_access_key_parameter = "{parameter_name}"')
        click.echo(f'pem_file_secret_name = "{pem_secret}"')
        click.echo(Colorize.divider())
        print()
        Colorize.box_warning([{
            "header": "IAM",
            "text": "Make sure your Terraform execution environment has the necessary "
                    "IAM permissions to access these secrets.",
        }])
        return exit_code


# =============================================================================
# ----- Main function ---------------------------------------------------------
# =============================================================================

EPILOG = """
Examples:
    secrets_manager.py create --name prod/aws/secret-key --value abc123
    secrets_manager.py create --name /prod/aws/access-key-id --value-file key.txt --kind parameter
    secrets_manager.py delete --name prod/ec2/keypair/my-key --yes --profile ACME_DEV
    secrets_manager.py list --actor alice
    secrets_manager.py menu
    secrets_manager.py setup --region us-east-1
"""


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--profile', help='AWS profile to use')
    common.add_argument('--region', help='AWS region')
    common.add_argument('--no-browser', action='store_true',
                        help='Disable browser-based SSO authentication')
    common.add_argument('--timeout', type=float,
                        help='Network timeout in seconds for each AWS call')
    common.add_argument('--config', help='Additional TOML settings file')
    common.add_argument('--actor', help='Identity recorded in tags (default: local user)')

    parser = argparse.ArgumentParser(
        description='Manage AWS Secrets Manager secrets and SSM parameters tagged with their creator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    create = subparsers.add_parser('create', parents=[common], help='Create or update a record')
    create.add_argument('--name', required=True, help='Secret or parameter name')
    value_group = create.add_mutually_exclusive_group(required=True)
    value_group.add_argument('--value', help='Value to store')
    value_group.add_argument('--value-file', help='Read the value from a file')
    create.add_argument('--kind', choices=KIND_CHOICES, default='secret', help='Store to use (default: secret)')
    create.add_argument('--description', help='Description used when the record is created')
    create.add_argument('--retag', action='store_true',
                        help='Overwrite existing CreatedBy/CreatedAt tags on update')

    delete = subparsers.add_parser('delete', parents=[common], help='Delete a record')
    delete.add_argument('--name', required=True, help='Secret or parameter name')
    delete.add_argument('--kind', choices=KIND_CHOICES, default='secret', help='Store to use (default: secret)')
    delete.add_argument('--yes', action='store_true', help='Skip the delete confirmation')

    list_parser = subparsers.add_parser('list', parents=[common], help='List records created by an actor')
    list_parser.add_argument('--kind', choices=KIND_CHOICES, help='Only list one store')

    subparsers.add_parser('menu', parents=[common], help='Interactive create/delete/list menu')
    subparsers.add_parser('setup', parents=[common], help='Store Terraform credentials interactively')

    return parser.parse_args(argv)


def run_command(cli: SecretsManagerCli, args: argparse.Namespace) -> int:
    if args.command == 'create':
        value = read_value_file(args.value_file) if args.value_file else args.value
        return cli.create(args.name, value, RecordKind.from_string(args.kind),
                          description=args.description, retag=args.retag)
    if args.command == 'delete':
        return cli.delete([(args.name, RecordKind.from_string(args.kind))], assume_yes=args.yes)
    if args.command == 'list':
        kinds = [RecordKind.from_string(args.kind)] if args.kind else None
        return cli.list(cli.actor, kinds)
    if args.command == 'menu':
        return cli.menu()
    return cli.setup()


def main(argv: Optional[List[str]] = None) -> int:

    args = parse_args(argv)

    try:
        loader = SettingsLoader()
        settings = loader.load(args.config)
    except (ValueError, FileNotFoundError, PermissionError) as e:
        click.echo(Colorize.error(f"Could not load settings: {str(e)}"))
        return EXIT_ERROR

    ScriptLogger.setup(SCRIPT_NAME, settings["log_dir"])
    Colorize.configure(settings.get("colors", {}))
    Log.info(f"{sys.argv if argv is None else argv}")
    Log.info(f"Version: {VERSION}")
    for settings_file in loader.loaded_files:
        Log.info(f"Loaded settings from '{settings_file}'")

    try:
        actor = args.actor or getpass.getuser()
    except (OSError, KeyError) as e:
        click.echo(Colorize.error("Could not determine the local user name. Pass --actor to set it."))
        Log.error("Could not determine the local user name", e)
        return EXIT_ERROR

    profile = args.profile or settings.get("profile") or None
    region = args.region or settings.get("region") or None
    timeout = args.timeout or settings.get("timeout") or None

    try:
        session_manager = AWSSessionManager(profile, region, args.no_browser, timeout=timeout)
        if profile or args.command == 'setup':
            session_manager.verify_credentials()

        coordinator = build_coordinator(session_manager, settings, actor)
        secure_coordinator = None
        if args.command == 'setup':
            secure_coordinator = build_coordinator(session_manager, settings, actor, parameter_type="SecureString")

        cli = SecretsManagerCli(coordinator, settings, actor, secure_coordinator=secure_coordinator)
        return run_command(cli, args)

    except (KeyboardInterrupt, click.Abort):
        click.echo(Colorize.error("\nOperation cancelled by user"))
        Log.info("Operation cancelled by user")
        return EXIT_CANCELLED
    except (TokenRetrievalError, OSError, ValueError, BotoCoreError, ClientError) as e:
        click.echo(Colorize.severity(Severity.ERROR, str(e)))
        Log.error("Command failed", e)
        return EXIT_ERROR
    except StoreError as e:
        click.echo(Colorize.severity(Severity.ERROR, e.summary()))
        Log.error(e.summary())
        return EXIT_ERROR
    except Exception as e:
        click.echo(Colorize.error(f"Unexpected error: {str(e)}"))
        Log.error("Unexpected error", e)
        return EXIT_ERROR


if __name__ == '__main__':
    sys.exit(main())

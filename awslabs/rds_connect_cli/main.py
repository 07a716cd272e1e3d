# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""awslabs RDS Connect CLI entry point."""

import argparse
import os
import sys
from .common.connection import close_all_connections, configure_session
from .constants import (
    CLI_VERSION,
    DEFAULT_LOG_LEVEL,
    DEFAULT_REGION,
    ENVIRONMENTS,
    ERROR_FILTER_CONFLICT,
    ERROR_INVALID_ENDPOINT_TYPE,
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_SUCCESS,
    LOG_LEVEL_ENV,
)
from .credentials import parse_auth_type, validate_auth_request
from .exceptions import ClientSessionError, RDSConnectException, ValidationError
from .launcher import check_dependencies, launch
from .models import AuthRequest, EndpointType, SelectionCriteria, SelectionMode
from .pipeline import resolve_target
from loguru import logger
from typing import List, Optional


USAGE_EXAMPLES = """Examples:
  rds-connect -e prod -a iam
  rds-connect -e staging -p myprofile -r us-west-2 -T writer
  rds-connect -t Team -v payments
  rds-connect -t Environment -v test -u myuser -W
"""


class ArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors with exit status 1."""

    def error(self, message):
        """Print usage and exit with a failure status."""
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f'ERROR: {message}\n')


class UsageAction(argparse.Action):
    """Print the full help text to stderr and exit with a failure status."""

    def __init__(
        self, option_strings, dest=argparse.SUPPRESS, default=argparse.SUPPRESS, help=None
    ):
        """Initialize the action as a flag that takes no value."""
        super().__init__(option_strings, dest=dest, default=default, nargs=0, help=help)

    def __call__(self, parser, namespace, values, option_string=None):
        """Show usage and exit."""
        parser.print_help(sys.stderr)
        parser.exit(EXIT_FAILURE)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = ArgumentParser(
        prog='rds-connect',
        description='Connect to an Amazon RDS instance or Aurora cluster found by its tags',
        epilog=USAGE_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument('-h', '--help', action=UsageAction, help='Show this message and exit')

    filters = parser.add_argument_group('filters')
    filters.add_argument(
        '-e',
        '--environment',
        help=f'Environment tag value ({", ".join(ENVIRONMENTS)}); exactly one database must match',
    )
    filters.add_argument('-t', '--tag-key', help='Tag key to filter on (requires -v)')
    filters.add_argument('-v', '--tag-value', help='Tag value to filter on (requires -t)')
    filters.add_argument(
        '-T',
        '--endpoint-type',
        help='Aurora endpoint type: reader or writer (default: reader with -e, both otherwise)',
    )

    aws = parser.add_argument_group('aws')
    aws.add_argument('-p', '--profile', help='AWS profile to use for credentials')
    aws.add_argument(
        '-r', '--region', default=DEFAULT_REGION, help=f'AWS region (default: {DEFAULT_REGION})'
    )

    auth = parser.add_argument_group('authentication')
    auth.add_argument(
        '-a', '--auth-type', help='Authentication type: iam, secrets-manager (secret), or manual'
    )
    auth.add_argument(
        '-u', '--db-user', help='Database user for manual auth (default: master user)'
    )
    auth.add_argument('-w', '--db-password', help='Database password (implies manual auth)')
    auth.add_argument(
        '-W',
        '--prompt-password',
        action='store_true',
        help='Prompt for the database password without echo (implies manual auth)',
    )
    return parser


def configure_logging() -> None:
    """Send log output to stderr at the level named by RDS_CONNECT_LOG_LEVEL.

    Unknown levels fall back to INFO, and the level never rises above ERROR so
    diagnostics are always shown.
    """
    logger.remove()
    invalid = None
    level = os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
    try:
        severity = logger.level(level).no
    except ValueError:
        invalid, level = level, DEFAULT_LOG_LEVEL
        severity = logger.level(level).no
    if severity > logger.level('ERROR').no:
        level = 'ERROR'

    logger.add(sys.stderr, level=level, format='{level}: {message}')
    if invalid:
        logger.warning(f'Unknown log level {invalid!r} in {LOG_LEVEL_ENV}, using {level}')


def build_criteria(args: argparse.Namespace) -> SelectionCriteria:
    """Build selection criteria from parsed arguments.

    Raises:
        ValidationError: For conflicting or malformed filters
    """
    endpoint_type = None
    if args.endpoint_type:
        try:
            endpoint_type = EndpointType(args.endpoint_type.lower())
        except ValueError:
            raise ValidationError(ERROR_INVALID_ENDPOINT_TYPE) from None

    if args.environment:
        if args.tag_key or args.tag_value:
            raise ValidationError(ERROR_FILTER_CONFLICT)
        return SelectionCriteria.for_environment(args.environment, endpoint_type)

    return SelectionCriteria(
        tag_key=args.tag_key,
        tag_value=args.tag_value,
        endpoint_type=endpoint_type,
        mode=SelectionMode.INTERACTIVE,
    )


def build_auth_request(args: argparse.Namespace) -> AuthRequest:
    """Build the authentication request from parsed arguments."""
    return validate_auth_request(
        method=parse_auth_type(args.auth_type),
        user=args.db_user,
        password=args.db_password,
        prompt_password=args.prompt_password,
    )


def run(argv: Optional[List[str]] = None) -> int:
    """Resolve the target database and run a client session against it.

    Args:
        argv: Command line arguments, defaults to sys.argv

    Returns:
        Process exit status
    """
    args = build_parser().parse_args(argv)
    configure_logging()
    logger.debug(f'RDS Connect CLI v{CLI_VERSION}')

    try:
        criteria = build_criteria(args)
        auth_request = build_auth_request(args)
        check_dependencies()

        configure_session(profile=args.profile, region=args.region)
        logger.debug(f'Region: {args.region}')
        if args.profile:
            logger.debug(f'AWS Profile: {args.profile}')

        target = resolve_target(criteria, auth_request)
        launch(target)
        return EXIT_SUCCESS
    except ClientSessionError as error:
        logger.error(str(error))
        return error.exit_code
    except RDSConnectException as error:
        logger.error(str(error))
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning('Interrupted')
        return EXIT_INTERRUPTED
    finally:
        close_all_connections()


def main():
    """Run the RDS Connect CLI."""
    sys.exit(run())


if __name__ == '__main__':
    main()

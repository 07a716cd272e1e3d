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

"""Credential resolution for the selected database.

Four strategies are supported:

- manual: an explicit password, with the master username unless a user is given
- iam: a short-lived IAM authentication token for the master username
- secrets-manager: the master credentials stored in AWS Secrets Manager
- auto: iam when the resource allows it, otherwise secrets-manager

Supplying a user or password always pins the method to manual; the automatic
cascade never falls back to manual.
"""

import json
from .common.connection import RDSConnectionManager, SecretsManagerConnectionManager
from .constants import (
    ERROR_CONFLICTING_AUTH,
    ERROR_INVALID_AUTH_TYPE,
    ERROR_MALFORMED_SECRET,
    ERROR_MISSING_PASSWORD,
    ERROR_NO_AUTH_METHOD,
    ERROR_PASSWORD_CONFLICT,
    ERROR_SECRET_RETRIEVAL,
    ERROR_SECRET_UNAVAILABLE,
    ERROR_TOKEN_FAILED,
)
from .exceptions import (
    AuthError,
    ConflictingAuthSpecError,
    MalformedSecretError,
    MissingPasswordError,
    NoMethodAvailableError,
    SecretUnavailableError,
    ValidationError,
)
from .models import AuthContext, AuthMethod, AuthRequest, DatabaseResource
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger
from pydantic import SecretStr
from typing import Optional, Tuple


AUTH_TYPE_ALIASES = {
    'iam': AuthMethod.IAM,
    'secret': AuthMethod.SECRETS_MANAGER,
    'secrets': AuthMethod.SECRETS_MANAGER,
    'secrets-manager': AuthMethod.SECRETS_MANAGER,
    'manual': AuthMethod.MANUAL,
}


def parse_auth_type(value: Optional[str]) -> Optional[AuthMethod]:
    """Map a command line auth type (e.g. 'IAM', 'secret') to an AuthMethod.

    Raises:
        ValidationError: If the value is not a known auth type
    """
    if not value:
        return None
    try:
        return AUTH_TYPE_ALIASES[value.lower()]
    except KeyError:
        raise ValidationError(ERROR_INVALID_AUTH_TYPE) from None


def validate_auth_request(
    method: Optional[AuthMethod] = None,
    user: Optional[str] = None,
    password: Optional[str] = None,
    prompt_password: bool = False,
) -> AuthRequest:
    """Apply the manual-credential precedence rule before any AWS call.

    Args:
        method: Explicitly requested method, or None
        user: Database user supplied on the command line
        password: Database password supplied on the command line
        prompt_password: Whether the password will be read interactively

    Returns:
        AuthRequest: The effective request

    Raises:
        ConflictingAuthSpecError: If manual credentials come with a non-manual method
        ValidationError: If both an inline and a prompted password are requested
    """
    if password and prompt_password:
        raise ValidationError(ERROR_PASSWORD_CONFLICT)

    if user or password or prompt_password:
        if method not in (None, AuthMethod.MANUAL, AuthMethod.AUTO):
            raise ConflictingAuthSpecError(ERROR_CONFLICTING_AUTH.format(method.value))
        method = AuthMethod.MANUAL

    return AuthRequest(
        method=method or AuthMethod.AUTO,
        user=user or None,
        password=SecretStr(password) if password else None,
    )


def generate_iam_token(resource: DatabaseResource, endpoint: str) -> str:
    """Generate an IAM authentication token for the master user.

    Raises:
        AuthError: If the token cannot be generated
    """
    logger.info('Generating IAM authentication token...')
    try:
        rds_client = RDSConnectionManager.get_connection()
        return rds_client.generate_db_auth_token(
            DBHostname=endpoint,
            Port=resource.port,
            DBUsername=resource.master_username,
        )
    except (ClientError, BotoCoreError) as error:
        raise AuthError(ERROR_TOKEN_FAILED.format(type(error).__name__)) from error


def fetch_secret_credentials(secret_reference: Optional[str]) -> Tuple[str, str]:
    """Read a `{username, password}` payload from Secrets Manager.

    Args:
        secret_reference: Secret ARN from the resource's `MasterUserSecret`

    Returns:
        Tuple of username and password

    Raises:
        SecretUnavailableError: If there is no reference or the secret cannot be read
        MalformedSecretError: If the payload lacks a username or password
    """
    if not secret_reference:
        raise SecretUnavailableError(ERROR_SECRET_UNAVAILABLE)

    logger.info('Retrieving credentials from AWS Secrets Manager...')
    try:
        secrets_client = SecretsManagerConnectionManager.get_connection()
        response = secrets_client.get_secret_value(SecretId=secret_reference)
    except ClientError as error:
        error_code = error.response['Error']['Code']
        raise SecretUnavailableError(ERROR_SECRET_RETRIEVAL.format(error_code)) from error
    except BotoCoreError as error:
        raise SecretUnavailableError(
            ERROR_SECRET_RETRIEVAL.format(type(error).__name__)
        ) from error

    try:
        payload = json.loads(response.get('SecretString') or '')
    except json.JSONDecodeError:
        raise MalformedSecretError(ERROR_MALFORMED_SECRET) from None

    if not isinstance(payload, dict):
        raise MalformedSecretError(ERROR_MALFORMED_SECRET)
    username = payload.get('username')
    password = payload.get('password')
    if not isinstance(username, str) or not isinstance(password, str):
        raise MalformedSecretError(ERROR_MALFORMED_SECRET)
    if not username or not password:
        raise MalformedSecretError(ERROR_MALFORMED_SECRET)
    return username, password


def _manual(resource: DatabaseResource, request: AuthRequest) -> AuthContext:
    if request.password is None or not request.password.get_secret_value():
        raise MissingPasswordError(ERROR_MISSING_PASSWORD)
    user = request.user or resource.master_username
    logger.info(f'Using manual authentication as {user}')
    return AuthContext(
        method=AuthMethod.MANUAL, user=user, password=request.password, ssl_required=False
    )


def _iam(resource: DatabaseResource, endpoint: str) -> AuthContext:
    if not resource.iam_auth_enabled:
        logger.warning(
            f'IAM database authentication is not enabled on {resource.identifier}; '
            'trying it because it was requested explicitly'
        )
    token = generate_iam_token(resource, endpoint)
    logger.info('Using IAM authentication')
    return AuthContext(
        method=AuthMethod.IAM,
        user=resource.master_username,
        password=SecretStr(token),
        ssl_required=True,
    )


def _secrets_manager(resource: DatabaseResource) -> AuthContext:
    username, password = fetch_secret_credentials(resource.secret_reference)
    logger.info('Using AWS Secrets Manager authentication')
    return AuthContext(
        method=AuthMethod.SECRETS_MANAGER,
        user=username,
        password=SecretStr(password),
        ssl_required=True,
    )


def _auto(resource: DatabaseResource, endpoint: str) -> AuthContext:
    logger.info('Auto-detecting authentication method...')
    if resource.iam_auth_enabled:
        return _iam(resource, endpoint)

    if resource.secret_reference:
        try:
            return _secrets_manager(resource)
        except AuthError as error:
            logger.warning(f'Secrets Manager authentication unavailable: {error}')

    raise NoMethodAvailableError(ERROR_NO_AUTH_METHOD)


def resolve_credentials(
    resource: DatabaseResource, endpoint: str, request: AuthRequest
) -> AuthContext:
    """Resolve the user, password and TLS requirement for the chosen resource.

    Args:
        resource: Detail of the selected instance or cluster
        endpoint: Address the client will connect to; IAM tokens are bound to it
        request: Validated authentication request

    Returns:
        AuthContext: The resolved credentials

    Raises:
        AuthError: If the requested or detected method cannot produce credentials
        MissingPasswordError: If manual authentication has no password
    """
    if request.method == AuthMethod.MANUAL:
        return _manual(resource, request)
    if request.method == AuthMethod.IAM:
        return _iam(resource, endpoint)
    if request.method == AuthMethod.SECRETS_MANAGER:
        return _secrets_manager(resource)
    return _auto(resource, endpoint)

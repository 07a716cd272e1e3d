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

"""Custom exceptions for the RDS Connect CLI."""

from .constants import ERROR_AMBIGUOUS, ERROR_SESSION_FAILED, ERROR_UNSUPPORTED_ENGINE


class RDSConnectException(Exception):
    """Base exception for the RDS Connect CLI."""

    pass


class ValidationError(RDSConnectException):
    """Raised for malformed or conflicting command line options."""

    pass


class ConflictingAuthSpecError(ValidationError):
    """Raised when manual credentials are combined with a non-manual auth type."""

    pass


class MissingPasswordError(ValidationError):
    """Raised when manual authentication has no password to use."""

    pass


class DependencyMissingError(RDSConnectException):
    """Raised when a required external executable is not available."""

    def __init__(self, dependency: str, message: str):
        """Initialize the DependencyMissingError.

        Args:
            dependency: Name of the missing executable
            message: Diagnostic message
        """
        self.dependency = dependency
        super().__init__(message)


class DiscoveryError(RDSConnectException):
    """Base exception for resource discovery and selection failures."""

    pass


class QueryFailedError(DiscoveryError):
    """Raised when the RDS inventory or a detail lookup cannot be queried."""

    pass


class NoneFoundError(DiscoveryError):
    """Raised when no resource matches the selection criteria."""

    pass


class AmbiguousMatchError(DiscoveryError):
    """Raised in strict mode when more than one resource matches."""

    def __init__(self, count: int, criteria_label: str = ''):
        """Initialize the AmbiguousMatchError.

        Args:
            count: Number of matching resources
            criteria_label: Human readable description of the filter
        """
        self.count = count
        super().__init__(ERROR_AMBIGUOUS.format(criteria_label, count))


class UnsupportedEngineError(DiscoveryError):
    """Raised when a resource runs an engine with no client profile."""

    def __init__(self, engine: str):
        """Initialize the UnsupportedEngineError.

        Args:
            engine: The engine identifier reported by RDS
        """
        self.engine = engine
        super().__init__(ERROR_UNSUPPORTED_ENGINE.format(engine))


class SelectionAbortedError(DiscoveryError):
    """Raised when the selection prompt is closed before a valid choice."""

    pass


class AuthError(RDSConnectException):
    """Base exception for credential resolution failures."""

    pass


class NoMethodAvailableError(AuthError):
    """Raised when automatic detection finds neither IAM nor a usable secret."""

    pass


class SecretUnavailableError(AuthError):
    """Raised when the resource has no secret or the secret cannot be read."""

    pass


class MalformedSecretError(AuthError):
    """Raised when a secret payload lacks a username or password."""

    pass


class ClientSessionError(RDSConnectException):
    """Raised when the database client session ends with a non-zero status."""

    def __init__(self, exit_code: int):
        """Initialize the ClientSessionError.

        Args:
            exit_code: Exit status reported by the client container
        """
        self.exit_code = exit_code
        super().__init__(ERROR_SESSION_FAILED.format(exit_code))

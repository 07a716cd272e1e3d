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

"""Selection of a single database from the discovered candidates."""

from .common.connection import RDSConnectionManager
from .common.utils import write_stderr
from .constants import (
    ERROR_DETAIL_FAILED,
    ERROR_ENDPOINT_TYPE_INSTANCE,
    ERROR_NO_ENDPOINT,
    ERROR_NONE_FOUND,
    ERROR_SELECTION_ABORTED,
)
from .exceptions import (
    AmbiguousMatchError,
    NoneFoundError,
    QueryFailedError,
    SelectionAbortedError,
    ValidationError,
)
from .models import (
    DatabaseResource,
    EndpointCandidate,
    EndpointType,
    SelectionCriteria,
    SelectionMode,
)
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger
from typing import Callable, List


def prompt_for_choice(
    candidates: List[EndpointCandidate],
    prompt: Callable[[str], str] = input,
    output: Callable[[str], None] = write_stderr,
) -> EndpointCandidate:
    """Show a numbered menu and read until a valid choice is entered.

    There is no retry limit. Closing the input stream aborts the selection.

    Args:
        candidates: Entries to offer, in display order
        prompt: Reads one line of operator input
        output: Writes one line of menu text

    Returns:
        EndpointCandidate: The chosen entry

    Raises:
        SelectionAbortedError: If the input stream is closed
    """
    output(f'Found {len(candidates)} databases:')
    for number, candidate in enumerate(candidates, start=1):
        output(f'  {number}) {candidate.label}')

    while True:
        try:
            answer = prompt(f'Select a database [1-{len(candidates)}]: ')
        except EOFError:
            raise SelectionAbortedError(ERROR_SELECTION_ABORTED) from None

        try:
            choice = int(answer)
        except ValueError:
            choice = 0
        if 1 <= choice <= len(candidates):
            return candidates[choice - 1]
        output(f'Invalid selection. Enter a number between 1 and {len(candidates)}.')


def select_candidate(
    candidates: List[EndpointCandidate],
    criteria: SelectionCriteria,
    prompt: Callable[[str], str] = input,
    output: Callable[[str], None] = write_stderr,
) -> EndpointCandidate:
    """Pick exactly one candidate according to the selection mode.

    Args:
        candidates: Entries produced by discovery
        criteria: Selection criteria, carrying the mode
        prompt: Reads operator input in interactive mode
        output: Writes the interactive menu

    Returns:
        EndpointCandidate: The selected entry

    Raises:
        NoneFoundError: If there are no candidates
        AmbiguousMatchError: If strict mode finds more than one candidate
    """
    if not candidates:
        raise NoneFoundError(ERROR_NONE_FOUND.format(criteria.describe()))

    if len(candidates) == 1:
        logger.info(f'Selected {candidates[0].label}')
        return candidates[0]

    if criteria.mode == SelectionMode.STRICT:
        raise AmbiguousMatchError(len(candidates), criteria.describe())

    choice = prompt_for_choice(candidates, prompt=prompt, output=output)
    logger.info(f'Selected {choice.label}')
    return choice


def fetch_resource_detail(candidate: EndpointCandidate) -> DatabaseResource:
    """Fetch the full, current description of the chosen resource.

    Args:
        candidate: The selected entry

    Returns:
        DatabaseResource: Fresh detail for the instance or cluster

    Raises:
        QueryFailedError: If the lookup fails or returns nothing
    """
    resource = candidate.resource

    if resource.is_cluster:
        kind, result_key = 'DB cluster', 'DBClusters'
        format_function = DatabaseResource.from_cluster
    else:
        kind, result_key = 'DB instance', 'DBInstances'
        format_function = DatabaseResource.from_instance

    logger.debug(f'Getting details for {kind}: {resource.identifier}')
    try:
        rds_client = RDSConnectionManager.get_connection()
        if resource.is_cluster:
            response = rds_client.describe_db_clusters(DBClusterIdentifier=resource.identifier)
        else:
            response = rds_client.describe_db_instances(DBInstanceIdentifier=resource.identifier)
    except ClientError as error:
        error_code = error.response['Error']['Code']
        raise QueryFailedError(
            ERROR_DETAIL_FAILED.format(kind, resource.identifier, error_code)
        ) from error
    except BotoCoreError as error:
        raise QueryFailedError(
            ERROR_DETAIL_FAILED.format(kind, resource.identifier, error)
        ) from error

    items = response.get(result_key, [])
    if not items:
        raise QueryFailedError(
            ERROR_DETAIL_FAILED.format(kind, resource.identifier, 'not found')
        )
    return format_function(items[0])


def resolve_endpoint(
    resource: DatabaseResource, candidate: EndpointCandidate, criteria: SelectionCriteria
) -> str:
    """Pick the address to connect to from the resource detail.

    Raises:
        ValidationError: If an endpoint type was requested for a standalone instance
        QueryFailedError: If the resource has no address yet
    """
    if not resource.is_cluster and criteria.endpoint_type is not None:
        raise ValidationError(ERROR_ENDPOINT_TYPE_INSTANCE)

    if not resource.endpoint:
        raise QueryFailedError(ERROR_NO_ENDPOINT.format(resource.identifier))
    if candidate.role == EndpointType.READER and resource.reader_endpoint:
        return resource.reader_endpoint
    return resource.endpoint

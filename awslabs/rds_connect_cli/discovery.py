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

"""Inventory query and tag filtering for RDS instances and Aurora clusters."""

from .common.connection import RDSConnectionManager
from .common.utils import handle_paginated_aws_api_call
from .constants import ERROR_QUERY_FAILED
from .exceptions import QueryFailedError
from .models import DatabaseResource, EndpointCandidate, EndpointType, SelectionCriteria
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger
from typing import Callable, Dict, List, Optional


def _query(
    paginator_name: str,
    result_key: str,
    format_function: Callable[[Dict], DatabaseResource],
    errors: List[str],
) -> List[DatabaseResource]:
    """Run one inventory query, degrading to an empty list on AWS errors."""
    try:
        rds_client = RDSConnectionManager.get_connection()
        return handle_paginated_aws_api_call(
            client=rds_client,
            paginator_name=paginator_name,
            operation_parameters={},
            format_function=format_function,
            result_key=result_key,
        )
    except ClientError as error:
        error_code = error.response['Error']['Code']
        logger.warning(f'{paginator_name} failed with client error {error_code}')
        errors.append(error_code)
    except BotoCoreError as error:
        logger.warning(f'{paginator_name} failed: {error}')
        errors.append(str(error))
    return []


def _matches(resource: DatabaseResource, criteria: SelectionCriteria) -> bool:
    if not criteria.has_tag_filter:
        return True
    return resource.has_tag(criteria.tag_key, criteria.tag_value)


def list_instances(criteria: SelectionCriteria, errors: List[str]) -> List[DatabaseResource]:
    """List standalone instances matching the criteria, sorted by identifier.

    Instances that belong to a cluster are left out; the cluster represents them.
    """
    instances = _query(
        'describe_db_instances', 'DBInstances', DatabaseResource.from_instance, errors
    )
    matched = [
        instance
        for instance in instances
        if not instance.cluster_identifier and _matches(instance, criteria)
    ]
    return sorted(matched, key=lambda resource: resource.identifier)


def list_clusters(criteria: SelectionCriteria, errors: List[str]) -> List[DatabaseResource]:
    """List Aurora clusters matching the criteria, sorted by identifier."""
    clusters = _query('describe_db_clusters', 'DBClusters', DatabaseResource.from_cluster, errors)
    matched = [cluster for cluster in clusters if _matches(cluster, criteria)]
    return sorted(matched, key=lambda resource: resource.identifier)


def discover(criteria: SelectionCriteria) -> List[DatabaseResource]:
    """Find every RDS instance and Aurora cluster matching the criteria.

    Args:
        criteria: Tag filter and selection policy

    Returns:
        Standalone instances followed by clusters, each group sorted by identifier

    Raises:
        QueryFailedError: If neither resource kind could be queried
    """
    logger.info(f'Searching for RDS instances and Aurora clusters{criteria.describe()}...')
    errors: List[str] = []

    instances = list_instances(criteria, errors)
    clusters = list_clusters(criteria, errors)

    if len(errors) == 2:
        raise QueryFailedError(ERROR_QUERY_FAILED.format(', '.join(dict.fromkeys(errors))))

    logger.debug(f'Matched {len(instances)} instance(s) and {len(clusters)} cluster(s)')
    return instances + clusters


def build_candidates(
    resources: List[DatabaseResource],
    endpoint_type: Optional[EndpointType] = None,
    reader_fallback: bool = False,
    include_instances: bool = True,
) -> List[EndpointCandidate]:
    """Expand resources into selectable endpoint entries.

    An instance contributes one entry. A cluster contributes a writer entry and,
    when it has one, a reader entry; a requested endpoint type keeps only the
    matching entry. Resources without an address yet (e.g. still `creating`)
    are left out.

    Args:
        resources: Discovered resources in enumeration order
        endpoint_type: Cluster endpoint role to keep, or None for both
        reader_fallback: Offer the writer address when a reader is requested
            from a cluster without a reader endpoint
        include_instances: Whether standalone instances are offered at all

    Returns:
        List of candidates in stable order
    """
    candidates = []
    for resource in resources:
        if not resource.endpoint:
            logger.debug(f'Skipping {resource.identifier}: no endpoint available')
            continue

        if not resource.is_cluster:
            if include_instances:
                candidates.append(
                    EndpointCandidate(resource=resource, address=resource.endpoint)
                )
            continue

        if endpoint_type in (None, EndpointType.WRITER):
            candidates.append(
                EndpointCandidate(
                    resource=resource, role=EndpointType.WRITER, address=resource.endpoint
                )
            )
        if endpoint_type in (None, EndpointType.READER):
            if resource.reader_endpoint:
                candidates.append(
                    EndpointCandidate(
                        resource=resource,
                        role=EndpointType.READER,
                        address=resource.reader_endpoint,
                    )
                )
            elif reader_fallback and endpoint_type == EndpointType.READER:
                candidates.append(
                    EndpointCandidate(
                        resource=resource, role=EndpointType.WRITER, address=resource.endpoint
                    )
                )
    return candidates

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

"""Tests for candidate selection and resource detail lookup."""

import pytest
from awslabs.rds_connect_cli.common.connection import RDSConnectionManager
from awslabs.rds_connect_cli.exceptions import (
    AmbiguousMatchError,
    NoneFoundError,
    QueryFailedError,
    SelectionAbortedError,
    ValidationError,
)
from awslabs.rds_connect_cli.models import (
    DatabaseResource,
    EndpointCandidate,
    EndpointType,
    SelectionCriteria,
    SelectionMode,
)
from awslabs.rds_connect_cli.selector import (
    fetch_resource_detail,
    resolve_endpoint,
    select_candidate,
)
from botocore.exceptions import ClientError, ProfileNotFound
from unittest.mock import MagicMock, patch


STRICT = SelectionCriteria(tag_key='Environment', tag_value='staging', mode=SelectionMode.STRICT)
INTERACTIVE = SelectionCriteria(tag_key='Environment', tag_value='staging')


@pytest.fixture
def instance_candidate(sample_db_instance):
    resource = DatabaseResource.from_instance(sample_db_instance)
    return EndpointCandidate(resource=resource, address=resource.endpoint)


@pytest.fixture
def cluster_candidates(sample_db_cluster):
    resource = DatabaseResource.from_cluster(sample_db_cluster)
    return [
        EndpointCandidate(resource=resource, role=EndpointType.WRITER, address=resource.endpoint),
        EndpointCandidate(
            resource=resource, role=EndpointType.READER, address=resource.reader_endpoint
        ),
    ]


class TestSelectCandidate:
    """Test cases for the select_candidate function."""

    @pytest.mark.parametrize('criteria', [STRICT, INTERACTIVE])
    def test_no_candidates(self, criteria):
        """Test zero matches fail in every mode."""
        with pytest.raises(NoneFoundError, match='Environment=staging'):
            select_candidate([], criteria, prompt=MagicMock())

    @pytest.mark.parametrize('criteria', [STRICT, INTERACTIVE])
    def test_single_candidate_never_prompts(self, criteria, instance_candidate):
        """Test a sole match is chosen without asking."""
        prompt = MagicMock()

        result = select_candidate([instance_candidate], criteria, prompt=prompt)

        assert result is instance_candidate
        prompt.assert_not_called()

    def test_strict_mode_rejects_multiple(self, instance_candidate, cluster_candidates):
        """Test strict mode refuses to guess between matches."""
        candidates = [instance_candidate, cluster_candidates[0]]

        with pytest.raises(AmbiguousMatchError) as error:
            select_candidate(candidates, STRICT, prompt=MagicMock())

        assert error.value.count == 2
        assert '(found 2)' in str(error.value)

    def test_interactive_mode_prompts(self, instance_candidate, cluster_candidates):
        """Test interactive mode lists every entry and returns the chosen one."""
        candidates = [instance_candidate] + cluster_candidates
        prompt = MagicMock(return_value='3')
        lines = []

        result = select_candidate(candidates, INTERACTIVE, prompt=prompt, output=lines.append)

        assert result is cluster_candidates[1]
        assert lines[0] == 'Found 3 databases:'
        assert lines[1].startswith('  1) [RDS] test-db-instance')
        assert lines[2].startswith('  2) [Aurora-writer] test-db-cluster')
        assert lines[3].startswith('  3) [Aurora-reader] test-db-cluster')
        prompt.assert_called_once_with('Select a database [1-3]: ')

    def test_interactive_mode_reprompts_on_invalid_input(self, cluster_candidates):
        """Test anything but an in-range integer is rejected."""
        prompt = MagicMock(side_effect=['0', '3', 'two', '-1', '1.5', '', ' 2 '])
        lines = []

        result = select_candidate(
            cluster_candidates, INTERACTIVE, prompt=prompt, output=lines.append
        )

        assert result is cluster_candidates[1]
        assert prompt.call_count == 7
        assert sum(line.startswith('Invalid selection') for line in lines) == 6

    def test_interactive_mode_aborts_on_eof(self, cluster_candidates):
        """Test a closed input stream aborts the selection."""
        prompt = MagicMock(side_effect=EOFError)

        with pytest.raises(SelectionAbortedError):
            select_candidate(cluster_candidates, INTERACTIVE, prompt=prompt, output=MagicMock())


class TestFetchResourceDetail:
    """Test cases for the second, detailed lookup."""

    def test_instance_detail(self, mock_rds_client, instance_candidate, sample_db_instance):
        """Test instances are described by instance identifier."""
        sample_db_instance['DBName'] = 'fresh'
        mock_rds_client.describe_db_instances.return_value = {
            'DBInstances': [sample_db_instance]
        }

        result = fetch_resource_detail(instance_candidate)

        mock_rds_client.describe_db_instances.assert_called_once_with(
            DBInstanceIdentifier='test-db-instance'
        )
        assert result.database_name == 'fresh'

    def test_cluster_detail(self, mock_rds_client, cluster_candidates, sample_db_cluster):
        """Test clusters are described by cluster identifier."""
        mock_rds_client.describe_db_clusters.return_value = {'DBClusters': [sample_db_cluster]}

        result = fetch_resource_detail(cluster_candidates[0])

        mock_rds_client.describe_db_clusters.assert_called_once_with(
            DBClusterIdentifier='test-db-cluster'
        )
        assert result.is_cluster

    def test_detail_client_error(self, mock_rds_client, instance_candidate):
        """Test a failed lookup is a hard error."""
        mock_rds_client.describe_db_instances.side_effect = ClientError(
            {'Error': {'Code': 'DBInstanceNotFound', 'Message': 'gone'}}, 'DescribeDBInstances'
        )

        with pytest.raises(QueryFailedError, match='DBInstanceNotFound'):
            fetch_resource_detail(instance_candidate)

    def test_detail_empty_response(self, mock_rds_client, cluster_candidates):
        """Test an empty answer is a hard error."""
        mock_rds_client.describe_db_clusters.return_value = {'DBClusters': []}

        with pytest.raises(QueryFailedError, match='not found'):
            fetch_resource_detail(cluster_candidates[0])


    def test_detail_client_creation_failure(self, cluster_candidates):
        """Test a client that cannot be created is a hard error."""
        with patch.object(
            RDSConnectionManager,
            'get_connection',
            side_effect=ProfileNotFound(profile='no-such-profile'),
        ):
            with pytest.raises(QueryFailedError, match='no-such-profile'):
                fetch_resource_detail(cluster_candidates[0])


class TestResolveEndpoint:
    """Test cases for choosing the connection address."""

    def test_instance_address(self, instance_candidate):
        """Test an instance connects to its only address."""
        resource = instance_candidate.resource

        assert resolve_endpoint(resource, instance_candidate, INTERACTIVE) == resource.endpoint

    @pytest.mark.parametrize('endpoint_type', [EndpointType.READER, EndpointType.WRITER])
    def test_endpoint_type_on_instance_is_rejected(self, instance_candidate, endpoint_type):
        """Test reader/writer selection is a configuration error for instances."""
        criteria = SelectionCriteria(endpoint_type=endpoint_type)

        with pytest.raises(ValidationError, match='only supported for Aurora clusters'):
            resolve_endpoint(instance_candidate.resource, instance_candidate, criteria)

    def test_cluster_roles(self, cluster_candidates):
        """Test cluster entries resolve to their role's endpoint."""
        writer, reader = cluster_candidates
        resource = writer.resource

        assert resolve_endpoint(resource, writer, INTERACTIVE) == resource.endpoint
        assert resolve_endpoint(resource, reader, INTERACTIVE) == resource.reader_endpoint

    def test_instance_without_address(self, sample_db_instance, instance_candidate):
        """Test a detail lookup without an address is a hard error."""
        sample_db_instance.pop('Endpoint')
        resource = DatabaseResource.from_instance(sample_db_instance)

        with pytest.raises(QueryFailedError, match='test-db-instance has no endpoint'):
            resolve_endpoint(resource, instance_candidate, INTERACTIVE)

    def test_cluster_without_address(self, sample_db_cluster, cluster_candidates):
        """Test a cluster whose endpoints disappeared is a hard error."""
        sample_db_cluster['Endpoint'] = None
        sample_db_cluster['ReaderEndpoint'] = None
        resource = DatabaseResource.from_cluster(sample_db_cluster)

        with pytest.raises(QueryFailedError):
            resolve_endpoint(resource, cluster_candidates[1], INTERACTIVE)

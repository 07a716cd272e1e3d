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

"""Global pytest fixtures for RDS Connect CLI tests."""

import os
import pytest
from awslabs.rds_connect_cli.common.connection import (
    RDSConnectionManager,
    SecretsManagerConnectionManager,
)
from unittest.mock import MagicMock, patch


@pytest.fixture(scope='session', autouse=True)
def tests_setup_and_teardown():
    """Mock environment and module variables for testing."""
    # Will be executed before the first test
    old_environ = dict(os.environ)
    os.environ.update(
        {
            'AWS_DEFAULT_REGION': 'us-east-2',  # pragma: allowlist secret
            'AWS_ACCESS_KEY_ID': 'mock_access_key',  # pragma: allowlist secret
            'AWS_SECRET_ACCESS_KEY': 'mock_secret_key',  # pragma: allowlist secret
        }
    )

    yield
    # Will be executed after the last test
    os.environ.clear()
    os.environ.update(old_environ)


@pytest.fixture
def mock_rds_client():
    """Fixture providing a mock RDS client for tests.

    Resets the RDS connection before and after the test.
    Returns a mock client that's automatically patched into the RDSConnectionManager.
    """
    RDSConnectionManager._client = None

    mock_client = MagicMock()

    with patch.object(RDSConnectionManager, 'get_connection', return_value=mock_client) as _:
        yield mock_client

    RDSConnectionManager._client = None


@pytest.fixture
def mock_secrets_client():
    """Fixture providing a mock Secrets Manager client for tests."""
    SecretsManagerConnectionManager._client = None

    mock_client = MagicMock()

    with patch.object(
        SecretsManagerConnectionManager, 'get_connection', return_value=mock_client
    ) as _:
        yield mock_client

    SecretsManagerConnectionManager._client = None


@pytest.fixture
def inventory(mock_rds_client):
    """Serve `describe_db_instances` and `describe_db_clusters` pages from lists.

    Returns a dict with `instances` and `clusters` lists; tests append raw API
    entries to them, or set a value to an exception to make that query fail.
    """
    data = {'instances': [], 'clusters': []}

    def get_paginator(name):
        key, result_key = {
            'describe_db_instances': ('instances', 'DBInstances'),
            'describe_db_clusters': ('clusters', 'DBClusters'),
        }[name]
        paginator = MagicMock()
        if isinstance(data[key], Exception):
            paginator.paginate.side_effect = data[key]
        else:
            paginator.paginate.return_value = [{result_key: list(data[key])}]
        return paginator

    mock_rds_client.get_paginator.side_effect = get_paginator
    return data


@pytest.fixture
def sample_db_cluster():
    """Return a sample DB cluster response."""
    return {
        'DBClusterIdentifier': 'test-db-cluster',
        'Status': 'available',
        'Engine': 'aurora-postgresql',
        'EngineVersion': '15.4',
        'DBClusterArn': 'arn:aws:rds:us-east-2:123456789012:cluster:test-db-cluster',
        'Endpoint': 'test-db-cluster.cluster-abc123.us-east-2.rds.amazonaws.com',
        'ReaderEndpoint': 'test-db-cluster.cluster-ro-abc123.us-east-2.rds.amazonaws.com',
        'Port': 5432,
        'DatabaseName': 'appdb',
        'MasterUsername': 'postgres',
        'IAMDatabaseAuthenticationEnabled': False,
        'MasterUserSecret': {
            'SecretArn': 'arn:aws:secretsmanager:us-east-2:123456789012:secret:rds!cluster-abc',
            'SecretStatus': 'active',
        },
        'DBClusterMembers': [
            {'DBInstanceIdentifier': 'test-db-cluster-1', 'IsClusterWriter': True},
            {'DBInstanceIdentifier': 'test-db-cluster-2', 'IsClusterWriter': False},
        ],
        'TagList': [{'Key': 'Environment', 'Value': 'staging'}],
    }


@pytest.fixture
def sample_db_instance():
    """Return a sample DB instance response."""
    return {
        'DBInstanceIdentifier': 'test-db-instance',
        'DBInstanceClass': 'db.t3.micro',
        'Engine': 'postgres',
        'EngineVersion': '16.3',
        'DBInstanceStatus': 'available',
        'MasterUsername': 'dbadmin',
        'DBName': 'testdb',
        'Endpoint': {
            'Address': 'test-db-instance.abc123.us-east-2.rds.amazonaws.com',
            'Port': 5432,
            'HostedZoneId': 'Z2R2ITUGPM61AM',
        },
        'IAMDatabaseAuthenticationEnabled': True,
        'MultiAZ': False,
        'PubliclyAccessible': False,
        'DBInstanceArn': 'arn:aws:rds:us-east-2:123456789012:db:test-db-instance',
        'TagList': [{'Key': 'Environment', 'Value': 'prod'}],
    }


@pytest.fixture
def cluster_member_instance(sample_db_instance):
    """Return an instance that belongs to an Aurora cluster."""
    member = dict(sample_db_instance)
    member['DBInstanceIdentifier'] = 'test-db-cluster-1'
    member['Engine'] = 'aurora-postgresql'
    member['DBClusterIdentifier'] = 'test-db-cluster'
    member['TagList'] = [{'Key': 'Environment', 'Value': 'prod'}]
    return member


@pytest.fixture
def cluster_factory(sample_db_cluster):
    """Return a function copying the sample cluster under a new identifier."""

    def make_cluster(identifier, **overrides):
        cluster = dict(sample_db_cluster)
        cluster['DBClusterIdentifier'] = identifier
        cluster['Endpoint'] = f'{identifier}.cluster-abc123.us-east-2.rds.amazonaws.com'
        cluster['ReaderEndpoint'] = f'{identifier}.cluster-ro-abc123.us-east-2.rds.amazonaws.com'
        cluster.update(overrides)
        return cluster

    return make_cluster


@pytest.fixture
def instance_factory(sample_db_instance):
    """Return a function copying the sample instance under a new identifier."""

    def make_instance(identifier, **overrides):
        instance = dict(sample_db_instance)
        instance['DBInstanceIdentifier'] = identifier
        instance['Endpoint'] = dict(sample_db_instance['Endpoint'])
        instance['Endpoint']['Address'] = f'{identifier}.abc123.us-east-2.rds.amazonaws.com'
        instance.update(overrides)
        return instance

    return make_instance

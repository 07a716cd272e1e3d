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

"""Data models for the RDS Connect CLI."""

from .common.utils import tags_to_dict
from .constants import (
    ENVIRONMENTS,
    DEFAULT_ENVIRONMENT_TAG,
    ERROR_INVALID_ENVIRONMENT,
    ERROR_TAG_PAIR,
    LABEL_CLUSTER,
    LABEL_INSTANCE,
)
from .exceptions import ValidationError
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator
from typing import Dict, List, Optional


class ResourceKind(str, Enum):
    """Kind of RDS deployment."""

    STANDALONE_INSTANCE = 'StandaloneInstance'
    AURORA_CLUSTER = 'AuroraCluster'


class EndpointType(str, Enum):
    """Aurora cluster endpoint role."""

    READER = 'reader'
    WRITER = 'writer'


class SelectionMode(str, Enum):
    """How a single resource is picked from the matches."""

    STRICT = 'strict'
    INTERACTIVE = 'interactive'


class AuthMethod(str, Enum):
    """Authentication strategy."""

    MANUAL = 'manual'
    IAM = 'iam'
    SECRETS_MANAGER = 'secrets-manager'
    AUTO = 'auto'


class ClientFamily(str, Enum):
    """Database client family used to reach an engine."""

    POSTGRESQL = 'PostgreSQL'
    MYSQL_FAMILY = 'MySQLFamily'
    ORACLE = 'Oracle'
    SQLSERVER = 'SQLServer'


class DatabaseResource(BaseModel):
    """A standalone RDS instance or an Aurora cluster."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(description='The DB instance or DB cluster identifier')
    kind: ResourceKind = Field(description='Whether this is an instance or a cluster')
    engine: str = Field(description='The database engine')
    endpoint: Optional[str] = Field(
        None, description='Instance address, or the cluster writer endpoint'
    )
    reader_endpoint: Optional[str] = Field(
        None, description='The cluster reader endpoint, clusters only'
    )
    port: Optional[int] = Field(None, description='The port the engine listens on')
    database_name: Optional[str] = Field(None, description='The initial database name')
    master_username: str = Field('', description='The master username')
    iam_auth_enabled: bool = Field(
        False, description='Whether IAM database authentication is enabled'
    )
    secret_reference: Optional[str] = Field(
        None, description='ARN of the Secrets Manager secret holding the master credentials'
    )
    cluster_identifier: Optional[str] = Field(
        None, description='The DB cluster this instance belongs to, if any'
    )
    tags: Dict[str, str] = Field(default_factory=dict, description='A dictionary of tags')

    @model_validator(mode='after')
    def _instances_have_one_address(self) -> 'DatabaseResource':
        if self.kind == ResourceKind.STANDALONE_INSTANCE and self.reader_endpoint:
            raise ValueError('a standalone instance has no reader endpoint')
        return self

    @property
    def is_cluster(self) -> bool:
        """Whether this resource is an Aurora cluster."""
        return self.kind == ResourceKind.AURORA_CLUSTER

    def has_tag(self, key: str, value: str) -> bool:
        """Check whether the resource carries exactly `key=value`."""
        return key in self.tags and self.tags[key] == value

    @classmethod
    def from_instance(cls, instance: Dict) -> 'DatabaseResource':
        """Build a resource from a `describe_db_instances` entry.

        Args:
            instance: Raw instance data from the AWS API response

        Returns:
            DatabaseResource: The standalone instance
        """
        endpoint = instance.get('Endpoint') or {}
        if not isinstance(endpoint, dict):
            endpoint = {'Address': endpoint}
        secret = instance.get('MasterUserSecret') or {}

        return cls(
            identifier=instance.get('DBInstanceIdentifier', ''),
            kind=ResourceKind.STANDALONE_INSTANCE,
            engine=instance.get('Engine', ''),
            endpoint=endpoint.get('Address'),
            port=endpoint.get('Port'),
            database_name=instance.get('DBName') or None,
            master_username=instance.get('MasterUsername', ''),
            iam_auth_enabled=bool(instance.get('IAMDatabaseAuthenticationEnabled', False)),
            secret_reference=secret.get('SecretArn') or None,
            cluster_identifier=instance.get('DBClusterIdentifier') or None,
            tags=tags_to_dict(instance.get('TagList')),
        )

    @classmethod
    def from_cluster(cls, cluster: Dict) -> 'DatabaseResource':
        """Build a resource from a `describe_db_clusters` entry.

        Args:
            cluster: Raw cluster data from the AWS API response

        Returns:
            DatabaseResource: The Aurora cluster
        """
        secret = cluster.get('MasterUserSecret') or {}

        return cls(
            identifier=cluster.get('DBClusterIdentifier', ''),
            kind=ResourceKind.AURORA_CLUSTER,
            engine=cluster.get('Engine', ''),
            endpoint=cluster.get('Endpoint'),
            reader_endpoint=cluster.get('ReaderEndpoint') or None,
            port=cluster.get('Port'),
            database_name=cluster.get('DatabaseName') or None,
            master_username=cluster.get('MasterUsername', ''),
            iam_auth_enabled=bool(cluster.get('IAMDatabaseAuthenticationEnabled', False)),
            secret_reference=secret.get('SecretArn') or None,
            tags=tags_to_dict(cluster.get('TagList')),
        )


class EndpointCandidate(BaseModel):
    """One selectable entry: an instance, or one endpoint of a cluster."""

    model_config = ConfigDict(frozen=True)

    resource: DatabaseResource
    role: Optional[EndpointType] = Field(None, description='Cluster endpoint role')
    address: Optional[str] = Field(None, description='The address offered for this entry')

    @property
    def label(self) -> str:
        """Menu label, e.g. `[Aurora-writer] my-cluster (aurora-postgresql): host`."""
        if self.resource.is_cluster:
            prefix = LABEL_CLUSTER.format(self.role.value if self.role else 'writer')
        else:
            prefix = LABEL_INSTANCE
        return f'{prefix} {self.resource.identifier} ({self.resource.engine}): {self.address}'


class SelectionCriteria(BaseModel):
    """Filter and selection policy for one invocation."""

    model_config = ConfigDict(frozen=True)

    tag_key: Optional[str] = None
    tag_value: Optional[str] = None
    endpoint_type: Optional[EndpointType] = None
    mode: SelectionMode = SelectionMode.INTERACTIVE

    @model_validator(mode='after')
    def _tag_pair(self) -> 'SelectionCriteria':
        if bool(self.tag_key) != bool(self.tag_value):
            raise ValidationError(ERROR_TAG_PAIR)
        return self

    @classmethod
    def for_environment(
        cls, environment: str, endpoint_type: Optional[EndpointType] = None
    ) -> 'SelectionCriteria':
        """Strict criteria matching `Environment=<environment>`."""
        if environment not in ENVIRONMENTS:
            raise ValidationError(ERROR_INVALID_ENVIRONMENT.format(', '.join(ENVIRONMENTS)))
        return cls(
            tag_key=DEFAULT_ENVIRONMENT_TAG,
            tag_value=environment,
            endpoint_type=endpoint_type,
            mode=SelectionMode.STRICT,
        )

    @property
    def has_tag_filter(self) -> bool:
        """Whether a tag predicate is set."""
        return bool(self.tag_key)

    def describe(self) -> str:
        """Suffix for diagnostics, e.g. ` with Environment=prod`."""
        if not self.has_tag_filter:
            return ''
        return f' with {self.tag_key}={self.tag_value}'


class AuthRequest(BaseModel):
    """Validated authentication options from the command line."""

    model_config = ConfigDict(frozen=True)

    method: AuthMethod = AuthMethod.AUTO
    user: Optional[str] = None
    password: Optional[SecretStr] = None


class AuthContext(BaseModel):
    """Credentials resolved for the chosen resource."""

    model_config = ConfigDict(frozen=True)

    method: AuthMethod
    user: str
    password: SecretStr
    ssl_required: bool = False


class EngineProfile(BaseModel):
    """Client family and connection conventions for a set of engines."""

    model_config = ConfigDict(frozen=True)

    client_family: ClientFamily
    display_name: str
    docker_image: str
    password_env: Optional[str] = Field(
        None, description='Environment variable carrying the password; None means inline'
    )
    default_database: str
    default_port: int
    engines: List[str] = Field(default_factory=list)

    def ssl_arguments(self, ssl_required: bool) -> List[str]:
        """Connection fragments that enforce TLS for this client family."""
        if not ssl_required:
            return []
        if self.client_family == ClientFamily.POSTGRESQL:
            return ['sslmode=require']
        if self.client_family == ClientFamily.MYSQL_FAMILY:
            return ['--ssl-mode=REQUIRED']
        if self.client_family == ClientFamily.SQLSERVER:
            return ['-N']
        return []


class ConnectionTarget(BaseModel):
    """Everything the launcher needs to open a client session."""

    model_config = ConfigDict(frozen=True)

    profile: EngineProfile
    identifier: str
    endpoint: str
    port: int
    database: str
    auth: AuthContext

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

"""Constants for the RDS Connect CLI."""

# Version
CLI_VERSION = '0.1.0'

# Error Messages
ERROR_TAG_PAIR = 'Tag key (-t) and tag value (-v) must be provided together'
ERROR_FILTER_CONFLICT = 'Environment (-e) cannot be combined with a tag filter (-t/-v)'
ERROR_INVALID_ENVIRONMENT = 'Environment must be one of: {}'
ERROR_INVALID_ENDPOINT_TYPE = 'Endpoint type must be: reader or writer'
ERROR_INVALID_AUTH_TYPE = 'Authentication type must be: iam, secrets-manager, or manual'
ERROR_CONFLICTING_AUTH = (
    'Cannot specify non-manual authentication type ({}) with a DB user or password'
)
ERROR_PASSWORD_CONFLICT = 'Use either -w DB_PASSWORD or -W, not both'
ERROR_MISSING_PASSWORD = 'A password is required for manual authentication'
ERROR_ENDPOINT_TYPE_INSTANCE = 'Endpoint type parameter is only supported for Aurora clusters'
ERROR_MISSING_DEPENDENCY = '{} is not installed'
ERROR_QUERY_FAILED = 'Unable to query RDS instances or Aurora clusters: {}'
ERROR_DETAIL_FAILED = 'Unable to describe {} {}: {}'
ERROR_NO_ENDPOINT = '{} has no endpoint available yet'
ERROR_NONE_FOUND = 'No RDS instances or Aurora clusters found{}'
ERROR_AMBIGUOUS = 'Multiple RDS instances/clusters found{} (found {})'
ERROR_UNSUPPORTED_ENGINE = 'Unsupported database engine: {}'
ERROR_SELECTION_ABORTED = 'Selection aborted before a database was chosen'
ERROR_NO_AUTH_METHOD = (
    'No authentication method available. IAM is disabled and no Secrets Manager secret '
    'found. Use -a manual with -u and -w to provide credentials'
)
ERROR_SECRET_UNAVAILABLE = 'No AWS Secrets Manager secret found for this database'
ERROR_SECRET_RETRIEVAL = 'Unable to retrieve Secrets Manager secret for this database: {}'
ERROR_MALFORMED_SECRET = 'Secrets Manager secret does not contain a username and password'
ERROR_TOKEN_FAILED = 'Unable to generate IAM authentication token: {}'
ERROR_SESSION_FAILED = 'Database client exited with status {}'

# Defaults
DEFAULT_REGION = 'us-east-2'
DEFAULT_ENVIRONMENT_TAG = 'Environment'
ENVIRONMENTS = ('test', 'staging', 'prod')
LOG_LEVEL_ENV = 'RDS_CONNECT_LOG_LEVEL'
DEFAULT_LOG_LEVEL = 'INFO'

# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

# Endpoint labels
LABEL_INSTANCE = '[RDS]'
LABEL_CLUSTER = '[Aurora-{}]'

# AWS RDS Engine Types
ENGINE_AURORA_MYSQL = 'aurora-mysql'
ENGINE_AURORA_POSTGRESQL = 'aurora-postgresql'
ENGINE_MYSQL = 'mysql'
ENGINE_POSTGRESQL = 'postgres'
ENGINE_MARIADB = 'mariadb'
ENGINE_ORACLE_EE = 'oracle-ee'
ENGINE_ORACLE_EE_CDB = 'oracle-ee-cdb'
ENGINE_ORACLE_SE2 = 'oracle-se2'
ENGINE_ORACLE_SE2_CDB = 'oracle-se2-cdb'
ENGINE_SQLSERVER_EE = 'sqlserver-ee'
ENGINE_SQLSERVER_SE = 'sqlserver-se'
ENGINE_SQLSERVER_EX = 'sqlserver-ex'
ENGINE_SQLSERVER_WEB = 'sqlserver-web'

# Client images
IMAGE_POSTGRESQL = 'postgres:alpine'
IMAGE_MYSQL = 'mysql:latest'
IMAGE_ORACLE = 'container-registry.oracle.com/database/instantclient:latest'
IMAGE_SQLSERVER = 'mcr.microsoft.com/mssql-tools'

# Password environment variables understood by the clients
PASSWORD_ENV_POSTGRESQL = 'PGPASSWORD'
PASSWORD_ENV_MYSQL = 'MYSQL_PWD'

# Container
DOCKER_EXECUTABLE = 'docker'
CONTAINER_NAME_PREFIX = 'dbclient'
MASKED_VALUE = '******'

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

"""Engine profile table and client command construction."""

from .constants import (
    ENGINE_AURORA_MYSQL,
    ENGINE_AURORA_POSTGRESQL,
    ENGINE_MARIADB,
    ENGINE_MYSQL,
    ENGINE_ORACLE_EE,
    ENGINE_ORACLE_EE_CDB,
    ENGINE_ORACLE_SE2,
    ENGINE_ORACLE_SE2_CDB,
    ENGINE_POSTGRESQL,
    ENGINE_SQLSERVER_EE,
    ENGINE_SQLSERVER_EX,
    ENGINE_SQLSERVER_SE,
    ENGINE_SQLSERVER_WEB,
    IMAGE_MYSQL,
    IMAGE_ORACLE,
    IMAGE_POSTGRESQL,
    IMAGE_SQLSERVER,
    PASSWORD_ENV_MYSQL,
    PASSWORD_ENV_POSTGRESQL,
)
from .exceptions import UnsupportedEngineError
from .models import ClientFamily, ConnectionTarget, EngineProfile
from typing import Callable, Dict, List


POSTGRESQL_PROFILE = EngineProfile(
    client_family=ClientFamily.POSTGRESQL,
    display_name='PostgreSQL',
    docker_image=IMAGE_POSTGRESQL,
    password_env=PASSWORD_ENV_POSTGRESQL,
    default_database='postgres',
    default_port=5432,
    engines=[ENGINE_POSTGRESQL, ENGINE_AURORA_POSTGRESQL],
)

MYSQL_PROFILE = EngineProfile(
    client_family=ClientFamily.MYSQL_FAMILY,
    display_name='MySQL/MariaDB',
    docker_image=IMAGE_MYSQL,
    password_env=PASSWORD_ENV_MYSQL,
    default_database='mysql',
    default_port=3306,
    engines=[ENGINE_MYSQL, ENGINE_AURORA_MYSQL, ENGINE_MARIADB],
)

ORACLE_PROFILE = EngineProfile(
    client_family=ClientFamily.ORACLE,
    display_name='Oracle',
    docker_image=IMAGE_ORACLE,
    default_database='ORCL',
    default_port=1521,
    engines=[ENGINE_ORACLE_EE, ENGINE_ORACLE_EE_CDB, ENGINE_ORACLE_SE2, ENGINE_ORACLE_SE2_CDB],
)

SQLSERVER_PROFILE = EngineProfile(
    client_family=ClientFamily.SQLSERVER,
    display_name='SQL Server',
    docker_image=IMAGE_SQLSERVER,
    default_database='master',
    default_port=1433,
    engines=[ENGINE_SQLSERVER_EE, ENGINE_SQLSERVER_SE, ENGINE_SQLSERVER_EX, ENGINE_SQLSERVER_WEB],
)

ENGINE_PROFILES: Dict[str, EngineProfile] = {
    engine: profile
    for profile in (POSTGRESQL_PROFILE, MYSQL_PROFILE, ORACLE_PROFILE, SQLSERVER_PROFILE)
    for engine in profile.engines
}


def profile_for(engine: str) -> EngineProfile:
    """Look up the client profile for an RDS engine identifier.

    Args:
        engine: Engine identifier as reported by RDS (e.g. 'aurora-postgresql')

    Returns:
        EngineProfile: The matching profile

    Raises:
        UnsupportedEngineError: If the engine is not in the table
    """
    try:
        return ENGINE_PROFILES[engine]
    except KeyError:
        raise UnsupportedEngineError(engine) from None


def _conninfo_value(value) -> str:
    """Quote a libpq conninfo value when it is empty or holds special characters."""
    value = str(value)
    if value and not any(char.isspace() or char in '\'\\' for char in value):
        return value
    return "'" + value.replace('\\', '\\\\').replace("'", "\\'") + "'"


def _psql_command(target: ConnectionTarget) -> List[str]:
    conninfo = [
        f'host={_conninfo_value(target.endpoint)}',
        f'port={_conninfo_value(target.port)}',
        f'user={_conninfo_value(target.auth.user)}',
        f'dbname={_conninfo_value(target.database)}',
    ]
    conninfo.extend(target.profile.ssl_arguments(target.auth.ssl_required))
    return ['psql', ' '.join(conninfo)]


def _mysql_command(target: ConnectionTarget) -> List[str]:
    command = [
        'mysql',
        '-h',
        target.endpoint,
        '-P',
        str(target.port),
        '-u',
        target.auth.user,
        '-D',
        target.database,
    ]
    return command + target.profile.ssl_arguments(target.auth.ssl_required)


def _sqlplus_command(target: ConnectionTarget) -> List[str]:
    password = target.auth.password.get_secret_value()
    return [
        'sqlplus',
        f'{target.auth.user}/{password}@//{target.endpoint}:{target.port}/{target.database}',
    ]


def _sqlcmd_command(target: ConnectionTarget) -> List[str]:
    command = [
        'sqlcmd',
        '-S',
        f'{target.endpoint},{target.port}',
        '-U',
        target.auth.user,
        '-P',
        target.auth.password.get_secret_value(),
        '-d',
        target.database,
    ]
    return command + target.profile.ssl_arguments(target.auth.ssl_required)


COMMAND_BUILDERS: Dict[ClientFamily, Callable[[ConnectionTarget], List[str]]] = {
    ClientFamily.POSTGRESQL: _psql_command,
    ClientFamily.MYSQL_FAMILY: _mysql_command,
    ClientFamily.ORACLE: _sqlplus_command,
    ClientFamily.SQLSERVER: _sqlcmd_command,
}


def build_client_command(target: ConnectionTarget) -> List[str]:
    """Build the client argv to run inside the container.

    Clients with a password environment variable never see the password on
    the command line.

    Args:
        target: The resolved connection target

    Returns:
        List of arguments, starting with the client executable
    """
    return COMMAND_BUILDERS[target.profile.client_family](target)

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

"""Connection management for the AWS services used by the RDS Connect CLI."""

import boto3
import os
from ..constants import CLI_VERSION, DEFAULT_REGION
from botocore.config import Config
from typing import Any, Optional


class BaseConnectionManager:
    """Base class for AWS service connection managers."""

    _client: Optional[Any] = None
    _service_name: str = ''
    _env_prefix: str = ''

    @classmethod
    def get_connection(cls) -> Any:
        """Get or create an AWS service client connection.

        Automatic retries are off unless the service's `_MAX_RETRIES`
        environment variable asks for them.

        Returns:
            boto3.client: An AWS service client
        """
        if cls._client is None:
            # get AWS configuration from environment
            aws_profile = os.environ.get('AWS_PROFILE', '')
            aws_region = os.environ.get('AWS_REGION', DEFAULT_REGION)

            max_retries = int(os.environ.get(f'{cls._env_prefix}_MAX_RETRIES', '0'))
            retry_mode = os.environ.get(f'{cls._env_prefix}_RETRY_MODE', 'standard')
            connect_timeout = int(os.environ.get(f'{cls._env_prefix}_CONNECT_TIMEOUT', '5'))
            read_timeout = int(os.environ.get(f'{cls._env_prefix}_READ_TIMEOUT', '10'))

            config = Config(
                retries={'max_attempts': max_retries, 'mode': retry_mode},
                connect_timeout=connect_timeout,
                read_timeout=read_timeout,
                user_agent_extra=f'RDSConnectCLI/{CLI_VERSION}',
            )

            if aws_profile:
                session = boto3.Session(profile_name=aws_profile, region_name=aws_region)
            else:
                session = boto3.Session(region_name=aws_region)
            cls._client = session.client(service_name=cls._service_name, config=config)

        return cls._client

    @classmethod
    def close_connection(cls) -> None:
        """Close the AWS service client connection."""
        if cls._client is not None:
            cls._client.close()
            cls._client = None


class RDSConnectionManager(BaseConnectionManager):
    """Manages connection to RDS using boto3."""

    _client: Optional[Any] = None
    _service_name = 'rds'
    _env_prefix = 'RDS'


class SecretsManagerConnectionManager(BaseConnectionManager):
    """Manages connection to Secrets Manager using boto3."""

    _client: Optional[Any] = None
    _service_name = 'secretsmanager'
    _env_prefix = 'SECRETSMANAGER'


def configure_session(profile: Optional[str] = None, region: Optional[str] = None) -> None:
    """Point every connection manager at the given profile and region.

    Args:
        profile: AWS named profile, or None to use the default credential chain
        region: AWS region, or None to keep the environment's region
    """
    if profile:
        os.environ['AWS_PROFILE'] = profile
    if region:
        os.environ['AWS_REGION'] = region
    close_all_connections()


def close_all_connections() -> None:
    """Close every cached AWS client."""
    RDSConnectionManager.close_connection()
    SecretsManagerConnectionManager.close_connection()

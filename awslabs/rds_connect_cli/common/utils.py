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

"""General utility functions for the RDS Connect CLI."""

import sys
from ..constants import MASKED_VALUE
from botocore.client import BaseClient
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar


T = TypeVar('T', bound=object)


def handle_paginated_aws_api_call(
    client: BaseClient,
    paginator_name: str,
    operation_parameters: Dict[str, Any],
    format_function: Callable[[Any], T],
    result_key: str,
) -> List[T]:
    """Fetch all results using AWS API pagination.

    Args:
        client: Boto3 client to use for the API call
        paginator_name: Name of the paginator to use (e.g. 'describe_db_clusters')
        operation_parameters: Parameters to pass to the paginator
        format_function: Function to format each item in the result
        result_key: Key in the response that contains the list of items

    Returns:
        List of formatted results
    """
    results = []
    paginator = client.get_paginator(paginator_name)
    page_iterator = paginator.paginate(**operation_parameters)
    for page in page_iterator:
        for item in page.get(result_key, []):
            results.append(format_function(item))

    return results


def tags_to_dict(tag_list: Optional[List[Dict[str, str]]]) -> Dict[str, str]:
    """Convert an AWS `TagList` into a key to value mapping.

    Args:
        tag_list: List of `{'Key': ..., 'Value': ...}` entries

    Returns:
        Dictionary of tags
    """
    tags = {}
    for tag in tag_list or []:
        if 'Key' in tag and 'Value' in tag:
            tags[tag['Key']] = tag['Value']
    return tags


def mask_secrets(args: Iterable[str], secrets: Iterable[str]) -> List[str]:
    """Return a copy of a command line with every secret value masked.

    Args:
        args: Command line arguments
        secrets: Values that must never be displayed

    Returns:
        Arguments safe to log
    """
    secrets = [secret for secret in secrets if secret]
    masked = []
    for arg in args:
        for secret in secrets:
            arg = arg.replace(secret, MASKED_VALUE)
        masked.append(arg)
    return masked


def write_stderr(text: str) -> None:
    """Write one line of operator-facing text to stderr."""
    print(text, file=sys.stderr)

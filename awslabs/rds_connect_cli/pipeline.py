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

"""Resolution pipeline: criteria to a fully specified connection target."""

import getpass
from .common.utils import write_stderr
from .constants import ERROR_MISSING_PASSWORD
from .credentials import resolve_credentials
from .discovery import build_candidates, discover
from .engines import profile_for
from .exceptions import MissingPasswordError
from .models import (
    AuthContext,
    AuthMethod,
    AuthRequest,
    ConnectionTarget,
    DatabaseResource,
    EndpointCandidate,
    EndpointType,
    EngineProfile,
    SelectionCriteria,
    SelectionMode,
)
from .selector import fetch_resource_detail, resolve_endpoint, select_candidate
from loguru import logger
from pydantic import BaseModel, ConfigDict, SecretStr
from typing import Callable, List, Optional


class ResolutionContext(BaseModel):
    """State accumulated by the pipeline; each stage returns an extended copy."""

    model_config = ConfigDict(frozen=True)

    criteria: SelectionCriteria
    auth_request: AuthRequest
    candidates: List[EndpointCandidate] = []
    candidate: Optional[EndpointCandidate] = None
    resource: Optional[DatabaseResource] = None
    endpoint: Optional[str] = None
    profile: Optional[EngineProfile] = None
    auth: Optional[AuthContext] = None

    def extend(self, **values) -> 'ResolutionContext':
        """Return a copy with more fields resolved."""
        return self.model_copy(update=values)

    def to_target(self) -> ConnectionTarget:
        """Build the launcher input once every stage has run."""
        return ConnectionTarget(
            profile=self.profile,
            identifier=self.resource.identifier,
            endpoint=self.endpoint,
            port=self.resource.port or self.profile.default_port,
            database=self.resource.database_name or self.profile.default_database,
            auth=self.auth,
        )


def discover_candidates(context: ResolutionContext) -> ResolutionContext:
    """Query the inventory and expand it into selectable entries."""
    criteria = context.criteria
    resources = discover(criteria)
    if criteria.mode == SelectionMode.STRICT:
        # one entry per resource; a missing reader endpoint falls back to the writer
        candidates = build_candidates(
            resources, criteria.endpoint_type or EndpointType.READER, reader_fallback=True
        )
    else:
        # an endpoint type only applies to clusters, so instances are not offered
        candidates = build_candidates(
            resources,
            criteria.endpoint_type,
            include_instances=criteria.endpoint_type is None,
        )
    return context.extend(candidates=candidates)


def choose_resource(
    context: ResolutionContext,
    prompt: Callable[[str], str] = input,
    output: Callable[[str], None] = write_stderr,
) -> ResolutionContext:
    """Select one entry, then fetch the resource detail and its endpoint."""
    candidate = select_candidate(
        context.candidates, context.criteria, prompt=prompt, output=output
    )
    resource = fetch_resource_detail(candidate)
    endpoint = resolve_endpoint(resource, candidate, context.criteria)
    return context.extend(candidate=candidate, resource=resource, endpoint=endpoint)


def assign_profile(context: ResolutionContext) -> ResolutionContext:
    """Look up the engine profile before any credential is resolved."""
    profile = profile_for(context.resource.engine)
    database = context.resource.database_name or profile.default_database
    port = context.resource.port or profile.default_port
    logger.info(f'Found {profile.display_name} database: {context.endpoint}:{port}/{database}')
    return context.extend(profile=profile)


def ensure_manual_password(
    request: AuthRequest, password_prompt: Callable[[str], str] = getpass.getpass
) -> AuthRequest:
    """Ask for a password without echo when manual auth has none yet."""
    if request.method != AuthMethod.MANUAL or request.password is not None:
        return request

    password = password_prompt('Database password: ')
    if not password:
        raise MissingPasswordError(ERROR_MISSING_PASSWORD)
    return request.model_copy(update={'password': SecretStr(password)})


def authenticate(
    context: ResolutionContext, password_prompt: Callable[[str], str] = getpass.getpass
) -> ResolutionContext:
    """Resolve credentials for the chosen resource."""
    request = ensure_manual_password(context.auth_request, password_prompt=password_prompt)
    auth = resolve_credentials(context.resource, context.endpoint, request)
    return context.extend(auth_request=request, auth=auth)


def resolve_target(
    criteria: SelectionCriteria,
    auth_request: AuthRequest,
    prompt: Callable[[str], str] = input,
    output: Callable[[str], None] = write_stderr,
    password_prompt: Callable[[str], str] = getpass.getpass,
) -> ConnectionTarget:
    """Run discovery, selection, profile lookup and credential resolution.

    Args:
        criteria: Filter and selection policy
        auth_request: Validated authentication options
        prompt: Reads the interactive selection
        output: Writes the interactive menu
        password_prompt: Reads a password without echo

    Returns:
        ConnectionTarget: Everything the launcher needs
    """
    context = ResolutionContext(criteria=criteria, auth_request=auth_request)
    context = discover_candidates(context)
    context = choose_resource(context, prompt=prompt, output=output)
    context = assign_profile(context)
    context = authenticate(context, password_prompt=password_prompt)
    return context.to_target()

# /*
# Copyright 2026 The Pipeline Reconciler Authors.
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
# */

"""Desired-state models and API payloads."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic.alias_generators import to_camel

from pipeline_reconciler.constants import (
    PROVIDER_AMAZON,
    PROVIDER_AZURE,
    PROVIDER_GOOGLE,
    STATE_CREATED,
    STATE_DELETED,
)


class DesiredState(str, Enum):
    """Create/delete intent declared for a resource."""

    CREATED = STATE_CREATED
    DELETED = STATE_DELETED


class _WireModel(BaseModel):
    """Immutable model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
    )


# ============================================================================
# Provider payloads
# ============================================================================

class AmazonNodePool(_WireModel):
    instance_type: str = Field(min_length=1)
    spot_price: str = ""
    min_count: int = Field(default=1, ge=0)
    max_count: int = Field(default=1, ge=0)
    image: str = ""

    @model_validator(mode="after")
    def _check_counts(self) -> AmazonNodePool:
        if self.min_count > self.max_count:
            raise ValueError(f"minCount ({self.min_count}) exceeds maxCount ({self.max_count})")
        return self


class AmazonMaster(_WireModel):
    instance_type: str = Field(min_length=1)
    image: str = ""


class AmazonProperties(_WireModel):
    """Amazon cluster properties: node pools plus a master instance."""

    provider: Literal["amazon"] = PROVIDER_AMAZON
    node_pools: dict[str, AmazonNodePool] = Field(min_length=1)
    master: AmazonMaster


class AzureNodePool(_WireModel):
    count: int = Field(default=1, ge=1)
    instance_type: str = Field(min_length=1, alias="nodeInstanceType")


class AzureProperties(_WireModel):
    """Azure cluster properties."""

    provider: Literal["azure"] = PROVIDER_AZURE
    resource_group: str = Field(min_length=1)
    kubernetes_version: str = Field(min_length=1)
    node_pools: dict[str, AzureNodePool] = Field(min_length=1)


class GoogleNodePool(_WireModel):
    count: int = Field(default=1, ge=1)
    instance_type: str = Field(min_length=1, alias="nodeInstanceType")
    service_account: str = ""


class GoogleMaster(_WireModel):
    version: str = Field(min_length=1)


class GoogleProperties(_WireModel):
    """Google (GKE) cluster properties."""

    provider: Literal["google"] = PROVIDER_GOOGLE
    project: str = Field(min_length=1)
    node_version: str = Field(min_length=1)
    master: GoogleMaster
    node_pools: dict[str, GoogleNodePool] = Field(min_length=1)


ProviderProperties = Annotated[
    Union[AmazonProperties, AzureProperties, GoogleProperties],
    Field(discriminator="provider"),
]


# ============================================================================
# Desired state
# ============================================================================

class ClusterSpec(_WireModel):
    """Desired state of the cluster.

    Attributes:
        name: Cluster name, unique within the organization.
        location: Provider region or zone.
        secret_id: Id of the cloud credentials secret stored by the API.
        profile_name: Optional cluster profile to create the cluster from.
        state: Whether the cluster should exist.
        properties: Provider payload; exactly one provider variant.
    """

    name: str = Field(min_length=1)
    location: str = Field(min_length=1)
    secret_id: str = ""
    profile_name: str = ""
    state: DesiredState = DesiredState.CREATED
    properties: ProviderProperties

    @property
    def cloud(self) -> str:
        return self.properties.provider

    def request_payload(self) -> dict[str, Any]:
        """Build the create-cluster request body."""
        payload: dict[str, Any] = {
            "name": self.name,
            "location": self.location,
            "cloud": self.cloud,
            "secretId": self.secret_id,
            "properties": {
                self.cloud: self.properties.model_dump(by_alias=True, exclude={"provider"}),
            },
        }
        if self.profile_name:
            payload["profileName"] = self.profile_name
        return payload


class DeploymentSpec(BaseModel):
    """Desired state of the application deployment.

    An empty ``name`` disables deployment reconciliation entirely.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = ""
    release_name: str = ""
    state: DesiredState = DesiredState.CREATED
    values: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_release(self) -> DeploymentSpec:
        if self.name and not self.release_name:
            raise ValueError("release_name is required when a deployment name is set")
        return self

    @property
    def enabled(self) -> bool:
        return bool(self.name)

    def request_payload(self) -> dict[str, Any]:
        """Build the install-deployment request body."""
        return {
            "name": self.name,
            "releasename": self.release_name,
            "state": self.state.value,
            "values": self.values,
        }


# ============================================================================
# API responses
# ============================================================================

class Organization(BaseModel):
    id: int
    name: str


class ClusterConfigResponse(BaseModel):
    """Body of the cluster credentials endpoint."""

    status: int = 0
    data: str = ""


ORGANIZATIONS = TypeAdapter(list[Organization])

# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
The ECS Cluster, its capacity provider and the cluster identifier.

The identifier is generated once, and then reused from the existing stack parameters
so that updates never rename the cluster.
"""

from __future__ import annotations

import re
import secrets
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_devcluster.common.settings import DevClusterSettings

from troposphere import GetAtt, Output, Ref
from troposphere.ecs import (
    AutoScalingGroupProvider,
    CapacityProvider,
    CapacityProviderStrategyItem,
    Cluster,
    ClusterSetting,
)

from ecs_devcluster.common import add_outputs, add_parameters
from ecs_devcluster.common.aws import get_stack_parameter
from ecs_devcluster.common.logging import LOG
from ecs_devcluster.ecs.ecs_params import (
    CAPACITY_PROVIDER_T,
    CLUSTER_NAME,
    CLUSTER_NAME_T,
    CLUSTER_T,
)
from ecs_devcluster.ecs_cluster.ecs_cluster_params import (
    DEFAULT_CLUSTER_BASE_NAME,
    IDENTIFIER_ALPHABET,
    IDENTIFIER_SUFFIX_LENGTH,
    PROVIDER_BASE,
    PROVIDER_WEIGHT,
)


def generate_cluster_identifier(
    base_name: str = DEFAULT_CLUSTER_BASE_NAME, length: int = IDENTIFIER_SUFFIX_LENGTH
) -> str:
    """
    Generates a new cluster name, with a random lowercase alphanumeric suffix

    :param str base_name:
    :param int length: length of the random suffix
    :return: the cluster name, i.e. dev-cluster-a1b2c3
    :rtype: str
    """
    if length < 1:
        raise ValueError("The suffix length must be at least 1. Got", length)
    suffix = "".join(secrets.choice(IDENTIFIER_ALPHABET) for _ in range(length))
    return f"{base_name}-{suffix}"


def validate_cluster_identifier(
    name: str,
    base_name: str = DEFAULT_CLUSTER_BASE_NAME,
    length: int = IDENTIFIER_SUFFIX_LENGTH,
) -> str:
    """
    Checks the cluster name is a base name followed by the random suffix.

    :param str name:
    :param str base_name:
    :param int length:
    :return: the name
    :raises ValueError: when the name does not match
    """
    if not isinstance(name, str):
        raise TypeError("Cluster name must be a string. Got", type(name))
    pattern = re.compile(rf"^{re.escape(base_name)}-[a-z0-9]{{{length}}}$")
    if not pattern.match(name):
        raise ValueError(
            f"Cluster name {name} does not match the expected pattern", pattern.pattern
        )
    return name


def resolve_cluster_identifier(settings: DevClusterSettings) -> str:
    """
    Defines the cluster name to use for this deployment and sets it on the settings.
    An explicitly set name wins, then the one of the existing stack, and lastly a new one is generated.

    :param ecs_devcluster.common.settings.DevClusterSettings settings:
    :return: the cluster name
    :rtype: str
    """
    base_name = settings.cluster_base_name
    if settings.cluster_name:
        LOG.info(f"Using cluster name {settings.cluster_name}")
        return validate_cluster_identifier(settings.cluster_name, base_name)
    if settings.requires_stack_lookup:
        existing_name = get_stack_parameter(
            settings.session, settings.name, CLUSTER_NAME_T
        )
        if existing_name:
            LOG.info(
                f"Stack {settings.name} exists. Reusing cluster name {existing_name}"
            )
            settings.cluster_name = validate_cluster_identifier(
                existing_name, base_name
            )
            return settings.cluster_name
    settings.cluster_name = generate_cluster_identifier(base_name)
    LOG.info(f"Generated new cluster name {settings.cluster_name}")
    return settings.cluster_name


def add_capacity_provider(template, asg):
    """
    Capacity provider that binds the hosts Auto Scaling Group to the cluster.
    The ASG scaling is done by its own policy, so ECS managed scaling is disabled.

    :param troposphere.Template template:
    :param troposphere.autoscaling.AutoScalingGroup asg:
    :rtype: troposphere.ecs.CapacityProvider
    """
    provider = CapacityProvider(
        CAPACITY_PROVIDER_T,
        template=template,
        AutoScalingGroupProvider=AutoScalingGroupProvider(
            AutoScalingGroupArn=Ref(asg),
            ManagedTerminationProtection="DISABLED",
        ),
    )
    add_outputs(template, [Output(CAPACITY_PROVIDER_T, Value=Ref(provider))])
    return provider


def add_ecs_cluster(template, provider):
    """
    Function to create the ECS Cluster, named after the cluster name parameter and
    using the capacity provider by default.

    :param troposphere.Template template:
    :param troposphere.ecs.CapacityProvider provider:
    :rtype: troposphere.ecs.Cluster
    """
    add_parameters(template, [CLUSTER_NAME])
    cluster = Cluster(
        CLUSTER_T,
        template=template,
        ClusterName=Ref(CLUSTER_NAME),
        CapacityProviders=[Ref(provider)],
        DefaultCapacityProviderStrategy=[
            CapacityProviderStrategyItem(
                CapacityProvider=Ref(provider),
                Weight=PROVIDER_WEIGHT,
                Base=PROVIDER_BASE,
            )
        ],
        ClusterSettings=[ClusterSetting(Name="containerInsights", Value="disabled")],
    )
    add_outputs(
        template,
        [
            Output(f"{CLUSTER_T}Name", Value=Ref(cluster)),
            Output(f"{CLUSTER_T}Arn", Value=GetAtt(cluster, "Arn")),
        ],
    )
    return cluster

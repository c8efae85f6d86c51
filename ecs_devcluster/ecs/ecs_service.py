# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Functions to build the ECS Service Definition
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_devcluster.common.settings import DevClusterSettings

from compose_x_common.compose_x_common import set_else_none
from troposphere import GetAtt, Output, Ref
from troposphere.ecs import (
    CapacityProviderStrategyItem,
    DeploymentConfiguration,
    PlacementStrategy,
)
from troposphere.ecs import Service as EcsService

from ecs_devcluster.common import add_outputs
from ecs_devcluster.common.logging import LOG
from ecs_devcluster.ecs import metadata
from ecs_devcluster.ecs.ecs_params import HOST_NETWORK_MODE, SERVICE_T, SPREAD_FIELD
from ecs_devcluster.ecs_cluster.ecs_cluster_params import PROVIDER_BASE, PROVIDER_WEIGHT

DEFAULT_MINIMUM_HEALTHY_PERCENT = 0
DEFAULT_MAXIMUM_PERCENT = 100


def define_placement_strategies():
    """
    Function to generate placement strategies. Spreads the tasks across the hosts

    :return: list of placement strategies
    :rtype: list
    """
    return [PlacementStrategy(Field=SPREAD_FIELD, Type="spread")]


def define_capacity_provider_strategy(provider):
    return [
        CapacityProviderStrategyItem(
            CapacityProvider=Ref(provider), Weight=PROVIDER_WEIGHT, Base=PROVIDER_BASE
        )
    ]


def define_deployment_options(
    minimum_healthy_percent=DEFAULT_MINIMUM_HEALTHY_PERCENT,
    maximum_percent=DEFAULT_MAXIMUM_PERCENT,
):
    """
    Function to define the DeploymentConfiguration.
    Defaults stop the running task before starting its replacement.

    :param int minimum_healthy_percent:
    :param int maximum_percent:
    :rtype: troposphere.ecs.DeploymentConfiguration
    """
    return DeploymentConfiguration(
        MinimumHealthyPercent=minimum_healthy_percent,
        MaximumPercent=maximum_percent,
    )


def assert_single_task_per_host(
    network_mode: str,
    maximum_percent: int,
    desired_count: int,
    max_hosts: int,
    minimum_healthy_percent: int = DEFAULT_MINIMUM_HEALTHY_PERCENT,
) -> None:
    """
    With host networking, two tasks of the service cannot bind the same port on one host.
    Checks that neither the steady state nor a rolling deployment can require more tasks
    than there are hosts, and that a rollout can always stop a task to make room for its replacement.

    :param str network_mode:
    :param int maximum_percent: deployment maximum percent
    :param int desired_count:
    :param int max_hosts: maximum number of hosts in the cluster
    :param int minimum_healthy_percent: deployment minimum healthy percent
    :raises ValueError:
    """
    if network_mode != HOST_NETWORK_MODE:
        LOG.debug(f"Network mode {network_mode} does not bind host ports")
        return
    if desired_count < 0 or max_hosts < 1:
        raise ValueError(
            "DesiredCount must be positive and there must be at least one host. Got",
            desired_count,
            max_hosts,
        )
    peak_tasks = max(desired_count, math.floor(desired_count * maximum_percent / 100))
    if peak_tasks > max_hosts:
        raise ValueError(
            f"With {HOST_NETWORK_MODE} networking, up to {peak_tasks} tasks could run"
            f" (DesiredCount {desired_count}, MaximumPercent {maximum_percent})"
            f" but there are at most {max_hosts} hosts"
        )
    kept_tasks = math.ceil(desired_count * minimum_healthy_percent / 100)
    if desired_count and peak_tasks <= desired_count and kept_tasks >= desired_count:
        raise ValueError(
            f"MinimumHealthyPercent {minimum_healthy_percent} and MaximumPercent {maximum_percent}"
            " leave no room to replace a task whilst the old one holds the host port"
        )


def add_service(template, settings: DevClusterSettings, cluster, provider, task_definition):
    """
    Adds the ECS Service that keeps the task running on the cluster, through the capacity provider.

    :param troposphere.Template template:
    :param ecs_devcluster.common.settings.DevClusterSettings settings:
    :param troposphere.ecs.Cluster cluster:
    :param troposphere.ecs.CapacityProvider provider:
    :param troposphere.ecs.TaskDefinition task_definition:
    :rtype: troposphere.ecs.Service
    """
    service_config = settings.service
    minimum_healthy_percent = set_else_none(
        "MinimumHealthyPercent",
        service_config,
        alt_value=DEFAULT_MINIMUM_HEALTHY_PERCENT,
    )
    maximum_percent = set_else_none(
        "MaximumPercent", service_config, alt_value=DEFAULT_MAXIMUM_PERCENT
    )
    assert_single_task_per_host(
        task_definition.NetworkMode,
        maximum_percent,
        service_config["DesiredCount"],
        settings.compute["MaxCapacity"],
        minimum_healthy_percent=minimum_healthy_percent,
    )
    service = EcsService(
        SERVICE_T,
        template=template,
        Cluster=Ref(cluster),
        ServiceName=service_config["Name"],
        TaskDefinition=Ref(task_definition),
        DesiredCount=service_config["DesiredCount"],
        CapacityProviderStrategy=define_capacity_provider_strategy(provider),
        PlacementStrategies=define_placement_strategies(),
        DeploymentConfiguration=define_deployment_options(
            minimum_healthy_percent, maximum_percent
        ),
        EnableECSManagedTags=True,
        PropagateTags="SERVICE",
        Metadata=metadata,
    )
    add_outputs(
        template, [Output(f"{SERVICE_T}Name", Value=GetAtt(service, "Name"))]
    )
    return service

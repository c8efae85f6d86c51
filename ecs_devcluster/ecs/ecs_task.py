# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Task definition of the service, with its single container and log group.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_devcluster.common.settings import DevClusterSettings

from compose_x_common.compose_x_common import keyisset, set_else_none
from troposphere import AWS_REGION, Output, Ref, Sub
from troposphere.ecs import (
    ContainerDefinition,
    HealthCheck,
    LogConfiguration,
    PortMapping,
    TaskDefinition,
)
from troposphere.logs import LogGroup

from ecs_devcluster.common import add_outputs, add_parameters
from ecs_devcluster.ecs import metadata
from ecs_devcluster.ecs.docker_tools import (
    define_healthcheck_command,
    import_time_values_to_seconds,
)
from ecs_devcluster.ecs.ecs_params import (
    CLUSTER_NAME_T,
    CONTAINER_PROTOCOL,
    HOST_NETWORK_MODE,
    LOG_GROUP_RETENTION,
    LOG_GROUP_T,
    SERVICE_IMAGE,
    SERVICE_PORT,
    TASK_T,
)


def define_healthcheck(healthcheck: dict) -> HealthCheck:
    """
    Transforms the HealthCheck settings into the ECS container HealthCheck

    :param dict healthcheck:
    :rtype: troposphere.ecs.HealthCheck
    """
    if not keyisset("Command", healthcheck):
        raise KeyError("HealthCheck.Command is required")
    params = {"Command": define_healthcheck_command(healthcheck["Command"])}
    for key in ["Interval", "Timeout", "StartPeriod"]:
        if key in healthcheck:
            params[key] = import_time_values_to_seconds(healthcheck[key])
    if "Retries" in healthcheck:
        params["Retries"] = int(healthcheck["Retries"])
    return HealthCheck(**params)


def add_log_group(template):
    """
    Log group the containers logs are shipped to with awslogs

    :param troposphere.Template template:
    :rtype: troposphere.logs.LogGroup
    """
    add_parameters(template, [LOG_GROUP_RETENTION])
    return LogGroup(
        LOG_GROUP_T,
        template=template,
        LogGroupName=Sub(f"/ecs/${{{CLUSTER_NAME_T}}}"),
        RetentionInDays=Ref(LOG_GROUP_RETENTION),
    )


def define_container(service_config: dict, log_group) -> ContainerDefinition:
    """
    Defines the service container. Memory is both the soft and hard limit by default, and the
    container listens on the service port, bound to the same port on the host.

    :param dict service_config: the Service settings
    :param troposphere.logs.LogGroup log_group:
    :rtype: troposphere.ecs.ContainerDefinition
    """
    memory = service_config["Memory"]
    reservation = set_else_none("MemoryReservation", service_config, alt_value=memory)
    if reservation > memory:
        raise ValueError(
            "MemoryReservation cannot be higher than Memory. Got", reservation, memory
        )
    return ContainerDefinition(
        Name=service_config["ContainerName"],
        Image=Ref(SERVICE_IMAGE),
        Essential=True,
        Memory=memory,
        MemoryReservation=reservation,
        PortMappings=[
            PortMapping(
                ContainerPort=SERVICE_PORT,
                HostPort=SERVICE_PORT,
                Protocol=CONTAINER_PROTOCOL,
            )
        ],
        HealthCheck=define_healthcheck(service_config["HealthCheck"]),
        LogConfiguration=LogConfiguration(
            LogDriver="awslogs",
            Options={
                "awslogs-group": Ref(log_group),
                "awslogs-region": Ref(AWS_REGION),
                "awslogs-stream-prefix": service_config["Name"],
            },
        ),
    )


def add_task_definition(template, settings: DevClusterSettings) -> TaskDefinition:
    """
    Adds the EC2 task definition, in host network mode, with the service container.

    :param troposphere.Template template:
    :param ecs_devcluster.common.settings.DevClusterSettings settings:
    :rtype: troposphere.ecs.TaskDefinition
    """
    add_parameters(template, [SERVICE_IMAGE])
    log_group = add_log_group(template)
    service_config = settings.service
    task_definition = TaskDefinition(
        TASK_T,
        template=template,
        Family=service_config["Name"],
        NetworkMode=HOST_NETWORK_MODE,
        RequiresCompatibilities=["EC2"],
        ContainerDefinitions=[define_container(service_config, log_group)],
        Metadata=metadata,
    )
    add_outputs(template, [Output(f"{TASK_T}Arn", Value=Ref(task_definition))])
    return task_definition

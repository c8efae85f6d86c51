# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Parameters bound to ecs_devcluster.ecs
This is a crucial part as all the titles, maked `_T` are string which are then used the same way
across all imports, which gives consistency for CFN to use the same names,
which it heavily relies onto.

You can change the names *values* so you like so long as you keep it [a-zA-Z0-9]
"""

from ecs_devcluster.common.cfn_params import Parameter

CLUSTER_T = "EcsCluster"
CAPACITY_PROVIDER_T = "EcsCapacityProvider"
LOG_GROUP_T = "ServicesLogGroup"
SERVICE_T = "EcsServiceDefinition"
TASK_T = "EcsTaskDefinition"

ECS_CLUSTER_SETTINGS = "ECS Cluster Settings"
ECS_SERVICE_SETTINGS = "ECS Service Settings"

HOST_NETWORK_MODE = "host"
CONTAINER_PROTOCOL = "tcp"
SERVICE_PORT = 80
SPREAD_FIELD = "instanceId"

CLUSTER_NAME_T = "EcsClusterName"
CLUSTER_NAME = Parameter(
    CLUSTER_NAME_T,
    group_label=ECS_CLUSTER_SETTINGS,
    label="Name of the ECS Cluster. Must remain the same across updates",
    Type="String",
    AllowedPattern=r"^[a-z0-9-]+$",
)

SERVICE_IMAGE_T = "ServiceImage"
SERVICE_IMAGE = Parameter(
    SERVICE_IMAGE_T,
    group_label=ECS_SERVICE_SETTINGS,
    label="URI of the service container image",
    Type="String",
)

LOG_GROUP_RETENTION_T = "ServiceLogGroupRetentionPeriod"
LOG_GROUP_RETENTION = Parameter(
    LOG_GROUP_RETENTION_T,
    group_label=ECS_SERVICE_SETTINGS,
    label="Number of days to keep the containers logs for",
    Type="Number",
    Default=30,
    AllowedValues=[1, 3, 5, 7, 14, 30, 60, 90, 120, 150, 180, 365],
)

# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Workload definition and scheduling.

* Task Definition
** Single container, built from the local Dockerfile
** Host networking, fixed port
** Memory limits and health check

* Service Definition
** Capacity provider strategy
** Placement spread across instances
** Deployment limits for host port exclusivity
"""

from ecs_devcluster import __version__ as version

metadata = {
    "Type": "ECS DevCluster",
    "Properties": {
        "ecs_devcluster::module": "ecs_devcluster.ecs",
        "Version": version,
    },
}

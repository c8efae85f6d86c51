# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Most commonly used functions shared across all modules.
"""

from __future__ import annotations

import re
from datetime import datetime as dt
from datetime import timezone
from uuid import uuid4

from troposphere import Template

from ecs_devcluster.common.logging import LOG

NOW = dt.now(timezone.utc)
DATE = NOW.isoformat()
FILE_PREFIX = f'{NOW.strftime("%Y/%m/%d/%H%M")}/{str(uuid4().hex)[:6]}'
NONALPHANUM = re.compile(r"([^a-zA-Z\d]+)")


def init_template(description=None):
    """
    Function to initialize a new CFN template

    :param str description: The description of the template
    :rtype: troposphere.Template
    """
    template = Template("ECS DevCluster" if description is None else description)
    template.set_version()
    template.set_metadata({"Type": "ECS DevCluster", "GeneratedOn": DATE})
    return template


def add_parameters(template, parameters):
    """
    Adds the parameters to the template if not already present.

    :param troposphere.Template template:
    :param list parameters: list of parameters to add to the template
    """
    for param in parameters:
        if param.title in template.parameters:
            LOG.debug(f"Parameter {param.title} already in template")
            continue
        template.add_parameter(param)


def add_outputs(template, outputs):
    """
    Adds the outputs to the template if not already present.

    :param troposphere.Template template:
    :param list[troposphere.Output] outputs:
    """
    for output in outputs:
        if output.title not in template.outputs:
            template.add_output(output)

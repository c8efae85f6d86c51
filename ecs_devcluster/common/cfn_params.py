# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

""""
Common parameters for CFN
This is a crucial part as all the titles, marked `_T` are string which are then used the same way
across all imports, which gives consistency for CFN to use the same names,
which it heavily relies onto.

You can change the names *values* so you like so long as you keep it Alphanumerical [a-zA-Z0-9]
"""

from troposphere import Parameter as CfnParameter


class Parameter(CfnParameter):
    """
    Class to extend the default Parameter behaviour with grouping labels for the CFN console.
    """

    def __init__(
        self, title, return_value=None, group_label=None, label=None, **kwargs
    ):
        self.return_value = return_value
        self.group_label = group_label if group_label else "Uncategorized parameters"
        self.label = label
        super().__init__(title, **kwargs)


def set_parameters_interface(template):
    """
    Sets the AWS::CloudFormation::Interface metadata from the parameters group labels,
    so the CFN console shows them grouped.

    :param troposphere.Template template:
    """
    groups = {}
    labels = {}
    for parameter in template.parameters.values():
        if not isinstance(parameter, Parameter):
            continue
        groups.setdefault(parameter.group_label, []).append(parameter.title)
        if parameter.label:
            labels[parameter.title] = {"default": parameter.label}
    interface = {
        "ParameterGroups": [
            {"Label": {"default": label}, "Parameters": titles}
            for label, titles in groups.items()
        ],
        "ParameterLabels": labels,
    }
    template.metadata.update({"AWS::CloudFormation::Interface": interface})

# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module to create the Launch Template for the hosts and the associated security groups and
IAM Role (with Instance Profile).

The hosts register to the cluster through the ECS agent configuration file, written at boot by cloud-init.
These settings are all documented on AWS official documentation:
https://docs.aws.amazon.com/AmazonECS/latest/developerguide/ecs-agent-config.html
"""

from __future__ import annotations

from troposphere import Base64, GetAtt, Join, Output, Ref, Sub, Tags
from troposphere.ec2 import (
    IamInstanceProfile,
    LaunchTemplate,
    LaunchTemplateData,
    SecurityGroup,
    SecurityGroupEgress,
    SecurityGroupIngress,
    TagSpecifications,
)
from troposphere.iam import InstanceProfile, Role

from ecs_devcluster.common import add_outputs, add_parameters
from ecs_devcluster.compute import compute_params
from ecs_devcluster.compute.compute_params import (
    CLUSTER_SG_T,
    DEFAULT_INSTANCE_TYPE,
    ECS_CONFIG_FILE,
    ECS_RESERVED_MEMORY,
    HOST_PROFILE_T,
    HOST_ROLE_T,
    LAUNCH_TEMPLATE_T,
    NODES_SG_T,
)
from ecs_devcluster.ecs.ecs_params import CLUSTER_NAME, CLUSTER_NAME_T, SERVICE_PORT
from ecs_devcluster.iam import aws_managed_policy, service_role_trust_policy
from ecs_devcluster.vpc import vpc_params

ANYWHERE = "0.0.0.0/0"


def render_ecs_agent_config(reserved_memory: int = ECS_RESERVED_MEMORY) -> list:
    """
    Lines appended to the ECS agent configuration file of each host.

    :param int reserved_memory: MiB of memory the agent keeps away from tasks
    :return: the ECS agent settings
    :rtype: list
    """
    return [
        Sub(f"ECS_CLUSTER='${{{CLUSTER_NAME_T}}}'"),
        "ECS_ENABLE_CONTAINER_METADATA=true",
        f"ECS_RESERVED_MEMORY={reserved_memory}",
    ]


def render_user_data(reserved_memory: int = ECS_RESERVED_MEMORY) -> Base64:
    """
    cloud-init bootcmd script that appends the ECS agent settings before the agent starts

    :param int reserved_memory:
    :rtype: troposphere.Base64
    """
    commands = [
        Join("", ["  - echo ", setting, f" >> {ECS_CONFIG_FILE}"])
        for setting in render_ecs_agent_config(reserved_memory)
    ]
    return Base64(Join("\n", ["#cloud-config", "bootcmd:", *commands, ""]))


def add_hosts_profile(template):
    """
    Adds role to the template

    :parm template: ECS Cluster template to add the role and profile to
    :type template: troposphere.Template

    :returns: troposphere IAM Role for EC2 hosts
    :rtype: troposphere.iam.Role
    """
    role = Role(
        HOST_ROLE_T,
        template=template,
        AssumeRolePolicyDocument=service_role_trust_policy("ec2"),
        ManagedPolicyArns=[
            aws_managed_policy("service-role/AmazonEC2ContainerServiceforEC2Role")
        ],
    )
    InstanceProfile(
        HOST_PROFILE_T,
        template=template,
        Roles=[Ref(role)],
    )
    return role


def add_cluster_security_group(template):
    """
    Cluster level default security group. No ingress, and the VPC default all egress.

    :param troposphere.Template template:
    :rtype: troposphere.ec2.SecurityGroup
    """
    security_group = SecurityGroup(
        CLUSTER_SG_T,
        template=template,
        GroupDescription=Sub(f"Default group for ${{{CLUSTER_NAME_T}}}"),
        VpcId=Ref(vpc_params.VPC_ID),
        Tags=Tags(Name=Sub(f"${{{CLUSTER_NAME_T}}}-cluster")),
    )
    add_outputs(
        template,
        [Output(CLUSTER_SG_T, Value=GetAtt(security_group, "GroupId"))],
    )
    return security_group


def add_hosts_security_group(template):
    """
    Function to add a security group for the host. Only the service port is open, from anywhere.
    Declaring the egress rule replaces the default allow-all egress of the group.

    :parm template: ECS Cluster template to add the SG to
    :type template: troposphere.Template

    :returns: the hosts security group
    :rtype: troposphere.ec2.SecurityGroup
    """
    hosts_sg = SecurityGroup(
        NODES_SG_T,
        template=template,
        GroupDescription=Sub(f"Group for hosts in ${{{CLUSTER_NAME_T}}}"),
        VpcId=Ref(vpc_params.VPC_ID),
        Tags=Tags(Name=Sub(f"${{{CLUSTER_NAME_T}}}-hosts")),
    )
    SecurityGroupIngress(
        f"{NODES_SG_T}HttpIngress",
        template=template,
        GroupId=GetAtt(hosts_sg, "GroupId"),
        Description=f"Allow TCP/{SERVICE_PORT} from anywhere",
        IpProtocol="tcp",
        FromPort=SERVICE_PORT,
        ToPort=SERVICE_PORT,
        CidrIp=ANYWHERE,
    )
    SecurityGroupEgress(
        f"{NODES_SG_T}TcpEgress",
        template=template,
        GroupId=GetAtt(hosts_sg, "GroupId"),
        Description="Allow all TCP outbound",
        IpProtocol="tcp",
        FromPort=0,
        ToPort=65535,
        CidrIp=ANYWHERE,
    )
    return hosts_sg


def add_launch_template(
    template,
    hosts_sg,
    instance_type: str = DEFAULT_INSTANCE_TYPE,
    reserved_memory: int = ECS_RESERVED_MEMORY,
):
    """Function to create a launch template.

    :param template: ECS Cluster template
    :type template: troposphere.Template
    :param hosts_sg: security group for the EC2 hosts
    :type hosts_sg: troposphere.ec2.SecurityGroup
    :param str instance_type:
    :param int reserved_memory:

    :return: launch_template
    :rtype: troposphere.ec2.LaunchTemplate
    """
    add_parameters(template, [compute_params.ECS_AMI_ID])
    return LaunchTemplate(
        LAUNCH_TEMPLATE_T,
        template=template,
        LaunchTemplateData=LaunchTemplateData(
            ImageId=Ref(compute_params.ECS_AMI_ID),
            IamInstanceProfile=IamInstanceProfile(
                Arn=GetAtt(HOST_PROFILE_T, "Arn")
            ),
            InstanceType=instance_type,
            SecurityGroupIds=[GetAtt(hosts_sg, "GroupId")],
            TagSpecifications=[
                TagSpecifications(
                    ResourceType="instance",
                    Tags=Tags(
                        Name=Sub(f"EcsNodes-${{{CLUSTER_NAME_T}}}"),
                        StackName=Ref("AWS::StackName"),
                    ),
                )
            ],
            UserData=render_user_data(reserved_memory),
        ),
        LaunchTemplateName=Ref(CLUSTER_NAME_T),
    )


def add_hosts_resources(template, compute_config: dict = None):
    """Function to add the LaunchTemplate, SGs and IAM Profile to go along with the ECS Cluster

    :param template: the ecs_cluster template to add the hosts config to
    :type template: troposphere.Template
    :param dict compute_config: the Compute settings

    :return: launch_template
    :rtype: troposphere.ec2.LaunchTemplate
    """
    compute_config = compute_config if compute_config else {}
    add_parameters(template, [CLUSTER_NAME])
    add_cluster_security_group(template)
    hosts_sg = add_hosts_security_group(template)
    add_hosts_profile(template)
    return add_launch_template(
        template,
        hosts_sg,
        instance_type=compute_config.get("InstanceType", DEFAULT_INSTANCE_TYPE),
        reserved_memory=compute_config.get("EcsReservedMemory", ECS_RESERVED_MEMORY),
    )

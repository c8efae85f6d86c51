# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Builds the service image from the local Dockerfile and pushes it to ECR.
The image is then referenced by digest, so the task definition only changes when the image does.
"""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_devcluster.common.settings import DevClusterSettings

import docker
from docker.errors import APIError, BuildError, DockerException

from ecs_devcluster.common.logging import LOG
from ecs_devcluster.exceptions import ImageBuildError


def ensure_repository(repository_name: str, session) -> str:
    """
    Returns the URI of the ECR repository, creating it if it does not exist.

    :param str repository_name:
    :param boto3.session.Session session:
    :return: the repository URI
    :rtype: str
    """
    client = session.client("ecr")
    try:
        repository = client.describe_repositories(repositoryNames=[repository_name])[
            "repositories"
        ][0]
        LOG.debug(f"ECR repository {repository_name} found")
    except client.exceptions.RepositoryNotFoundException:
        LOG.info(f"Creating ECR repository {repository_name}")
        repository = client.create_repository(
            repositoryName=repository_name,
            imageTagMutability="MUTABLE",
            imageScanningConfiguration={"scanOnPush": True},
        )["repository"]
    return repository["repositoryUri"]


def get_registry_auth(session) -> dict:
    """
    Decodes the ECR authorization token into the docker auth config

    :param boto3.session.Session session:
    :rtype: dict
    """
    client = session.client("ecr")
    auth_data = client.get_authorization_token()["authorizationData"][0]
    username, password = (
        base64.b64decode(auth_data["authorizationToken"]).decode().split(":", 1)
    )
    return {
        "username": username,
        "password": password,
        "registry": auth_data["proxyEndpoint"],
    }


def build_image(client, build_context: str, dockerfile: str, image_ref: str):
    """
    Builds the image with the docker engine

    :param docker.DockerClient client:
    :param str build_context: path to the build context
    :param str dockerfile: path of the Dockerfile, relative to the build context
    :param str image_ref: repository:tag to tag the image with
    :raises ImageBuildError:
    """
    LOG.info(f"Building {image_ref} from {build_context}/{dockerfile}")
    try:
        image, logs = client.images.build(
            path=build_context, dockerfile=dockerfile, tag=image_ref, rm=True
        )
    except (BuildError, APIError) as error:
        raise ImageBuildError(f"Failed to build {image_ref}", str(error))
    for chunk in logs:
        if "stream" in chunk and chunk["stream"].strip():
            LOG.debug(chunk["stream"].strip())
    return image


def push_image(client, repository_uri: str, tag: str, auth_config: dict):
    """
    Pushes the image and returns the digest reported by the registry

    :param docker.DockerClient client:
    :param str repository_uri:
    :param str tag:
    :param dict auth_config:
    :return: the image digest, None if the registry did not report one
    :rtype: str
    :raises ImageBuildError:
    """
    LOG.info(f"Pushing {repository_uri}:{tag}")
    digest = None
    try:
        for line in client.images.push(
            repository_uri, tag=tag, auth_config=auth_config, stream=True, decode=True
        ):
            if "error" in line:
                raise ImageBuildError(
                    f"Failed to push {repository_uri}:{tag}", line["error"]
                )
            if "aux" in line and "Digest" in line["aux"]:
                digest = line["aux"]["Digest"]
    except APIError as error:
        raise ImageBuildError(f"Failed to push {repository_uri}:{tag}", str(error))
    if not digest:
        LOG.warning(f"No digest returned for {repository_uri}:{tag}. Using the tag")
    return digest


def define_image_uri(repository_uri: str, tag: str, digest: str = None) -> str:
    if digest:
        return f"{repository_uri}@{digest}"
    return f"{repository_uri}:{tag}"


def build_and_push_image(settings: DevClusterSettings, docker_client=None) -> str:
    """
    Function entrypoint to build and push the service image, and set the image URI on the settings.

    :param ecs_devcluster.common.settings.DevClusterSettings settings:
    :param docker.DockerClient docker_client: override the client from the environment
    :return: the image URI, by digest
    :rtype: str
    """
    image_config = settings.image
    repository_uri = ensure_repository(image_config["Repository"], settings.session)
    tag = image_config["Tag"]
    if docker_client is None:
        try:
            docker_client = docker.from_env()
        except DockerException as error:
            raise ImageBuildError("Failed to connect to the docker engine", str(error))
    build_image(
        docker_client,
        image_config["BuildContext"],
        image_config["Dockerfile"],
        f"{repository_uri}:{tag}",
    )
    digest = push_image(
        docker_client, repository_uri, tag, get_registry_auth(settings.session)
    )
    settings.image_uri = define_image_uri(repository_uri, tag, digest)
    LOG.info(f"Service image set to {settings.image_uri}")
    return settings.image_uri

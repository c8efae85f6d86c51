# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Files written by ECS DevCluster (template and parameters), on disk and in S3.
"""

from __future__ import annotations

import json
from os import makedirs
from os.path import abspath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_devcluster.common.settings import DevClusterSettings

import yaml
from botocore.exceptions import ClientError
from troposphere import Template

from ecs_devcluster.common import FILE_PREFIX
from ecs_devcluster.common.logging import LOG

JSON_MIME = "application/json"
YAML_MIME = "application/x-yaml"
MIME_TYPES = {"json": JSON_MIME, "yaml": YAML_MIME}


def upload_file(body: str, bucket_name: str, key: str, settings, mime: str) -> str:
    """
    Stores the file in S3, server side encrypted, under the date prefix

    :param str body:
    :param str bucket_name:
    :param str key: object key, relative to the date prefix
    :param ecs_devcluster.common.settings.DevClusterSettings settings:
    :param str mime:
    :return: the https URL of the object, as CloudFormation expects TemplateURL
    :rtype: str
    """
    full_key = f"{FILE_PREFIX}/{key}"
    settings.session.client("s3").put_object(
        Body=body,
        Key=full_key,
        Bucket=bucket_name,
        ContentEncoding="utf-8",
        ContentType=mime,
        ServerSideEncryption="AES256",
    )
    return f"https://s3.amazonaws.com/{bucket_name}/{full_key}"


class FileArtifact:
    """
    A rendered template or parameters file.

    :ivar str file_name: name with the format extension, i.e. dev.json
    :ivar str file_path: path in the output directory
    :ivar str body: the rendered content
    :ivar str url: S3 URL, once uploaded
    """

    def __init__(
        self,
        file_name: str,
        settings: DevClusterSettings,
        file_format: str = None,
        template: Template = None,
        content=None,
    ):
        if file_format is None:
            file_format = settings.format
        if file_format not in MIME_TYPES:
            raise ValueError(
                "file_format must be one of",
                list(MIME_TYPES.keys()),
                "got",
                file_format,
            )
        if template is not None and not isinstance(template, Template):
            raise TypeError("template must be of type", Template, "got", type(template))
        if template is None and not isinstance(content, (dict, list, str)):
            raise TypeError(
                "content must be of type", dict, list, str, "got", type(content)
            )
        self.template = template
        self.content = content
        self.mime = MIME_TYPES[file_format]
        self.file_name = f"{file_name}.{file_format}"
        self.file_path = f"{settings.output_dir}/{self.file_name}"
        self.url = None
        self.body = self.define_body()

    def __repr__(self):
        return self.file_path

    def define_body(self) -> str:
        if self.template is not None:
            return (
                self.template.to_yaml()
                if self.mime == YAML_MIME
                else self.template.to_json()
            )
        if isinstance(self.content, str):
            return self.content
        if self.mime == YAML_MIME:
            return yaml.safe_dump(self.content, default_flow_style=False)
        return json.dumps(self.content, indent=4)

    def write(self, settings: DevClusterSettings):
        makedirs(settings.output_dir, exist_ok=True)
        with open(self.file_path, "w") as file_fd:
            file_fd.write(self.body)
        LOG.info(f"{self.file_name} written at {abspath(self.file_path)}")

    def upload(self, settings: DevClusterSettings):
        self.url = upload_file(
            self.body, settings.bucket_name, self.file_name, settings, self.mime
        )
        LOG.info(f"{self.file_name} uploaded to {self.url}")

    def validate(self, settings: DevClusterSettings):
        """
        Has CloudFormation validate the uploaded template. On failure, the template is
        kept at /tmp/<name>.<format> for inspection and the error raised again.

        :raises ValueError: if the file was not uploaded yet
        """
        if not self.url:
            raise ValueError(f"{self.file_name} must be uploaded to S3 to be validated")
        try:
            settings.session.client("cloudformation").validate_template(
                TemplateURL=self.url
            )
        except ClientError as error:
            LOG.error(error)
            failed_path = f"/tmp/{settings.name}.{settings.format}"
            with open(failed_path, "w") as failed_fd:
                failed_fd.write(self.body)
            LOG.error(f"Template failing validation written at {failed_path}")
            raise
        LOG.debug(f"{self.file_name} validated by CloudFormation")

import logging
from typing import BinaryIO

import boto3
from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from tilefetch.errors import UnexpectedStatusError, wrap_connectivity_error

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _status_code(error: ClientError) -> int:
    return int(error.response.get("ResponseMetadata", {}).get("HTTPStatusCode") or 0)


class S3Client:
    def __init__(
        self,
        bucket: str,
        region: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        role_arn: str | None = None,
        endpoint: str | None = None,
    ):
        self.bucket: str = bucket
        self.region: str | None = region
        self.access_key_id: str | None = access_key_id
        self.secret_access_key: str | None = secret_access_key
        self.role_arn: str | None = role_arn
        self.endpoint: str | None = endpoint
        self._client = None

    def _credentials(self) -> dict[str, str]:
        credentials: dict[str, str] = {}
        if self.access_key_id and self.secret_access_key:
            credentials = {
                "aws_access_key_id": self.access_key_id,
                "aws_secret_access_key": self.secret_access_key,
            }
        if not self.role_arn:
            return credentials
        sts = boto3.client("sts", region_name=self.region, **credentials)
        assumed = sts.assume_role(RoleArn=self.role_arn, RoleSessionName="tilefetch")["Credentials"]
        return {
            "aws_access_key_id": assumed["AccessKeyId"],
            "aws_secret_access_key": assumed["SecretAccessKey"],
            "aws_session_token": assumed["SessionToken"],
        }

    @property
    def client(self):
        if self._client is None:
            kwargs = {"region_name": self.region, "config": Config(signature_version="s3v4")}
            if self.endpoint:
                kwargs["endpoint_url"] = self.endpoint
            self._client = boto3.client("s3", **kwargs, **self._credentials())
        return self._client

    def exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in NOT_FOUND_CODES:
                return False
            raise UnexpectedStatusError(_status_code(e), f"HEAD s3://{self.bucket}/{key}") from e
        except BotoCoreError as e:
            raise wrap_connectivity_error(e, f"HEAD s3://{self.bucket}/{key} failed")
        return True

    def list_keys(self, prefix: str) -> list[str]:
        keys: list[str] = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))
        except ClientError as e:
            raise UnexpectedStatusError(_status_code(e), f"LIST s3://{self.bucket}/{prefix}") from e
        except BotoCoreError as e:
            raise wrap_connectivity_error(e, f"LIST s3://{self.bucket}/{prefix} failed")
        return keys

    def download(self, key: str, file: BinaryIO, concurrency: int) -> None:
        transfer_config = TransferConfig(max_concurrency=concurrency, use_threads=concurrency > 1)
        try:
            self.client.download_fileobj(Bucket=self.bucket, Key=key, Fileobj=file, Config=transfer_config)
        except ClientError as e:
            raise UnexpectedStatusError(_status_code(e), f"GET s3://{self.bucket}/{key}") from e
        except BotoCoreError as e:
            raise wrap_connectivity_error(e, f"GET s3://{self.bucket}/{key} failed")

    def upload(self, key: str, file: BinaryIO) -> None:
        try:
            self.client.upload_fileobj(Fileobj=file, Bucket=self.bucket, Key=key)
        except ClientError as e:
            raise UnexpectedStatusError(_status_code(e), f"PUT s3://{self.bucket}/{key}") from e
        except BotoCoreError as e:
            raise wrap_connectivity_error(e, f"PUT s3://{self.bucket}/{key} failed")

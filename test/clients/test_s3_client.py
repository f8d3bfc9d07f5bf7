import io

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from unittest.mock import MagicMock, patch

from tilefetch.clients.s3_client import S3Client
from tilefetch.errors import ConnectivityError, UnexpectedStatusError


def client_error(code: str, status: int) -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": code}, "ResponseMetadata": {"HTTPStatusCode": status}},
        "HeadObject",
    )


@pytest.fixture
def s3():
    client = S3Client(bucket="releases", region="us-west-1")
    client._client = MagicMock()
    return client


@pytest.mark.parametrize("code", ["404", "NoSuchKey", "NotFound"])
def test_exists_not_found(s3, code):
    s3.client.head_object.side_effect = client_error(code, 404)
    assert s3.exists("bpm/bpm-1.0.0.tgz") is False


def test_exists(s3):
    assert s3.exists("bpm/bpm-1.0.0.tgz") is True
    s3.client.head_object.assert_called_once_with(Bucket="releases", Key="bpm/bpm-1.0.0.tgz")


def test_exists_forbidden(s3):
    s3.client.head_object.side_effect = client_error("403", 403)
    with pytest.raises(UnexpectedStatusError) as exc:
        s3.exists("bpm/bpm-1.0.0.tgz")
    assert exc.value.status_code == 403


def test_exists_endpoint_unreachable(s3):
    s3.client.head_object.side_effect = EndpointConnectionError(endpoint_url="https://s3.example.com")
    with pytest.raises(ConnectivityError):
        s3.exists("bpm/bpm-1.0.0.tgz")


def test_list_keys_paginates(s3):
    paginator = MagicMock()
    paginator.paginate.return_value = [
        {"Contents": [{"Key": "bpm/bpm-1.0.0.tgz"}]},
        {"Contents": [{"Key": "bpm/bpm-1.1.0.tgz"}]},
        {},
    ]
    s3.client.get_paginator.return_value = paginator
    assert s3.list_keys("bpm/") == ["bpm/bpm-1.0.0.tgz", "bpm/bpm-1.1.0.tgz"]
    paginator.paginate.assert_called_once_with(Bucket="releases", Prefix="bpm/")


def test_download_uses_concurrency(s3):
    s3.download("bpm/bpm-1.0.0.tgz", io.BytesIO(), 7)
    transfer_config = s3.client.download_fileobj.call_args.kwargs["Config"]
    assert transfer_config.max_concurrency == 7


def test_client_assumes_role():
    client = S3Client(bucket="releases", region="us-west-1", role_arn="arn:aws:iam::1:role/r")
    sts = MagicMock()
    sts.assume_role.return_value = {
        "Credentials": {"AccessKeyId": "id", "SecretAccessKey": "secret", "SessionToken": "token"}
    }
    with patch("tilefetch.clients.s3_client.boto3.client", side_effect=[sts, MagicMock()]) as boto_client:
        client.client
    s3_kwargs = boto_client.call_args_list[1].kwargs
    assert boto_client.call_args_list[1].args == ("s3",)
    assert s3_kwargs["aws_session_token"] == "token"

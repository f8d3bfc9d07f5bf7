from pydantic import ConfigDict
from pydantic.dataclasses import dataclass

SOURCE_TYPE_S3 = "s3"
SOURCE_TYPE_BOSH_IO = "bosh.io"
SOURCE_TYPE_ARTIFACTORY = "artifactory"
SOURCE_TYPE_GITHUB = "github"


@dataclass(frozen=True, config=ConfigDict(coerce_numbers_to_str=True))
class ReleaseSourceConfig:
    type: str
    id: str | None = None
    publishable: bool = False
    path_template: str | None = None

    # s3
    bucket: str | None = None
    region: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None
    role_arn: str | None = None
    endpoint: str | None = None

    # artifactory
    artifactory_host: str | None = None
    repo: str | None = None
    username: str | None = None
    password: str | None = None

    # github
    org: str | None = None
    github_token: str | None = None

    # bosh.io
    server_uri: str | None = None

    @property
    def effective_id(self) -> str:
        if self.id:
            return self.id
        match self.type:
            case "s3":
                return self.bucket or ""
            case "github":
                return self.org or ""
            case "bosh.io" | "artifactory":
                return self.type
            case _:
                return ""

# pkgregistry/domain/secret_store.py
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.config import Settings
from ..core.errors import StoreError


class SecretStore:
    def get_secret(self, name: str) -> Optional[str]:
        raise NotImplementedError


@dataclass
class SettingsSecretStore(SecretStore):
    """Secrets taken from configuration; an empty value means no credential."""
    values: Dict[str, str] = field(default_factory=dict)

    def get_secret(self, name: str) -> Optional[str]:
        return self.values.get(name) or None


@dataclass
class AwsSecretStore(SecretStore):
    region: str | None = None
    client: Any = None

    def __post_init__(self):
        if self.client is None:
            self.client = boto3.client("secretsmanager", region_name=self.region)

    def get_secret(self, name: str) -> Optional[str]:
        try:
            data = self.client.get_secret_value(SecretId=name)
        except (BotoCoreError, ClientError) as e:
            raise StoreError(f"failed to retrieve secret {name}: {e}")
        raw = data.get("SecretString")
        if not raw:
            raise StoreError(f"secret {name} has no SecretString")
        # stored either as a bare token or as {"token": ...} / {name: ...}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return raw
        if isinstance(parsed, dict):
            token = parsed.get("token") or parsed.get(name)
            if not token:
                raise StoreError(f"secret {name} does not contain 'token' or '{name}'")
            return token
        return raw


def build_secret_store(s: Settings) -> SecretStore:
    if s.SECRET_BACKEND == "settings":
        return SettingsSecretStore({s.GITHUB_TOKEN_SECRET_NAME: s.GITHUB_TOKEN})
    if s.SECRET_BACKEND == "aws":
        return AwsSecretStore(region=s.AWS_REGION)
    raise NotImplementedError(f"Unknown SECRET_BACKEND={s.SECRET_BACKEND}")

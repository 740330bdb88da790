"""
Credential and profile setup from Config.
"""

from cloudapi.credential import Credential
from cloudapi.face import FaceClient
from cloudapi.profile import ClientProfile, HttpProfile
from config import Config


def build_credential(cfg: Config) -> Credential:
    """Fail-fast when the secret id or key is missing."""
    if not cfg.tencentcloud_secret_id or not cfg.tencentcloud_secret_key:
        raise ValueError(
            "TENCENTCLOUD_SECRET_ID and TENCENTCLOUD_SECRET_KEY must both be set"
        )
    return Credential(
        secret_id=cfg.tencentcloud_secret_id,
        secret_key=cfg.tencentcloud_secret_key,
        token=cfg.tencentcloud_session_token,
    )


def build_profile(cfg: Config) -> ClientProfile:
    return ClientProfile(
        sign_method=cfg.sign_method,
        http_profile=HttpProfile(
            req_method=cfg.req_method,
            protocol=cfg.protocol,
            endpoint=cfg.endpoint,
            req_timeout=cfg.req_timeout_sec,
        ),
    )


def build_face_client(cfg: Config) -> FaceClient:
    """
    Build a FaceClient ready for calls.
    Steps:
      1. Credential from secret id/key (+ session token)
      2. Signing/transport profile
      3. Client bound to the configured region
    """
    return FaceClient(
        credential=build_credential(cfg),
        region=cfg.tencentcloud_region,
        profile=build_profile(cfg),
    )

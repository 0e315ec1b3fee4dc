import logging
import os

import jwt

from assist.models.users import UserRole
from assist.utils.handler_utils import configure_logging

JWT_SECRET = os.environ.get("JWT_SECRET")
JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")

if not JWT_SECRET:
    raise RuntimeError("JWT_SECRET environment variable is not set")

configure_logging()
logger = logging.getLogger(__name__)


class AuthorizationDenied(Exception):
    pass


def _generate_policy(principal_id, effect, resource, context=None):
    auth_response = {
        "principalId": principal_id,
        "policyDocument": {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Action": "execute-api:Invoke",
                    "Effect": effect,
                    "Resource": resource,
                }
            ],
        },
    }

    if context:
        auth_response["context"] = {k: str(v) for k, v in context.items()}

    return auth_response


def _get_stage_arn(method_arn: str) -> str:
    parts = method_arn.split("/")
    return "/".join(parts[:2]) + "/*/*"


def _extract_token(event) -> str:
    headers = event.get("headers") or {}
    token = (
        headers.get("Authorization")
        or headers.get("authorization")
        or event.get("authorizationToken")
    )
    if not token:
        raise AuthorizationDenied("Missing Authorization header")
    return token.removeprefix("Bearer ").strip()


def lambda_handler(event, context):
    try:
        token = _extract_token(event)

        decoded = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp"]},
        )

        user_id = decoded.get("user_id")
        if not user_id:
            raise AuthorizationDenied("Missing user_id in token")

        try:
            role = UserRole(str(decoded.get("role", "")).upper())
        except ValueError:
            raise AuthorizationDenied(f"Unknown role {decoded.get('role')!r}")

        return _generate_policy(
            principal_id=user_id,
            effect="Allow",
            resource=_get_stage_arn(event["methodArn"]),
            context={
                "user_id": user_id,
                "email": decoded.get("email", ""),
                "role": role.value,
            },
        )

    except jwt.ExpiredSignatureError:
        logger.info("Authorization failed: token expired")
    except jwt.InvalidTokenError as e:
        logger.info("Authorization failed: invalid token: %s", e)
    except AuthorizationDenied as e:
        logger.info("Authorization failed: %s", e)
    except Exception:
        logger.exception("Authorization failed")

    return _generate_policy(
        principal_id="unauthorized",
        effect="Deny",
        resource=_get_stage_arn(event["methodArn"]),
    )

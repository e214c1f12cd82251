# storefront/services/identity_service.py
import uuid

from storefront.domain.identity import Identity, Authenticated, Anonymous
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def new_local_token() -> str:
    return str(uuid.uuid4())


def resolve_identity(user_id: int | None, local_token: str | None) -> Identity:
    """
    user_id comes from the authentication layer (None = not logged in),
    local_token from the client. A visitor without a token gets a fresh one.
    """
    if user_id is not None:
        return Authenticated(user_id=user_id)

    if not local_token:
        local_token = new_local_token()
        logger.info(f"Issued local token {local_token}")

    return Anonymous(local_token=local_token)

import logging
from typing import Optional
from supabase import Client, create_client
from enigmate.config import SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY

logger = logging.getLogger(__name__)

_admin_client: Optional[Client] = None


def get_supabase_admin() -> Optional[Client]:
    """Service-role Supabase client used for storage, or None when not configured."""
    global _admin_client
    if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
        return None
    if _admin_client is None:
        _admin_client = create_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)
    return _admin_client


def ensure_bucket(client: Client, bucket: str) -> None:
    """Create a private storage bucket if it does not exist yet."""
    try:
        buckets = client.storage.list_buckets()
    except Exception as e:
        logger.warning("[Storage] Unable to list buckets: %s", e)
        return
    if any(getattr(b, "name", None) == bucket for b in buckets or []):
        return
    try:
        client.storage.create_bucket(bucket, options={"public": False})
    except Exception as e:
        logger.warning("[Storage] Unable to create bucket %s: %s", bucket, e)
        return
    logger.info("[Storage] Created bucket %s", bucket)


def create_signed_url(client: Client, bucket: str, path: str, expires_in: int) -> Optional[str]:
    """Signed URL for a private object, or None when it cannot be signed."""
    try:
        result = client.storage.from_(bucket).create_signed_url(path, expires_in)
    except Exception as e:
        logger.warning("[Storage] Failed to sign %s/%s: %s", bucket, path, e)
        return None
    if not isinstance(result, dict):
        return None
    return result.get("signedURL") or result.get("signedUrl")

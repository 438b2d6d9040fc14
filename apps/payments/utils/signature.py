import hashlib
import hmac


def compute_hmac_sha256(secret: str, message: bytes | str) -> str:
    if isinstance(message, str):
        message = message.encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_hmac_sha256(secret: str, message: bytes | str, signature: str | None) -> bool:
    """Constant-time check of a hex HMAC-SHA256 signature."""
    if not signature:
        return False
    computed_signature = compute_hmac_sha256(secret, message)
    return hmac.compare_digest(signature.strip().lower(), computed_signature)
